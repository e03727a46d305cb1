"""
Credential Store
================

Time-bounded in-memory cache of issued age credentials.

Concurrency model:
- Entries are spread over a fixed number of shards, each guarded by its
  own ``threading.Lock``, so the store is safe to share between request
  handlers running on the event loop or on a worker thread pool.
- A lock only ever guards dictionary access. No lock is held while a proof
  backend runs.
- Credentials are immutable once written; readers see either nothing or a
  complete credential.
- Expiry is evaluated against a monotonic clock read taken once per call.

Resource bound:
- Expired entries are dropped from a shard whenever a credential is issued
  into it, and the whole store is swept periodically by the service
  (``purge_expired``). Entries linger for ``expired_retention`` after
  expiry so a lookup can still answer "expired" instead of "not found".

Version: 0.1.0
"""

import hashlib
import threading
import time
import zlib
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from shared.errors import CredentialExpiredError, CredentialNotFoundError
from shared.logging import get_logger
from shared.zk.models import AgeProof


logger = get_logger(__name__)


CREDENTIAL_VALIDITY = timedelta(hours=24)
EXPIRED_RETENTION = timedelta(hours=1)
CREDENTIAL_ID_LENGTH = 32


class SystemClock:
    """Wall clock for timestamps, monotonic clock for expiry decisions."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def monotonic(self) -> float:
        return time.monotonic()


@dataclass(frozen=True)
class Credential:
    """
    Record of a successfully generated proof.

    ``proof`` and ``commitment`` are kept so the proof can be re-verified on
    every use; ``predicate_result`` alone is never trusted.
    """

    credential_id: str
    predicate_result: bool
    issued_at: datetime
    expires_at: datetime
    commitment: str
    proof: AgeProof = field(repr=False)

    # Monotonic deadline, the authoritative expiry
    deadline: float = field(repr=False, compare=False)

    def is_expired(self, now: float) -> bool:
        """Whether the validity window has passed at monotonic time ``now``."""
        return now > self.deadline


def derive_credential_id(proof: AgeProof) -> str:
    """
    Derive a credential id from a proof.

    Identical proofs always map to the same id; differently encoded but
    semantically equal proofs do not.
    """
    return hashlib.sha256(proof.canonical_bytes()).hexdigest()[:CREDENTIAL_ID_LENGTH]


@dataclass
class _Shard:
    lock: threading.Lock = field(default_factory=threading.Lock)
    entries: dict[str, Credential] = field(default_factory=dict)


class CredentialStore:
    """
    Sharded, lock-per-shard credential cache.

    Usage:
        store = CredentialStore()
        credential = store.issue(proof, commitment)
        same = store.lookup(credential.credential_id)
    """

    def __init__(
        self,
        validity: timedelta = CREDENTIAL_VALIDITY,
        shard_count: int = 16,
        clock: SystemClock | None = None,
        expired_retention: timedelta = EXPIRED_RETENTION,
    ) -> None:
        """
        Initialize the store.

        Args:
            validity: Lifetime of each credential
            shard_count: Number of independently locked shards
            clock: Time source (wall + monotonic)
            expired_retention: How long expired entries are kept for lookups
        """
        if shard_count < 1:
            raise ValueError("shard_count must be >= 1")

        self.validity = validity
        self.clock = clock or SystemClock()
        self._retention = expired_retention.total_seconds()
        self._shards = [_Shard() for _ in range(shard_count)]

    def _shard_for(self, credential_id: str) -> _Shard:
        return self._shards[zlib.crc32(credential_id.encode()) % len(self._shards)]

    def _purge_shard(self, shard: _Shard, now: float) -> int:
        # Caller holds shard.lock
        cutoff = now - self._retention
        stale = [cid for cid, c in shard.entries.items() if c.deadline < cutoff]
        for cid in stale:
            del shard.entries[cid]
        return len(stale)

    def issue(self, proof: AgeProof, commitment: str) -> Credential:
        """
        Record a credential for a verified proof.

        Issuing the same proof again while its credential is still valid
        returns the existing credential unchanged. Once expired, it is
        replaced by a fresh credential under the same id.

        Args:
            proof: Proof already verified against ``commitment``
            commitment: Commitment the proof is bound to

        Returns:
            The stored credential
        """
        credential_id = derive_credential_id(proof)
        shard = self._shard_for(credential_id)

        issued_at = self.clock.now()
        now = self.clock.monotonic()

        with shard.lock:
            purged = self._purge_shard(shard, now)
            existing = shard.entries.get(credential_id)
            if existing is not None and not existing.is_expired(now):
                credential, created = existing, False
            else:
                credential = Credential(
                    credential_id=credential_id,
                    predicate_result=proof.predicate_result,
                    issued_at=issued_at,
                    expires_at=issued_at + self.validity,
                    commitment=commitment,
                    proof=proof,
                    deadline=now + self.validity.total_seconds(),
                )
                shard.entries[credential_id] = credential
                created = True

        logger.info(
            "credential_issued" if created else "credential_reused",
            credential_id=credential_id,
            eligible=credential.predicate_result,
            expires_at=credential.expires_at.isoformat(),
            purged=purged,
        )
        return credential

    def get(self, credential_id: str) -> Credential | None:
        """Return the stored credential regardless of expiry."""
        shard = self._shard_for(credential_id)
        with shard.lock:
            return shard.entries.get(credential_id)

    def lookup(self, credential_id: str) -> Credential:
        """
        Look up a valid credential.

        Raises:
            CredentialNotFoundError: If the id is unknown
            CredentialExpiredError: If the credential's window has passed
        """
        credential = self.get(credential_id)
        if credential is None:
            raise CredentialNotFoundError(credential_id)
        if credential.is_expired(self.clock.monotonic()):
            raise CredentialExpiredError(credential_id, credential)
        return credential

    def purge_expired(self) -> int:
        """
        Drop expired entries past their retention from every shard.

        Returns:
            Number of entries removed
        """
        now = self.clock.monotonic()
        removed = 0
        for shard in self._shards:
            with shard.lock:
                removed += self._purge_shard(shard, now)

        if removed:
            logger.info("credentials_purged", removed=removed)
        return removed

    def clear(self) -> None:
        """Remove every credential."""
        for shard in self._shards:
            with shard.lock:
                shard.entries.clear()

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.entries)
        return total
