"""
Simulated Proof Backend
=======================

In-process backend for development and testing.

Stands in for a real proof system without circuit artefacts. The proof is
an HMAC-SHA256 tag over the public statement (commitment, predicate result,
reference date, threshold) under a key held by this process, so a client
cannot mint or alter a proof, and verification fails as soon as any part of
the statement changes.

This is not zero-knowledge in the cryptographic sense: the verifier must
hold the same key as the prover. Use the snarkjs backend for third-party
verifiable proofs.

Version: 1.0.0
"""

import hashlib
import hmac
import secrets
import time
from datetime import date

from shared.logging import get_logger
from shared.zk.backend import ProofBackend
from shared.zk.commitment import age_in_years
from shared.zk.models import AgeProof, AttributeSet, ProofMetadata, PublicSignals


logger = get_logger(__name__)

PROTOCOL = "hmac-sha256"
CIRCUIT_NAME = "age_verification"


class SimulatedProofBackend(ProofBackend):
    """
    Keyed-hash proof backend.

    Proofs are deterministic for identical inputs, so proving the same
    attributes twice on the same day yields the same proof.
    """

    def __init__(self, key: bytes | None = None) -> None:
        """
        Initialize the backend.

        Args:
            key: HMAC key. A random key is generated when omitted, which
                 invalidates every outstanding proof on restart.
        """
        self._key = key or secrets.token_bytes(32)
        logger.debug("simulated_proof_backend_initialized", ephemeral_key=key is None)

    @property
    def name(self) -> str:
        return "simulated"

    def _statement(
        self,
        commitment: str,
        predicate_result: bool,
        reference_date: date,
        threshold: int,
    ) -> bytes:
        return "|".join(
            [
                CIRCUIT_NAME,
                commitment.lower(),
                "1" if predicate_result else "0",
                reference_date.isoformat(),
                str(threshold),
            ]
        ).encode()

    def _tag(self, statement: bytes) -> str:
        return hmac.new(self._key, statement, hashlib.sha256).hexdigest()

    @staticmethod
    def _fingerprint(tag: str) -> str:
        return hashlib.sha256(bytes.fromhex(tag)).hexdigest()[:32]

    async def _generate(
        self,
        attributes: AttributeSet,
        commitment: str,
        reference_date: date,
        threshold: int,
    ) -> AgeProof:
        start_time = time.perf_counter()

        predicate_result = age_in_years(attributes, reference_date) >= threshold
        tag = self._tag(self._statement(commitment, predicate_result, reference_date, threshold))

        proving_time_ms = int((time.perf_counter() - start_time) * 1000)

        return AgeProof(
            proof={"protocol": PROTOCOL, "tag": tag},
            public_signals=PublicSignals.build(predicate_result, self._fingerprint(tag)),
            metadata=ProofMetadata(
                backend=self.name,
                circuit_name=CIRCUIT_NAME,
                reference_date=reference_date,
                threshold=threshold,
                proving_time_ms=proving_time_ms,
            ),
        )

    async def verify(
        self,
        proof: AgeProof,
        public_signals: PublicSignals,
        commitment: str,
    ) -> bool:
        if proof.proof.get("protocol") != PROTOCOL:
            return False
        tag = proof.proof.get("tag")
        if not isinstance(tag, str):
            return False
        if len(public_signals.signals) != 2 or public_signals.signals[0] not in ("0", "1"):
            return False

        # Recompute from the supplied commitment and claimed signal
        expected = self._tag(
            self._statement(
                commitment,
                public_signals.predicate_result,
                proof.metadata.reference_date,
                proof.metadata.threshold,
            )
        )

        valid = hmac.compare_digest(expected, tag) and hmac.compare_digest(
            self._fingerprint(expected), public_signals.proof_fingerprint
        )

        logger.debug("simulated_proof_verified", valid=valid)
        return valid
