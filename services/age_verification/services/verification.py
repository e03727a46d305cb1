"""
Age Verification Workflow
=========================

Orchestrates commitments, proofs, credentials and eligibility decisions.

Workflows:
1. Enroll       -> attributes -> commitment
2. Prove        -> (attributes, commitment) -> proof -> verify -> credential
3. Check status -> credential id -> re-verified credential status
4. Authorize    -> credential id + amount + jurisdiction -> verdict

The proof backend is the only slow step; every backend call is bounded by
``proof_timeout`` and a timeout surfaces as ``ProofGenerationError``.
Backend failures are never retried here and never reported as "not
eligible".

Version: 0.1.0
"""

import asyncio
import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from services.age_verification.services.credential_store import Credential, CredentialStore
from services.age_verification.services.eligibility import EligibilityEngine, EligibilityVerdict
from shared.errors import CredentialNotFoundError, ProofGenerationError
from shared.logging import get_logger
from shared.zk.backend import ProofBackend
from shared.zk.commitment import age_bracket, commit, validate_attributes
from shared.zk.models import MIN_AGE, AgeProof, AttributeSet


logger = get_logger(__name__)


@dataclass(frozen=True)
class CredentialStatus:
    """Re-verified view of a stored credential."""

    credential_id: str
    valid: bool
    eligible: bool
    issued_at: datetime
    expires_at: datetime

    @property
    def age(self) -> str:
        return age_bracket(self.eligible)

    @property
    def message(self) -> str:
        if self.valid and self.eligible:
            return "Valid proof - user is eligible for sports betting"
        if not self.valid:
            return "Proof could not be verified"
        return "Valid proof - user is not eligible for sports betting"


class AgeVerificationService:
    """
    Service façade over the proof backend, credential store and engine.

    Usage:
        service = AgeVerificationService(backend, store)
        commitment = service.create_commitment(attributes)
        credential, proof = await service.generate_proof(attributes, commitment)
        verdict = await service.check_eligibility(credential.credential_id, 500, "US")
    """

    def __init__(
        self,
        backend: ProofBackend,
        store: CredentialStore,
        engine: EligibilityEngine | None = None,
        proof_timeout: float = 30.0,
        threshold: int = MIN_AGE,
    ) -> None:
        self.backend = backend
        self.store = store
        self.engine = engine or EligibilityEngine()
        self.proof_timeout = proof_timeout
        self.threshold = threshold

    def today(self) -> date:
        return self.store.clock.now().date()

    def create_commitment(self, attributes: AttributeSet) -> str:
        """
        Bind attributes to a commitment.

        Raises:
            InvalidAttributesError: If attributes are out of range
        """
        commitment = commit(attributes, today=self.today())
        logger.info("identity_commitment_generated", commitment_prefix=commitment[:12])
        return commitment

    async def _bounded(self, awaitable: Any, operation: str) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.proof_timeout)
        except TimeoutError as e:
            logger.error(
                "proof_backend_timeout",
                operation=operation,
                backend=self.backend.name,
                timeout_seconds=self.proof_timeout,
            )
            raise ProofGenerationError(f"Proof backend timed out during {operation}") from e

    async def _verify(self, proof: AgeProof, commitment: str) -> bool:
        return await self._bounded(
            self.backend.verify(proof, proof.public_signals, commitment),
            "verification",
        )

    async def generate_proof(
        self,
        attributes: AttributeSet,
        commitment: str,
        reference_date: date | None = None,
    ) -> tuple[Credential, AgeProof]:
        """
        Prove the age predicate and issue a credential for the proof.

        Args:
            attributes: Private identity attributes
            commitment: Commitment from ``create_commitment``
            reference_date: Date the age is evaluated at (defaults to today, UTC)

        Returns:
            Tuple of (credential, proof)

        Raises:
            InvalidAttributesError: If attributes are out of range
            ProofRejectedError: If the commitment does not match
            ProofGenerationError: If the backend fails or times out
        """
        reference_date = reference_date or self.today()
        commitment = commitment.lower()

        # Fail fast, before any cryptographic work
        validate_attributes(attributes, today=reference_date)

        proof = await self._bounded(
            self.backend.prove(attributes, commitment, reference_date, self.threshold),
            "proving",
        )

        if not await self._verify(proof, commitment):
            logger.error("proof_self_verification_failed", backend=self.backend.name)
            raise ProofGenerationError("Generated proof failed verification")

        credential = self.store.issue(proof, commitment)

        logger.info(
            "age_proof_generated",
            credential_id=credential.credential_id,
            eligible=credential.predicate_result,
            proving_time_ms=proof.metadata.proving_time_ms,
        )
        return credential, proof

    async def verify_credential(self, credential_id: str) -> CredentialStatus:
        """
        Re-verify a stored credential.

        Raises:
            CredentialNotFoundError: If the id is unknown
            CredentialExpiredError: If the credential has expired
        """
        credential = self.store.lookup(credential_id)
        valid = await self._verify(credential.proof, credential.commitment)

        status = CredentialStatus(
            credential_id=credential_id,
            valid=valid,
            eligible=valid and credential.predicate_result,
            issued_at=credential.issued_at,
            expires_at=credential.expires_at,
        )

        logger.info(
            "credential_verified",
            credential_id=credential_id,
            valid=status.valid,
            eligible=status.eligible,
        )
        return status

    async def check_eligibility(
        self,
        credential_id: str,
        amount: Any,
        jurisdiction: str | None,
    ) -> EligibilityVerdict:
        """
        Decide whether a bet may be placed under a credential.

        Expired credentials yield a ``ProofExpired`` verdict rather than an
        exception so callers get the full verdict shape.

        Raises:
            CredentialNotFoundError: If the id is unknown
        """
        credential = self.store.get(credential_id)
        if credential is None:
            raise CredentialNotFoundError(credential_id)

        now = self.store.clock.monotonic()
        if not credential.is_expired(now):
            if not await self._verify(credential.proof, credential.commitment):
                logger.warning("credential_reverification_failed", credential_id=credential_id)
                credential = dataclasses.replace(credential, predicate_result=False)

        verdict = self.engine.evaluate(credential, amount, jurisdiction, now=now)

        logger.info(
            "bet_eligibility_checked",
            credential_id=credential_id,
            jurisdiction=verdict.jurisdiction_code,
            reason=verdict.reason.value,
            can_act=verdict.can_act,
        )
        return verdict
