"""
Proof Backend Interface
=======================

Abstract prove/verify contract for age predicate proofs.

Any proof system can be plugged in behind ``ProofBackend`` as long as it
honours the contract below; the credential lifecycle and the eligibility
rules only ever see ``AgeProof`` values.

Contract:
    prove(attributes, commitment, reference_date, threshold)
        - rejects inputs violating the circuit constraints (birth year after
          the reference year, month outside 1-12, day outside 1-31, or a
          commitment that does not equal ``commit(attributes)``) with
          ``ProofRejectedError``
        - evaluates age-in-whole-years(birth, reference_date) >= threshold
          inside the backend and exposes only the boolean result and a
          fingerprint as public signals
        - reports any other failure as ``ProofGenerationError``

    verify(proof, public_signals, commitment)
        - returns True only if the signals were produced by a run of this
          backend bound to ``commitment``
        - never trusts a predicate result that it cannot re-derive

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any

from shared.config import ProofBackendMode, settings
from shared.errors import InvalidAttributesError, ProofGenerationError, ProofRejectedError
from shared.logging import get_logger
from shared.zk.commitment import commit
from shared.zk.models import MIN_AGE, AgeProof, AttributeSet, PublicSignals


logger = get_logger(__name__)


class ProofBackend(ABC):
    """
    Abstract base class for proof backends.

    Implements the Strategy pattern for different proof systems.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short backend identifier recorded in proof metadata."""
        ...

    @abstractmethod
    async def _generate(
        self,
        attributes: AttributeSet,
        commitment: str,
        reference_date: date,
        threshold: int,
    ) -> AgeProof:
        """Produce a proof for inputs that already satisfy the constraints."""
        ...

    @abstractmethod
    async def verify(
        self,
        proof: AgeProof,
        public_signals: PublicSignals,
        commitment: str,
    ) -> bool:
        """
        Verify a proof against a commitment.

        Args:
            proof: The proof artifact
            public_signals: Signals claimed for the proof
            commitment: Commitment the proof must be bound to

        Returns:
            True only if the proof is valid for this commitment
        """
        ...

    async def health_check(self) -> dict[str, Any]:
        """Check backend health."""
        return {"status": "healthy", "backend": self.name}

    def check_constraints(
        self,
        attributes: AttributeSet,
        commitment: str,
        reference_date: date,
    ) -> None:
        """
        Apply the circuit's range and commitment constraints.

        Raises:
            ProofRejectedError: If any constraint fails
        """
        try:
            expected = commit(attributes, today=reference_date)
        except InvalidAttributesError as e:
            raise ProofRejectedError(e.message, {"field": e.field}) from e

        if expected != commitment.lower():
            raise ProofRejectedError("Commitment does not match the supplied attributes")

    async def prove(
        self,
        attributes: AttributeSet,
        commitment: str,
        reference_date: date,
        threshold: int = MIN_AGE,
    ) -> AgeProof:
        """
        Generate an age predicate proof.

        Args:
            attributes: Private identity attributes
            commitment: Commitment previously produced by ``commit``
            reference_date: Date the age is evaluated at
            threshold: Minimum age in whole years

        Returns:
            AgeProof carrying the predicate result as a public signal

        Raises:
            ProofRejectedError: If the inputs violate the circuit constraints
            ProofGenerationError: If the backend fails
        """
        self.check_constraints(attributes, commitment, reference_date)

        try:
            return await self._generate(attributes, commitment.lower(), reference_date, threshold)
        except ProofGenerationError:
            raise
        except (OSError, RuntimeError, ValueError) as e:
            logger.error("proof_backend_failed", backend=self.name, error_type=type(e).__name__)
            raise ProofGenerationError("Proof generation failed") from e


_backend: ProofBackend | None = None


def get_proof_backend() -> ProofBackend:
    """
    Get the configured proof backend instance.

    Returns:
        ProofBackend instance based on settings
    """
    global _backend

    if _backend is None:
        mode = settings.proof.backend

        if mode == ProofBackendMode.SIMULATED:
            from shared.zk.simulated import SimulatedProofBackend

            key = settings.proof.signing_key.get_secret_value()
            _backend = SimulatedProofBackend(key.encode() if key else None)
        elif mode == ProofBackendMode.SNARKJS:
            from shared.zk.prover import SnarkjsProofBackend

            _backend = SnarkjsProofBackend(
                build_dir=settings.proof.build_dir,
                circuit_name=settings.proof.circuit_name,
            )
        else:
            raise ValueError(f"Unknown proof backend: {mode}")

        logger.info("proof_backend_initialized", backend=_backend.name)

    return _backend


def set_proof_backend(backend: ProofBackend) -> None:
    """
    Set a custom proof backend.

    Args:
        backend: ProofBackend instance
    """
    global _backend
    _backend = backend
    logger.info("proof_backend_set", backend=backend.name)


def reset_proof_backend() -> None:
    """Reset the backend to be re-initialized."""
    global _backend
    _backend = None
