"""
Service Dependencies
====================

Process-wide instances shared by the route handlers.

The credential store is owned by the service process; every request sees
the same instance.
"""

from services.age_verification.services.credential_store import CredentialStore
from services.age_verification.services.eligibility import EligibilityEngine
from services.age_verification.services.verification import AgeVerificationService
from shared.config import settings
from shared.logging import get_logger
from shared.zk.backend import get_proof_backend


logger = get_logger(__name__)

_service: AgeVerificationService | None = None


def get_verification_service() -> AgeVerificationService:
    """
    Get the age verification service, creating it on first use.

    Returns:
        AgeVerificationService wired from settings
    """
    global _service

    if _service is None:
        store = CredentialStore(shard_count=settings.credentials.shard_count)
        _service = AgeVerificationService(
            backend=get_proof_backend(),
            store=store,
            engine=EligibilityEngine(),
            proof_timeout=settings.proof.timeout_seconds,
        )
        logger.info(
            "verification_service_initialized",
            backend=_service.backend.name,
            shards=settings.credentials.shard_count,
        )

    return _service


def set_verification_service(service: AgeVerificationService) -> None:
    """Set a custom service instance (tests, alternative wiring)."""
    global _service
    _service = service


def reset_verification_service() -> None:
    """Reset the service to be re-initialized."""
    global _service
    _service = None
