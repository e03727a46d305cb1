"""
Error Taxonomy
==============

Exceptions raised by the commitment, proof and credential layers.

Messages never include private attribute values; they name the offending
field at most.

Version: 0.1.0
"""

from typing import Any


class AgeProofError(Exception):
    """Base exception for AgeProof components."""

    code = "AGEPROOF_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a serializable error payload."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidAttributesError(AgeProofError):
    """Private attributes are missing or outside their declared ranges."""

    code = "INVALID_ATTRIBUTES"

    def __init__(self, message: str = "Invalid identity attributes", field: str | None = None) -> None:
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class ProofGenerationError(AgeProofError):
    """
    The proof backend could not produce a proof.

    Covers backend crashes and timeouts. Callers may retry; it must never be
    reported as "not eligible".
    """

    code = "PROOF_GENERATION_FAILED"
    retryable = True


class ProofRejectedError(ProofGenerationError):
    """The backend's circuit constraints rejected the supplied inputs."""

    code = "PROOF_REJECTED"
    retryable = False


class BackendUnavailableError(ProofGenerationError):
    """The proof backend is not set up (e.g. missing circuit artefacts)."""

    code = "PROOF_BACKEND_UNAVAILABLE"


class CredentialNotFoundError(AgeProofError):
    """No credential is known under the given identifier."""

    code = "CREDENTIAL_NOT_FOUND"

    def __init__(self, credential_id: str) -> None:
        super().__init__("Credential not found", {"credential_id": credential_id})
        self.credential_id = credential_id


class CredentialExpiredError(AgeProofError):
    """The credential exists but its validity window has passed."""

    code = "CREDENTIAL_EXPIRED"

    def __init__(self, credential_id: str, credential: Any = None) -> None:
        super().__init__("Credential has expired", {"credential_id": credential_id})
        self.credential_id = credential_id
        self.credential = credential
