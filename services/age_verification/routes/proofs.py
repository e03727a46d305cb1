"""
Age Proof Routes
================

API endpoints for generating age proofs and checking issued credentials.
"""

from datetime import datetime

from fastapi import APIRouter, HTTPException, status
from pydantic import Field, StrictStr, field_validator

from services.age_verification.dependencies import get_verification_service
from services.age_verification.routes.commitment import AttributesPayload
from shared.errors import (
    BackendUnavailableError,
    CredentialExpiredError,
    CredentialNotFoundError,
    InvalidAttributesError,
    ProofGenerationError,
    ProofRejectedError,
)
from shared.logging import get_logger
from shared.models.common import CamelModel
from shared.zk.commitment import age_bracket, is_well_formed_commitment


logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class ProofRequest(AttributesPayload):
    """Request to generate an age proof."""

    commitment: StrictStr = Field(..., description="Identity commitment from POST /commitment")

    @field_validator("commitment")
    @classmethod
    def validate_commitment(cls, v: str) -> str:
        """Require a 64-char hex field element."""
        if not is_well_formed_commitment(v):
            raise ValueError("commitment must be 64 hex characters")
        return v


class ProofResponse(CamelModel):
    """Response containing the issued credential."""

    success: bool = True
    credential_id: str
    eligible: bool
    age: str = Field(..., description="Age bracket: 18+ or under_18")
    proof_hash: str = Field(..., description="Proof fingerprint")
    expires_at: datetime
    message: str


class VerifyCredentialRequest(CamelModel):
    """Request to verify an issued credential."""

    credential_id: StrictStr = Field(..., min_length=1, max_length=128)


class VerifyCredentialResponse(CamelModel):
    """Response from credential verification."""

    success: bool = True
    valid: bool
    eligible: bool
    age: str
    issued_at: datetime
    expires_at: datetime
    message: str


# ============================================================================
# Proof Endpoints
# ============================================================================


@router.post("", response_model=ProofResponse)
async def generate_proof(request: ProofRequest) -> ProofResponse:
    """
    Generate a proof that the holder is at least 18 today.

    The birth date never leaves this call; only the predicate result and a
    proof fingerprint are recorded in the issued credential.

    Args:
        request: Private attributes plus their commitment

    Returns:
        ProofResponse with the credential id and eligibility
    """
    service = get_verification_service()

    try:
        credential, proof = await service.generate_proof(
            request.to_attributes(),
            request.commitment,
        )

    except InvalidAttributesError as e:
        logger.warning("proof_validation_error", field=e.field)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        ) from e
    except ProofRejectedError as e:
        logger.warning("proof_rejected", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        ) from e
    except BackendUnavailableError as e:
        logger.error("proof_backend_unavailable", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Proof backend not available",
        ) from e
    except ProofGenerationError as e:
        logger.error("age_proof_generation_failed", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate age verification proof",
        ) from e

    eligible = credential.predicate_result

    return ProofResponse(
        credential_id=credential.credential_id,
        eligible=eligible,
        age=age_bracket(eligible),
        proof_hash=proof.proof_fingerprint,
        expires_at=credential.expires_at,
        message=(
            "Age verification successful - eligible for sports betting"
            if eligible
            else "Age verification failed - not eligible for sports betting"
        ),
    )


@router.post("/verify", response_model=VerifyCredentialResponse)
async def verify_credential(request: VerifyCredentialRequest) -> VerifyCredentialResponse:
    """
    Verify a previously issued credential.

    The stored proof is re-verified on every call.

    Args:
        request: Credential identifier

    Returns:
        VerifyCredentialResponse with validity and eligibility
    """
    service = get_verification_service()

    try:
        result = await service.verify_credential(request.credential_id)

    except CredentialNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Proof not found",
        ) from e
    except CredentialExpiredError as e:
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail="Proof has expired",
        ) from e
    except BackendUnavailableError as e:
        logger.error("proof_backend_unavailable", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Proof backend not available",
        ) from e
    except ProofGenerationError as e:
        logger.error("credential_verification_failed", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to verify proof",
        ) from e

    return VerifyCredentialResponse(
        valid=result.valid,
        eligible=result.eligible,
        age=result.age,
        issued_at=result.issued_at,
        expires_at=result.expires_at,
        message=result.message,
    )
