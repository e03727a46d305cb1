"""
Bet Eligibility Routes
======================

API endpoint for authorizing a bet against an age credential.
"""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import Field, StrictFloat, StrictInt, StrictStr

from services.age_verification.dependencies import get_verification_service
from services.age_verification.services.eligibility import (
    EligibilityReason,
    EligibilityVerdict,
)
from shared.errors import BackendUnavailableError, CredentialNotFoundError, ProofGenerationError
from shared.logging import get_logger
from shared.models.common import CamelModel


logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class EligibilityRequest(CamelModel):
    """Request to check bet eligibility."""

    credential_id: StrictStr = Field(..., min_length=1, max_length=128)
    amount: StrictInt | StrictFloat | None = Field(None, description="Requested bet amount")
    jurisdiction: StrictStr | None = Field(None, max_length=32, description="Jurisdiction code")


class EligibilityResponse(CamelModel):
    """Eligibility verdict."""

    eligible: bool
    can_act: bool
    reason: EligibilityReason
    max_amount: float
    jurisdiction: str
    message: str

    @classmethod
    def from_verdict(cls, verdict: EligibilityVerdict) -> "EligibilityResponse":
        return cls(
            eligible=verdict.eligible,
            can_act=verdict.can_act,
            reason=verdict.reason,
            max_amount=verdict.max_action_amount,
            jurisdiction=verdict.jurisdiction_code,
            message=verdict.message,
        )


# ============================================================================
# Eligibility Endpoints
# ============================================================================


@router.post(
    "",
    response_model=EligibilityResponse,
    responses={status.HTTP_410_GONE: {"model": EligibilityResponse}},
)
async def check_eligibility(request: EligibilityRequest) -> EligibilityResponse | JSONResponse:
    """
    Check whether a bet may be placed.

    Policy denials (invalid amount, restricted jurisdiction, amount over the
    limit) are answered with 200 and ``canAct=false``. An expired credential
    is answered with 410 and a ``ProofExpired`` verdict.

    Args:
        request: Credential id, bet amount and jurisdiction

    Returns:
        EligibilityResponse with the verdict
    """
    service = get_verification_service()

    try:
        verdict = await service.check_eligibility(
            request.credential_id,
            request.amount,
            request.jurisdiction,
        )

    except CredentialNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Age verification proof not found",
        ) from e
    except BackendUnavailableError as e:
        logger.error("proof_backend_unavailable", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Proof backend not available",
        ) from e
    except ProofGenerationError as e:
        logger.error("bet_eligibility_check_failed", error=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check betting eligibility",
        ) from e

    response = EligibilityResponse.from_verdict(verdict)

    if verdict.reason is EligibilityReason.PROOF_EXPIRED:
        return JSONResponse(
            status_code=status.HTTP_410_GONE,
            content=response.model_dump(mode="json", by_alias=True),
        )

    return response
