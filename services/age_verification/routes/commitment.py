"""
Identity Commitment Routes
==========================

API endpoint for binding private birth date attributes to a commitment.
"""

from fastapi import APIRouter, HTTPException, status
from pydantic import Field, StrictInt, StrictStr

from services.age_verification.dependencies import get_verification_service
from shared.errors import InvalidAttributesError
from shared.logging import get_logger
from shared.models.common import CamelModel
from shared.zk.models import AttributeSet


logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class AttributesPayload(CamelModel):
    """Private identity attributes as sent by the holder."""

    birth_year: StrictInt = Field(..., description="Birth year")
    birth_month: StrictInt = Field(..., description="Birth month (1-12)")
    birth_day: StrictInt = Field(..., description="Birth day (1-31)")
    identity_secret: StrictStr = Field(..., description="Holder-chosen identity secret")

    def to_attributes(self) -> AttributeSet:
        return AttributeSet(
            birth_year=self.birth_year,
            birth_month=self.birth_month,
            birth_day=self.birth_day,
            identity_secret=self.identity_secret,
        )


class CommitmentResponse(CamelModel):
    """Response containing an identity commitment."""

    success: bool = True
    commitment: str
    message: str = "Identity commitment generated successfully"


# ============================================================================
# Commitment Endpoints
# ============================================================================


@router.post("", response_model=CommitmentResponse)
async def generate_commitment(request: AttributesPayload) -> CommitmentResponse:
    """
    Generate an identity commitment.

    The commitment binds the birth date and identity secret without
    revealing them, and is supplied again with every proof request.

    Args:
        request: Private identity attributes

    Returns:
        CommitmentResponse with the commitment
    """
    service = get_verification_service()

    try:
        commitment = service.create_commitment(request.to_attributes())
    except InvalidAttributesError as e:
        logger.warning("commitment_validation_error", field=e.field)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        ) from e

    return CommitmentResponse(commitment=commitment)
