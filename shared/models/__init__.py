"""
Shared Models
=============

Pydantic models shared across services.
"""

from shared.models.common import (
    CamelModel,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "CamelModel",
    "ErrorResponse",
    "HealthResponse",
]
