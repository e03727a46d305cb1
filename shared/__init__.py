"""
AgeProof Shared Library
=======================

Common utilities, configurations, and abstractions shared across AgeProof services.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - errors: Error taxonomy for commitments, proofs and credentials
    - zk: Identity commitments and the proof backend contract
    - models: Shared Pydantic models

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "AgeProof Team"

from shared.config import settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
