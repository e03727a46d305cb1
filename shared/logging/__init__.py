"""
Logging Module
==============

Structured logging using structlog with JSON output for production
and colored console output for development.

Usage:
    from shared.logging import get_logger, setup_logging

    # Setup at application start
    setup_logging()

    # Get logger for a module
    logger = get_logger(__name__)

    # Log with context
    logger.info("proof_generated", credential_id="3f9a...", eligible=True)
    logger.error("proof_backend_failed", error=str(e))

Private identity attributes (birth date fields, identity secret) are
redacted by key before rendering.
"""

from shared.logging.logger import (
    bind_context,
    censor_dict,
    clear_context,
    get_logger,
    setup_logging,
)


__all__ = [
    "bind_context",
    "censor_dict",
    "clear_context",
    "get_logger",
    "setup_logging",
]
