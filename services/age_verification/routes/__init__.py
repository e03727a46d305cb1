"""
Age Verification Service Routes
===============================

API route handlers for the age verification service.
"""

from services.age_verification.routes import commitment, eligibility, proofs


__all__ = ["commitment", "eligibility", "proofs"]
