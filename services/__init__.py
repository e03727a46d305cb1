"""
AgeProof Services
=================

Services:
- age_verification: Identity commitments, age proofs, credentials and bet eligibility
"""

__all__ = [
    "age_verification",
]
