"""
Age Verification Service
========================

Privacy-preserving age verification for sports betting.

This service provides:
- Identity commitments over private birth date attributes
- Age predicate (18+) proof generation and verification
- Time-bounded credentials for verified proofs
- Jurisdiction-aware bet eligibility decisions

Port: 6300
Version: 0.1.0
"""

__version__ = "0.1.0"
