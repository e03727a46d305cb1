"""
AgeProof Test Suite
===================

Test organization:
- tests/unit/          - Unit tests (no external dependencies)
- tests/services/      - Service workflow and HTTP API tests

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest --cov=shared            # With coverage
"""
