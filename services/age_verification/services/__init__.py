"""
Age Verification Services
=========================

Business logic for the age verification service.

Services:
- CredentialStore: Time-bounded credential cache
- EligibilityEngine: Jurisdiction bet eligibility rules
- AgeVerificationService: Commitment/proof/credential workflows

Version: 0.1.0
"""

from services.age_verification.services.credential_store import (
    Credential,
    CredentialStore,
    SystemClock,
)
from services.age_verification.services.eligibility import (
    EligibilityEngine,
    EligibilityReason,
    EligibilityVerdict,
    JurisdictionPolicy,
    JurisdictionPolicyTable,
)
from services.age_verification.services.verification import (
    AgeVerificationService,
    CredentialStatus,
)


__all__ = [
    # Credentials
    "Credential",
    "CredentialStore",
    "SystemClock",
    # Eligibility
    "EligibilityEngine",
    "EligibilityReason",
    "EligibilityVerdict",
    "JurisdictionPolicy",
    "JurisdictionPolicyTable",
    # Workflows
    "AgeVerificationService",
    "CredentialStatus",
]
