"""
Bet Eligibility Engine
======================

Combines an age credential with a jurisdiction policy table to authorize
a bet of a given amount.

Decision order (first failing check wins):
1. Credential expired           -> ProofExpired
2. Age predicate not met        -> PredicateNotMet
3. Amount <= 0 or not finite    -> InvalidAmount
4. Jurisdiction restricted      -> JurisdictionRestricted
5. Amount above policy maximum  -> AmountExceedsLimit
6. Otherwise                    -> Approved

Credential checks come before any policy check so that a request which was
never eligible cannot be used to probe jurisdiction limits.

Version: 0.1.0
"""

import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from services.age_verification.services.credential_store import Credential
from shared.logging import get_logger


logger = get_logger(__name__)


DEFAULT_JURISDICTION = "default"


class EligibilityReason(str, Enum):
    """Cause of an eligibility verdict."""

    PROOF_EXPIRED = "ProofExpired"
    PREDICATE_NOT_MET = "PredicateNotMet"
    INVALID_AMOUNT = "InvalidAmount"
    JURISDICTION_RESTRICTED = "JurisdictionRestricted"
    AMOUNT_EXCEEDS_LIMIT = "AmountExceedsLimit"
    APPROVED = "Approved"


@dataclass(frozen=True)
class JurisdictionPolicy:
    """
    Betting rules for one jurisdiction.

    ``min_age`` is informational only. The age predicate is fixed by the
    circuit and this field is not consulted by the engine.
    """

    code: str
    max_action_amount: float
    min_age: int = 18
    restricted: bool = False


DEFAULT_POLICIES: tuple[JurisdictionPolicy, ...] = (
    JurisdictionPolicy(code="US", max_action_amount=10_000, min_age=21),
    JurisdictionPolicy(code="UK", max_action_amount=50_000),
    JurisdictionPolicy(code="EU", max_action_amount=25_000),
    JurisdictionPolicy(code=DEFAULT_JURISDICTION, max_action_amount=1_000),
)


class JurisdictionPolicyTable(Mapping[str, JurisdictionPolicy]):
    """
    Immutable jurisdiction policy table.

    Codes are matched case-insensitively. ``resolve`` never fails: unknown
    or empty codes resolve to the default entry.
    """

    def __init__(self, policies: Iterable[JurisdictionPolicy] = DEFAULT_POLICIES) -> None:
        table = {p.code.upper(): p for p in policies}
        if DEFAULT_JURISDICTION.upper() not in table:
            raise ValueError("Policy table requires a 'default' entry")
        self._policies = MappingProxyType(table)

    def __getitem__(self, code: str) -> JurisdictionPolicy:
        return self._policies[code.upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._policies)

    def __len__(self) -> int:
        return len(self._policies)

    @property
    def default(self) -> JurisdictionPolicy:
        return self._policies[DEFAULT_JURISDICTION.upper()]

    def resolve(self, code: str | None) -> JurisdictionPolicy:
        """Return the policy for ``code``, falling back to the default."""
        if not code:
            return self.default
        return self._policies.get(code.strip().upper(), self.default)


@dataclass(frozen=True)
class EligibilityVerdict:
    """
    Authorization decision for a single bet request.

    ``eligible`` reports age eligibility (valid credential with the
    predicate met); ``can_act`` reports whether this particular bet may be
    placed.
    """

    eligible: bool
    can_act: bool
    reason: EligibilityReason
    max_action_amount: float
    jurisdiction_code: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "eligible": self.eligible,
            "can_act": self.can_act,
            "reason": self.reason.value,
            "max_action_amount": self.max_action_amount,
            "jurisdiction_code": self.jurisdiction_code,
            "message": self.message,
        }


def is_valid_amount(amount: Any) -> bool:
    """Positive, finite, real number (bools are rejected)."""
    if isinstance(amount, bool) or not isinstance(amount, int | float):
        return False
    # ints are always finite and may be too large to convert to float
    if isinstance(amount, float) and not math.isfinite(amount):
        return False
    return amount > 0


class EligibilityEngine:
    """
    Pure decision function over a credential, an amount and a jurisdiction.

    The policy table is fixed at construction.

    Example:
        >>> engine = EligibilityEngine()
        >>> verdict = engine.evaluate(credential, 500, "US", now=clock.monotonic())
        >>> verdict.reason
        <EligibilityReason.APPROVED: 'Approved'>
    """

    def __init__(self, policies: JurisdictionPolicyTable | None = None) -> None:
        self.policies = policies or JurisdictionPolicyTable()

    def evaluate(
        self,
        credential: Credential,
        requested_amount: Any,
        jurisdiction_code: str | None,
        now: float,
    ) -> EligibilityVerdict:
        """
        Decide whether a bet may be placed.

        Args:
            credential: Credential looked up by the caller (may be expired)
            requested_amount: Bet amount
            jurisdiction_code: Jurisdiction code, unknown codes use the default
            now: Monotonic time used for the expiry check

        Returns:
            EligibilityVerdict
        """
        policy = self.policies.resolve(jurisdiction_code)
        code = jurisdiction_code.strip().upper() if jurisdiction_code else DEFAULT_JURISDICTION

        def verdict(reason: EligibilityReason, message: str, eligible: bool = True) -> EligibilityVerdict:
            return EligibilityVerdict(
                eligible=eligible,
                can_act=reason is EligibilityReason.APPROVED,
                reason=reason,
                max_action_amount=policy.max_action_amount,
                jurisdiction_code=code,
                message=message,
            )

        if credential.is_expired(now):
            return verdict(
                EligibilityReason.PROOF_EXPIRED,
                "Age verification proof has expired",
                eligible=False,
            )

        if not credential.predicate_result:
            return verdict(
                EligibilityReason.PREDICATE_NOT_MET,
                "Age verification failed - must be 18 or older",
                eligible=False,
            )

        if not is_valid_amount(requested_amount):
            return verdict(EligibilityReason.INVALID_AMOUNT, "Invalid betting amount")

        if policy.restricted:
            return verdict(
                EligibilityReason.JURISDICTION_RESTRICTED,
                "Sports betting restricted in this jurisdiction",
            )

        if requested_amount > policy.max_action_amount:
            return verdict(
                EligibilityReason.AMOUNT_EXCEEDS_LIMIT,
                f"Betting amount exceeds maximum allowed ({policy.max_action_amount:,.0f})",
            )

        return verdict(EligibilityReason.APPROVED, "All eligibility requirements met")
