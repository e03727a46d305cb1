"""
Unit Tests for the Eligibility Engine
=====================================

Tests for bet authorization against jurisdiction policies.

Version: 1.0.0
"""

from datetime import UTC, date, datetime, timedelta

import pytest

from services.age_verification.services.credential_store import Credential
from services.age_verification.services.eligibility import (
    DEFAULT_POLICIES,
    EligibilityEngine,
    EligibilityReason,
    JurisdictionPolicy,
    JurisdictionPolicyTable,
    is_valid_amount,
)
from shared.zk.models import AgeProof, ProofMetadata, PublicSignals


NOW = 1_000.0


def make_credential(predicate_result: bool = True, deadline: float = NOW + 3600) -> Credential:
    """Credential with a controllable predicate and monotonic deadline."""
    issued_at = datetime(2024, 5, 15, 12, 0, tzinfo=UTC)
    return Credential(
        credential_id="c" * 32,
        predicate_result=predicate_result,
        issued_at=issued_at,
        expires_at=issued_at + timedelta(hours=24),
        commitment="0" * 64,
        proof=AgeProof(
            proof={"tag": "t"},
            public_signals=PublicSignals.build(predicate_result, "f" * 32),
            metadata=ProofMetadata(
                backend="simulated",
                circuit_name="age_verification",
                reference_date=date(2024, 5, 15),
            ),
        ),
        deadline=deadline,
    )


@pytest.fixture
def engine() -> EligibilityEngine:
    return EligibilityEngine()


class TestPolicyTable:
    """Tests for JurisdictionPolicyTable."""

    def test_default_policies(self):
        table = JurisdictionPolicyTable()

        assert table["US"].max_action_amount == 10_000
        assert table["UK"].max_action_amount == 50_000
        assert table["EU"].max_action_amount == 25_000
        assert table.default.max_action_amount == 1_000
        assert len(table) == len(DEFAULT_POLICIES)

    def test_case_insensitive(self):
        table = JurisdictionPolicyTable()

        assert table["us"] is table["US"]
        assert table.resolve(" uk ") is table["UK"]

    def test_unknown_and_empty_resolve_to_default(self):
        table = JurisdictionPolicyTable()

        assert table.resolve("XX") is table.default
        assert table.resolve("") is table.default
        assert table.resolve(None) is table.default

    def test_default_entry_required(self):
        with pytest.raises(ValueError):
            JurisdictionPolicyTable([JurisdictionPolicy(code="US", max_action_amount=10)])

    def test_table_is_immutable(self):
        table = JurisdictionPolicyTable()

        with pytest.raises(TypeError):
            table._policies["FR"] = JurisdictionPolicy(code="FR", max_action_amount=1)


class TestIsValidAmount:
    """Tests for amount validation."""

    @pytest.mark.parametrize("amount", [1, 0.01, 500, 10_000.0, 10**400])
    def test_valid(self, amount):
        assert is_valid_amount(amount)

    @pytest.mark.parametrize(
        "amount",
        [0, -1, -0.5, float("nan"), float("inf"), float("-inf"), True, False, None, "100"],
    )
    def test_invalid(self, amount):
        assert not is_valid_amount(amount)


class TestEvaluate:
    """Tests for EligibilityEngine.evaluate()."""

    def test_approved_within_limit(self, engine):
        verdict = engine.evaluate(make_credential(), 500, "US", now=NOW)

        assert verdict.reason is EligibilityReason.APPROVED
        assert verdict.eligible is True
        assert verdict.can_act is True
        assert verdict.max_action_amount == 10_000
        assert verdict.jurisdiction_code == "US"
        assert verdict.message == "All eligibility requirements met"

    def test_amount_at_limit_is_approved(self, engine):
        verdict = engine.evaluate(make_credential(), 10_000, "US", now=NOW)

        assert verdict.can_act is True

    def test_amount_exceeds_limit(self, engine):
        verdict = engine.evaluate(make_credential(), 15_000, "US", now=NOW)

        assert verdict.reason is EligibilityReason.AMOUNT_EXCEEDS_LIMIT
        assert verdict.eligible is True
        assert verdict.can_act is False
        assert verdict.message == "Betting amount exceeds maximum allowed (10,000)"

    def test_huge_integer_amount_exceeds_limit(self, engine):
        """Integers beyond float range are compared exactly, not converted."""
        verdict = engine.evaluate(make_credential(), 10**400, "US", now=NOW)

        assert verdict.reason is EligibilityReason.AMOUNT_EXCEEDS_LIMIT
        assert verdict.can_act is False

    def test_unknown_jurisdiction_uses_default_limit(self, engine):
        verdict = engine.evaluate(make_credential(), 1_500, "XX", now=NOW)

        assert verdict.reason is EligibilityReason.AMOUNT_EXCEEDS_LIMIT
        assert verdict.max_action_amount == 1_000
        assert verdict.jurisdiction_code == "XX"

    def test_missing_jurisdiction_uses_default(self, engine):
        verdict = engine.evaluate(make_credential(), 100, None, now=NOW)

        assert verdict.can_act is True
        assert verdict.jurisdiction_code == "default"

    def test_lowercase_jurisdiction(self, engine):
        verdict = engine.evaluate(make_credential(), 40_000, "uk", now=NOW)

        assert verdict.can_act is True
        assert verdict.jurisdiction_code == "UK"

    def test_predicate_not_met(self, engine):
        verdict = engine.evaluate(make_credential(predicate_result=False), 100, "US", now=NOW)

        assert verdict.reason is EligibilityReason.PREDICATE_NOT_MET
        assert verdict.eligible is False
        assert verdict.can_act is False

    @pytest.mark.parametrize("amount", [0, -5, float("nan"), True, None])
    def test_invalid_amount(self, engine, amount):
        verdict = engine.evaluate(make_credential(), amount, "US", now=NOW)

        assert verdict.reason is EligibilityReason.INVALID_AMOUNT
        assert verdict.eligible is True
        assert verdict.can_act is False

    def test_restricted_jurisdiction(self):
        table = JurisdictionPolicyTable(
            [
                *DEFAULT_POLICIES,
                JurisdictionPolicy(code="ZZ", max_action_amount=5_000, restricted=True),
            ]
        )
        engine = EligibilityEngine(table)

        verdict = engine.evaluate(make_credential(), 100, "ZZ", now=NOW)

        assert verdict.reason is EligibilityReason.JURISDICTION_RESTRICTED
        assert verdict.can_act is False

    def test_min_age_is_not_enforced(self, engine):
        """A 21+ jurisdiction still accepts an 18+ credential."""
        verdict = engine.evaluate(make_credential(), 100, "US", now=NOW)

        assert verdict.can_act is True


class TestDecisionOrder:
    """Credential checks win over amount and policy checks."""

    def test_expired_wins_over_amount(self, engine):
        credential = make_credential(deadline=NOW - 1)

        verdict = engine.evaluate(credential, 1_000_000, "US", now=NOW)

        assert verdict.reason is EligibilityReason.PROOF_EXPIRED
        assert verdict.eligible is False

    def test_expired_wins_over_predicate(self, engine):
        credential = make_credential(predicate_result=False, deadline=NOW - 1)

        verdict = engine.evaluate(credential, 100, "US", now=NOW)

        assert verdict.reason is EligibilityReason.PROOF_EXPIRED

    def test_predicate_wins_over_invalid_amount(self, engine):
        verdict = engine.evaluate(make_credential(predicate_result=False), -1, "US", now=NOW)

        assert verdict.reason is EligibilityReason.PREDICATE_NOT_MET

    def test_invalid_amount_wins_over_restriction(self):
        table = JurisdictionPolicyTable(
            [
                *DEFAULT_POLICIES,
                JurisdictionPolicy(code="ZZ", max_action_amount=5_000, restricted=True),
            ]
        )

        verdict = EligibilityEngine(table).evaluate(make_credential(), 0, "ZZ", now=NOW)

        assert verdict.reason is EligibilityReason.INVALID_AMOUNT

    def test_verdict_to_dict(self, engine):
        data = engine.evaluate(make_credential(), 500, "EU", now=NOW).to_dict()

        assert data == {
            "eligible": True,
            "can_act": True,
            "reason": "Approved",
            "max_action_amount": 25_000,
            "jurisdiction_code": "EU",
            "message": "All eligibility requirements met",
        }
