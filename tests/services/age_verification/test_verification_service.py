"""
Tests for the Age Verification Workflow
=======================================

Covers commitment, proof, credential and eligibility orchestration over the
simulated backend.

Version: 1.0.0
"""

import asyncio
from datetime import date, timedelta

import pytest

from services.age_verification.services.eligibility import EligibilityReason
from services.age_verification.services.verification import AgeVerificationService
from shared.errors import (
    CredentialExpiredError,
    CredentialNotFoundError,
    InvalidAttributesError,
    ProofGenerationError,
    ProofRejectedError,
)
from shared.zk.models import AttributeSet
from shared.zk.simulated import SimulatedProofBackend


class SlowBackend(SimulatedProofBackend):
    """Backend whose proving never finishes in time."""

    def __init__(self) -> None:
        super().__init__(key=b"slow")
        self.calls = 0

    async def _generate(self, *args, **kwargs):
        self.calls += 1
        await asyncio.sleep(10)
        return await super()._generate(*args, **kwargs)


class RevocableBackend(SimulatedProofBackend):
    """Backend whose verification can be switched off after issuance."""

    def __init__(self) -> None:
        super().__init__(key=b"revocable")
        self.accept = True

    async def verify(self, proof, public_signals, commitment):
        if not self.accept:
            return False
        return await super().verify(proof, public_signals, commitment)


class CrashingBackend(SimulatedProofBackend):
    """Backend that fails inside proving."""

    async def _generate(self, *args, **kwargs):
        raise RuntimeError("prover crashed")


class TestGenerateProof:
    """Tests for AgeVerificationService.generate_proof()."""

    @pytest.mark.asyncio
    async def test_adult_gets_eligible_credential(self, service, adult_attributes, clock):
        commitment = service.create_commitment(adult_attributes)

        credential, proof = await service.generate_proof(adult_attributes, commitment)

        assert credential.predicate_result is True
        assert proof.metadata.reference_date == date(2024, 5, 15)
        assert credential.expires_at == clock.now() + timedelta(hours=24)
        assert service.store.lookup(credential.credential_id) is credential

    @pytest.mark.asyncio
    async def test_minor_gets_ineligible_credential(self, service, minor_attributes):
        commitment = service.create_commitment(minor_attributes)

        credential, _ = await service.generate_proof(minor_attributes, commitment)

        assert credential.predicate_result is False

    @pytest.mark.asyncio
    async def test_same_request_reuses_credential(self, service, adult_attributes):
        commitment = service.create_commitment(adult_attributes)

        first, _ = await service.generate_proof(adult_attributes, commitment)
        second, _ = await service.generate_proof(adult_attributes, commitment.upper())

        assert first.credential_id == second.credential_id
        assert len(service.store) == 1

    @pytest.mark.asyncio
    async def test_invalid_attributes_fail_fast(self, service):
        bad = AttributeSet(1990, 13, 1, "secret")

        with pytest.raises(InvalidAttributesError):
            await service.generate_proof(bad, "0" * 64)

        assert len(service.store) == 0

    @pytest.mark.asyncio
    async def test_wrong_commitment_rejected(self, service, adult_attributes, minor_attributes):
        other = service.create_commitment(minor_attributes)

        with pytest.raises(ProofRejectedError):
            await service.generate_proof(adult_attributes, other)

        assert len(service.store) == 0

    @pytest.mark.asyncio
    async def test_backend_timeout(self, store, adult_attributes):
        """A slow backend surfaces as a generation failure, not ineligibility."""
        backend = SlowBackend()
        service = AgeVerificationService(backend=backend, store=store, proof_timeout=0.05)
        commitment = service.create_commitment(adult_attributes)

        with pytest.raises(ProofGenerationError) as exc_info:
            await service.generate_proof(adult_attributes, commitment)

        assert not isinstance(exc_info.value, ProofRejectedError)
        assert backend.calls == 1
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_backend_crash(self, store, adult_attributes):
        service = AgeVerificationService(backend=CrashingBackend(key=b"k"), store=store)
        commitment = service.create_commitment(adult_attributes)

        with pytest.raises(ProofGenerationError) as exc_info:
            await service.generate_proof(adult_attributes, commitment)

        assert exc_info.value.retryable
        assert len(store) == 0


class TestVerifyCredential:
    """Tests for AgeVerificationService.verify_credential()."""

    @pytest.mark.asyncio
    async def test_valid_credential(self, service, adult_attributes):
        commitment = service.create_commitment(adult_attributes)
        credential, _ = await service.generate_proof(adult_attributes, commitment)

        status = await service.verify_credential(credential.credential_id)

        assert status.valid is True
        assert status.eligible is True
        assert status.age == "18+"
        assert status.message == "Valid proof - user is eligible for sports betting"

    @pytest.mark.asyncio
    async def test_minor_credential(self, service, minor_attributes):
        commitment = service.create_commitment(minor_attributes)
        credential, _ = await service.generate_proof(minor_attributes, commitment)

        status = await service.verify_credential(credential.credential_id)

        assert status.valid is True
        assert status.eligible is False
        assert status.age == "under_18"

    @pytest.mark.asyncio
    async def test_unknown_credential(self, service):
        with pytest.raises(CredentialNotFoundError):
            await service.verify_credential("0" * 32)

    @pytest.mark.asyncio
    async def test_expired_credential(self, service, adult_attributes, clock):
        commitment = service.create_commitment(adult_attributes)
        credential, _ = await service.generate_proof(adult_attributes, commitment)
        clock.advance(timedelta(hours=25))

        with pytest.raises(CredentialExpiredError):
            await service.verify_credential(credential.credential_id)

    @pytest.mark.asyncio
    async def test_reverification_failure(self, store, adult_attributes):
        backend = RevocableBackend()
        service = AgeVerificationService(backend=backend, store=store)
        commitment = service.create_commitment(adult_attributes)
        credential, _ = await service.generate_proof(adult_attributes, commitment)
        backend.accept = False

        status = await service.verify_credential(credential.credential_id)

        assert status.valid is False
        assert status.eligible is False
        assert status.message == "Proof could not be verified"


class TestCheckEligibility:
    """Tests for AgeVerificationService.check_eligibility()."""

    @pytest.mark.asyncio
    async def test_approved(self, service, adult_attributes):
        commitment = service.create_commitment(adult_attributes)
        credential, _ = await service.generate_proof(adult_attributes, commitment)

        verdict = await service.check_eligibility(credential.credential_id, 500, "US")

        assert verdict.reason is EligibilityReason.APPROVED
        assert verdict.can_act is True

    @pytest.mark.asyncio
    async def test_minor_not_met(self, service, minor_attributes):
        commitment = service.create_commitment(minor_attributes)
        credential, _ = await service.generate_proof(minor_attributes, commitment)

        verdict = await service.check_eligibility(credential.credential_id, 100, "US")

        assert verdict.reason is EligibilityReason.PREDICATE_NOT_MET

    @pytest.mark.asyncio
    async def test_expired_credential_verdict(self, service, adult_attributes, clock):
        commitment = service.create_commitment(adult_attributes)
        credential, _ = await service.generate_proof(adult_attributes, commitment)
        clock.advance(timedelta(hours=24, seconds=1))

        verdict = await service.check_eligibility(credential.credential_id, 100, "US")

        assert verdict.reason is EligibilityReason.PROOF_EXPIRED
        assert verdict.eligible is False

    @pytest.mark.asyncio
    async def test_unknown_credential(self, service):
        with pytest.raises(CredentialNotFoundError):
            await service.check_eligibility("0" * 32, 100, "US")

    @pytest.mark.asyncio
    async def test_reverification_failure_is_not_met(self, store, adult_attributes):
        """A stored true result is not trusted once the proof stops verifying."""
        backend = RevocableBackend()
        service = AgeVerificationService(backend=backend, store=store)
        commitment = service.create_commitment(adult_attributes)
        credential, _ = await service.generate_proof(adult_attributes, commitment)
        backend.accept = False

        verdict = await service.check_eligibility(credential.credential_id, 100, "US")

        assert verdict.reason is EligibilityReason.PREDICATE_NOT_MET
        assert store.get(credential.credential_id).predicate_result is True
