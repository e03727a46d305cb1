"""
Test Configuration
==================

Pytest fixtures for AgeProof tests.
"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, date, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["PROOF_BACKEND"] = "simulated"


REFERENCE_DATE = date(2024, 5, 15)


class FakeClock:
    """Controllable wall and monotonic clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self._wall = start or datetime(2024, 5, 15, 12, 0, tzinfo=UTC)
        self._mono = 1_000.0

    def now(self) -> datetime:
        return self._wall

    def monotonic(self) -> float:
        return self._mono

    def advance(self, delta: timedelta) -> None:
        self._wall += delta
        self._mono += delta.total_seconds()


@pytest.fixture
def clock() -> FakeClock:
    """Clock pinned to 2024-05-15 12:00 UTC."""
    return FakeClock()


@pytest.fixture
def backend():
    """Simulated proof backend with a fixed key."""
    from shared.zk.simulated import SimulatedProofBackend

    return SimulatedProofBackend(key=b"test-signing-key")


@pytest.fixture
def store(clock: FakeClock):
    """Empty credential store driven by the fake clock."""
    from services.age_verification.services.credential_store import CredentialStore

    return CredentialStore(shard_count=4, clock=clock)


@pytest.fixture
def service(backend, store):
    """Age verification service over the simulated backend."""
    from services.age_verification.services.verification import AgeVerificationService

    return AgeVerificationService(backend=backend, store=store, proof_timeout=5.0)


@pytest_asyncio.fixture
async def age_verification_client(service) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Age Verification Service."""
    from services.age_verification.dependencies import (
        reset_verification_service,
        set_verification_service,
    )
    from services.age_verification.main import app

    set_verification_service(service)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    reset_verification_service()


@pytest.fixture
def adult_attributes():
    """Holder born 1990-05-15 (34 on the reference date)."""
    from shared.zk.models import AttributeSet

    return AttributeSet(
        birth_year=1990,
        birth_month=5,
        birth_day=15,
        identity_secret="adult-identity-secret",
    )


@pytest.fixture
def minor_attributes():
    """Holder born 2010-01-01 (14 on the reference date)."""
    from shared.zk.models import AttributeSet

    return AttributeSet(
        birth_year=2010,
        birth_month=1,
        birth_day=1,
        identity_secret="minor-identity-secret",
    )


@pytest.fixture
def adult_payload() -> dict[str, object]:
    """Request body for the adult holder."""
    return {
        "birthYear": 1990,
        "birthMonth": 5,
        "birthDay": 15,
        "identitySecret": "adult-identity-secret",
    }


@pytest.fixture
def minor_payload() -> dict[str, object]:
    """Request body for the minor holder."""
    return {
        "birthYear": 2010,
        "birthMonth": 1,
        "birthDay": 1,
        "identitySecret": "minor-identity-secret",
    }
