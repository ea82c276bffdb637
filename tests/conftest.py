"""
Test configuration and fixtures for the LocalHunt Verification API.

Every test gets its own VerificationCodeStore driven by a fake clock, so
expiry can be exercised without sleeping and no state leaks between tests.
"""

from datetime import timedelta
from typing import Generator
from unittest.mock import patch

from dotenv import load_dotenv

import pytest
from fastapi.testclient import TestClient

load_dotenv()

from app.features.verification.dependencies.store import get_verification_store  # noqa: E402
from app.features.verification.services.code_store import VerificationCodeStore  # noqa: E402
from app.platform.config import settings  # noqa: E402

TTL = timedelta(minutes=10)
TTL_MS = 10 * 60 * 1000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


@pytest.fixture(autouse=True)
def test_settings():
    """Keep tests off Redis and out of the rate limiter unless a test opts in."""
    overridden = (
        "FORCE_IN_MEMORY_RATE_LIMITER",
        "WHITELIST_IPS",
        "VERIFICATION_SWEEP_INTERVAL_SECONDS",
        "VERIFICATION_SWEEP_ON_VERIFY",
        "VERIFICATION_CODE_TTL_MINUTES",
        "MAIL_PORT",
    )
    previous = {name: getattr(settings, name) for name in overridden}
    settings.FORCE_IN_MEMORY_RATE_LIMITER = True
    settings.WHITELIST_IPS = ["testclient"]
    settings.VERIFICATION_SWEEP_INTERVAL_SECONDS = 0
    yield settings
    for name, value in previous.items():
        setattr(settings, name, value)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> VerificationCodeStore:
    return VerificationCodeStore(ttl=TTL, clock=clock)


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from app.main import app

    return app


@pytest.fixture
def mock_send_email():
    """Patch the outbound email call made by the verification service."""
    with patch("app.features.verification.services.verification.send_email") as mock_send:
        mock_send.return_value = None
        yield mock_send


@pytest.fixture(scope="function")
def client(test_app, store) -> Generator[TestClient, None, None]:
    """
    Test client whose requests all share the per-test store.
    """
    test_app.dependency_overrides[get_verification_store] = lambda: store
    with TestClient(test_app) as test_client:
        yield test_client
    test_app.dependency_overrides.pop(get_verification_store, None)
