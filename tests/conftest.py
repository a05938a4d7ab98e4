"""Shared test fixtures."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from otpgate.config.settings import Settings
from otpgate.otp.generator import ChallengeGenerator
from otpgate.otp.service import build_challenge_service
from otpgate.otp.store import ChallengeStore
from otpgate.web.app import create_app


class FakeClock:
    """Manually advanced clock standing in for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSender:
    """Code sender that keeps the last code delivered per identifier."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, int]] = []

    async def send(self, identifier: str, code: str, expires_in_seconds: int) -> None:
        self.sent.append((identifier, code, expires_in_seconds))

    def last_code(self, identifier: str) -> str:
        return next(code for ident, code, _ in reversed(self.sent) if ident == identifier)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> ChallengeStore:
    return ChallengeStore(ChallengeGenerator(), ttl_seconds=300, max_attempts=3, clock=clock)


@pytest.fixture()
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture()
def settings() -> Settings:
    return Settings(rate_limit_requests=1000)


@pytest.fixture()
def service(settings: Settings, sender: RecordingSender, clock: FakeClock):
    return build_challenge_service(settings, sender=sender, clock=clock)


@pytest.fixture()
def app(settings: Settings, service):
    """Create a fresh app instance wired to the test service."""
    return create_app(settings=settings, service=service)


@pytest.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
