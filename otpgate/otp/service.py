"""Verification surface over the challenge store."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import structlog

from otpgate.config.settings import DEFAULT_IDENTIFIER_PATTERN
from otpgate.exceptions import InvalidIdentifierError
from otpgate.models.api import ChallengeIssued, ChallengeVerification
from otpgate.otp.generator import ChallengeGenerator
from otpgate.otp.reaper import ChallengeReaper
from otpgate.otp.sender import LoggingCodeSender
from otpgate.otp.store import ChallengeStore

if TYPE_CHECKING:
    from otpgate.config.settings import Settings
    from otpgate.otp.sender import CodeSender
    from otpgate.types import Clock

logger = structlog.get_logger(__name__)


class ChallengeService:
    """Issues, resends and verifies challenges for validated identifiers.

    Owns the store and, when given one, the reaper that sweeps it. The
    reaper runs between ``start()`` and ``stop()``.
    """

    def __init__(
        self,
        store: ChallengeStore,
        sender: CodeSender,
        reaper: ChallengeReaper | None = None,
        identifier_pattern: str = DEFAULT_IDENTIFIER_PATTERN,
    ) -> None:
        self._store = store
        self._sender = sender
        self._reaper = reaper
        self._identifier_re = re.compile(identifier_pattern)

    @property
    def store(self) -> ChallengeStore:
        return self._store

    @property
    def reaper(self) -> ChallengeReaper | None:
        return self._reaper

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._reaper is not None:
            self._reaper.start()

    async def stop(self) -> None:
        if self._reaper is not None:
            await self._reaper.stop()

    async def __aenter__(self) -> ChallengeService:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def validate_identifier(self, identifier: str) -> str:
        if not isinstance(identifier, str) or not self._identifier_re.fullmatch(identifier):
            msg = f"Identifier does not match the required format {self._identifier_re.pattern}"
            raise InvalidIdentifierError(msg)
        return identifier

    async def issue_challenge(self, identifier: str) -> ChallengeIssued:
        self.validate_identifier(identifier)
        issued = await self._store.issue(identifier)
        await self._sender.send(identifier, issued.code, issued.expires_in_seconds)
        return ChallengeIssued(expires_in_seconds=issued.expires_in_seconds)

    async def resend_challenge(self, identifier: str) -> ChallengeIssued:
        self.validate_identifier(identifier)
        issued = await self._store.resend(identifier)
        await self._sender.send(identifier, issued.code, issued.expires_in_seconds)
        return ChallengeIssued(expires_in_seconds=issued.expires_in_seconds)

    async def verify_challenge(self, identifier: str, code: str) -> ChallengeVerification:
        """Map a store outcome to the caller-facing verification result."""
        result = await self._store.verify(identifier, code)
        if result.verified:
            return ChallengeVerification(verified=True, identifier=result.identifier)
        return ChallengeVerification(
            verified=False,
            reason=result.outcome,
            attempts_remaining=result.attempts_remaining,
        )


def build_challenge_service(
    settings: Settings,
    sender: CodeSender | None = None,
    clock: Clock | None = None,
) -> ChallengeService:
    """Wire a service, its store and its reaper from settings."""
    generator = ChallengeGenerator(length=settings.otp_code_length)
    store_kwargs: dict[str, Any] = {}
    if clock is not None:
        store_kwargs["clock"] = clock
    store = ChallengeStore(
        generator,
        ttl_seconds=settings.otp_ttl_seconds,
        max_attempts=settings.otp_max_attempts,
        **store_kwargs,
    )
    reaper = ChallengeReaper(store, interval_seconds=settings.otp_reaper_interval_seconds)
    return ChallengeService(
        store,
        sender or LoggingCodeSender(),
        reaper=reaper,
        identifier_pattern=settings.identifier_pattern,
    )
