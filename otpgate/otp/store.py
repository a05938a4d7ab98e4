"""In-memory OTP challenge store with per-identifier exclusion.

The store is the only owner of challenge records. Every operation that
touches an identifier runs inside that identifier's critical section, so
``issue``, ``resend`` and ``verify`` on the same identifier are totally
ordered while distinct identifiers proceed independently.
"""

from __future__ import annotations

import hmac
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from otpgate.otp.locks import KeyedLock
from otpgate.types import VerifyOutcome

if TYPE_CHECKING:
    from otpgate.otp.generator import ChallengeGenerator
    from otpgate.types import Clock

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 300
DEFAULT_MAX_ATTEMPTS = 3


def _codes_match(expected: str, submitted: str) -> bool:
    # compare_digest rejects non-ASCII str; such input can never equal a numeric code
    return submitted.isascii() and hmac.compare_digest(expected, submitted)


@dataclass
class ChallengeRecord:
    """A live challenge bound to one identifier."""

    identifier: str
    code: str
    issued_at: float
    expires_at: float
    attempts: int = 0

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class IssuedChallenge:
    code: str
    expires_in_seconds: int


@dataclass(frozen=True)
class VerifyResult:
    """Outcome of a single ``verify`` call.

    ``attempts_remaining`` is only set for ``VerifyOutcome.MISMATCH``.
    """

    outcome: VerifyOutcome
    identifier: str
    attempts_remaining: int | None = None

    @property
    def verified(self) -> bool:
        return self.outcome is VerifyOutcome.SUCCESS


class ChallengeStore:
    """Keyed ephemeral store mapping identifier to its single live challenge."""

    def __init__(
        self,
        generator: ChallengeGenerator,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Clock = time.time,
    ) -> None:
        self._generator = generator
        self._ttl = ttl_seconds
        self._max_attempts = max_attempts
        self._clock = clock
        self._records: dict[str, ChallengeRecord] = {}
        self._locks = KeyedLock()

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._records

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    async def issue(self, identifier: str) -> IssuedChallenge:
        """Install a fresh challenge, replacing any prior one for ``identifier``."""
        code = self._generator.generate()
        async with self._locks.hold(identifier):
            replaced = self._install(identifier, code)
        logger.info("otp_issued", identifier=identifier, replaced=replaced)
        return IssuedChallenge(code=code, expires_in_seconds=self._ttl)

    async def resend(self, identifier: str) -> IssuedChallenge:
        """Drop the current challenge and issue a new one as a single step."""
        code = self._generator.generate()
        async with self._locks.hold(identifier):
            superseded = self._records.pop(identifier, None) is not None
            self._install(identifier, code)
        logger.info("otp_resent", identifier=identifier, superseded=superseded)
        return IssuedChallenge(code=code, expires_in_seconds=self._ttl)

    def _install(self, identifier: str, code: str) -> bool:
        now = self._clock()
        replaced = identifier in self._records
        self._records[identifier] = ChallengeRecord(
            identifier=identifier,
            code=code,
            issued_at=now,
            expires_at=now + self._ttl,
        )
        return replaced

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    async def verify(self, identifier: str, submitted_code: str) -> VerifyResult:
        """Resolve a submitted code against the live challenge.

        Checks run in a fixed order: existence, expiry, lockout, then code
        comparison. An expired or locked record is deleted before it can be
        compared, so neither leaks attempt counts through a mismatch.
        """
        async with self._locks.hold(identifier):
            record = self._records.get(identifier)
            if record is None:
                logger.info("otp_verify_not_found", identifier=identifier)
                return VerifyResult(VerifyOutcome.NOT_FOUND, identifier)

            if record.is_expired(self._clock()):
                del self._records[identifier]
                logger.info("otp_verify_expired", identifier=identifier)
                return VerifyResult(VerifyOutcome.EXPIRED, identifier)

            if record.attempts >= self._max_attempts:
                del self._records[identifier]
                logger.warning("otp_verify_locked", identifier=identifier)
                return VerifyResult(VerifyOutcome.LOCKED, identifier)

            if not _codes_match(record.code, submitted_code):
                record.attempts += 1
                if record.attempts >= self._max_attempts:
                    del self._records[identifier]
                    logger.warning(
                        "otp_verify_locked", identifier=identifier, attempts=record.attempts
                    )
                    return VerifyResult(VerifyOutcome.LOCKED, identifier)
                remaining = self._max_attempts - record.attempts
                logger.info(
                    "otp_verify_mismatch", identifier=identifier, attempts_remaining=remaining
                )
                return VerifyResult(VerifyOutcome.MISMATCH, identifier, remaining)

            del self._records[identifier]
        logger.info("otp_verified", identifier=identifier)
        return VerifyResult(VerifyOutcome.SUCCESS, identifier)

    # ------------------------------------------------------------------
    # Garbage collection
    # ------------------------------------------------------------------

    async def evict_expired(self) -> int:
        """Delete every expired challenge and return how many were removed.

        Each candidate is re-checked under its own lock, so a concurrent
        ``issue`` that refreshed the record in the meantime is left alone.
        """
        now = self._clock()
        candidates = [k for k, r in self._records.items() if r.is_expired(now)]
        evicted = 0
        for identifier in candidates:
            async with self._locks.hold(identifier):
                record = self._records.get(identifier)
                if record is not None and record.is_expired(self._clock()):
                    del self._records[identifier]
                    evicted += 1
        if evicted:
            logger.info("otp_evicted", count=evicted, remaining=len(self._records))
        return evicted
