"""Numeric one-time code generation backed by the OS CSPRNG."""

from __future__ import annotations

import secrets

import structlog

from otpgate.exceptions import ConfigError, GenerationError

logger = structlog.get_logger(__name__)


class ChallengeGenerator:
    """Produces fixed-width numeric codes drawn uniformly from ``[10**(n-1), 10**n)``.

    Uses ``secrets`` rather than ``random`` so codes cannot be predicted from
    process state or earlier outputs.
    """

    def __init__(self, length: int = 6) -> None:
        if length < 1:
            msg = f"Code length must be at least 1, got {length}"
            raise ConfigError(msg)
        self._length = length
        self._low = 10 ** (length - 1) if length > 1 else 0
        self._span = 10**length - self._low

    @property
    def length(self) -> int:
        return self._length

    def generate(self) -> str:
        """Return a fresh code as a string of exactly ``length`` digits."""
        try:
            value = self._low + secrets.randbelow(self._span)
        except (OSError, NotImplementedError) as exc:
            logger.error("otp_generation_failed", error=str(exc))
            msg = "Secure random source unavailable"
            raise GenerationError(msg) from exc
        return str(value).zfill(self._length)
