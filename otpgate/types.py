"""Enums and type aliases for otpgate."""

from collections.abc import Callable
from enum import StrEnum

Clock = Callable[[], float]


class VerifyOutcome(StrEnum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    LOCKED = "locked"
    MISMATCH = "mismatch"
