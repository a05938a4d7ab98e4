"""Delivery port for issued codes."""

from __future__ import annotations

from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class CodeSender(Protocol):
    """Delivers a code to the holder of ``identifier``.

    Implementations raise ``DeliveryError`` when the code could not be sent.
    """

    async def send(self, identifier: str, code: str, expires_in_seconds: int) -> None: ...


class LoggingCodeSender:
    """Development sender that writes the code to the log instead of an SMS gateway."""

    async def send(self, identifier: str, code: str, expires_in_seconds: int) -> None:
        logger.info(
            "otp_dev_delivery",
            identifier=identifier,
            code=code,
            expires_in_seconds=expires_in_seconds,
        )
