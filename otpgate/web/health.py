"""Health check endpoint logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from otpgate.otp.service import ChallengeService

VERSION = "0.1.0"


def check_health(service: ChallengeService) -> dict[str, object]:
    """Return application health status with challenge store stats."""
    reaper = service.reaper
    reaper_running = reaper is not None and reaper.running
    return {
        "status": "healthy" if reaper_running else "degraded",
        "version": VERSION,
        "active_challenges": len(service.store),
        "reaper_running": reaper_running,
    }
