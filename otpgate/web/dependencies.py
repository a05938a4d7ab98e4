"""FastAPI dependency injection for shared services."""

from __future__ import annotations

from fastapi import Request

from otpgate.otp.service import ChallengeService


def get_challenge_service(request: Request) -> ChallengeService:
    """Return the challenge service owned by the running application."""
    return request.app.state.challenge_service
