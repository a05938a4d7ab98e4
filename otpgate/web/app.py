"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from otpgate.config.logging import setup_logging
from otpgate.config.settings import get_settings, validate_settings
from otpgate.exceptions import OtpGateError
from otpgate.otp.service import build_challenge_service
from otpgate.web.health import VERSION, check_health
from otpgate.web.middleware import RateLimitMiddleware, RequestIDMiddleware
from otpgate.web.routes.otp import router as otp_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from otpgate.config.settings import Settings
    from otpgate.otp.service import ChallengeService

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the challenge reaper for as long as the app is serving."""
    service: ChallengeService = app.state.challenge_service
    await service.start()
    try:
        yield
    finally:
        await service.stop()


def create_app(
    settings: Settings | None = None,
    service: ChallengeService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings() if settings is None else validate_settings(settings)
    setup_logging(log_level=settings.log_level, json_output=not settings.debug)

    app = FastAPI(
        title="otpgate",
        description="Phone number OTP challenge service",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.challenge_service = service or build_challenge_service(settings)

    @app.exception_handler(OtpGateError)
    async def otp_error_handler(request: Request, exc: OtpGateError) -> JSONResponse:
        logger.error("unhandled_otp_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "code": exc.code},
        )

    # Middleware (order matters — last added runs first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIDMiddleware)

    app.include_router(otp_router)

    @app.get("/api/health")
    async def health_check(request: Request) -> dict[str, object]:
        return check_health(request.app.state.challenge_service)

    logger.info("app_created")
    return app
