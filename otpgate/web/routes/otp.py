"""Phone OTP routes: send, resend and verify a login challenge."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from otpgate.exceptions import OtpGateError, ValidationError
from otpgate.models.api import OtpSentResponse, SendOtpRequest, VerifyOtpRequest
from otpgate.otp.service import ChallengeService
from otpgate.types import VerifyOutcome
from otpgate.web.dependencies import get_challenge_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/otp", tags=["otp"])

_FAILURE_MESSAGES = {
    VerifyOutcome.NOT_FOUND: "OTP not found. Please request a new OTP.",
    VerifyOutcome.EXPIRED: "OTP has expired. Please request a new OTP.",
    VerifyOutcome.LOCKED: "Too many failed attempts. Please request a new OTP.",
}


def error_response(status_code: int, detail: str, code: str) -> JSONResponse:
    return JSONResponse({"detail": detail, "code": code}, status_code=status_code)


async def _issue(
    body: SendOtpRequest,
    service: ChallengeService,
    *,
    resend: bool,
) -> OtpSentResponse | JSONResponse:
    if not body.phone:
        return error_response(400, "Phone number is required", "PHONE_REQUIRED")

    operation = service.resend_challenge if resend else service.issue_challenge
    try:
        issued = await operation(body.phone)
    except ValidationError as exc:
        return error_response(400, "Invalid phone number format", exc.code)
    except OtpGateError as exc:
        logger.error("otp_issue_failed", resend=resend, error=str(exc), error_code=exc.code)
        code = "RESEND_OTP_ERROR" if resend else "SEND_OTP_ERROR"
        return error_response(500, "Failed to send OTP", code)

    return OtpSentResponse(phone=body.phone, expires_in_seconds=issued.expires_in_seconds)


@router.post("/send", response_model=None)
async def send_otp(
    body: SendOtpRequest,
    service: ChallengeService = Depends(get_challenge_service),
) -> OtpSentResponse | JSONResponse:
    """Issue a challenge for a phone number."""
    return await _issue(body, service, resend=False)


@router.post("/resend", response_model=None)
async def resend_otp(
    body: SendOtpRequest,
    service: ChallengeService = Depends(get_challenge_service),
) -> OtpSentResponse | JSONResponse:
    """Replace any live challenge for a phone number with a fresh one."""
    return await _issue(body, service, resend=True)


@router.post("/verify", response_model=None)
async def verify_otp(
    body: VerifyOtpRequest,
    service: ChallengeService = Depends(get_challenge_service),
) -> JSONResponse:
    """Check a submitted code.

    A successful result carries the verified identifier for the session
    layer to resolve; failures return 401 with the outcome as ``reason``.
    """
    if not body.phone or not body.otp:
        return error_response(400, "Phone number and OTP are required", "MISSING_FIELDS")

    result = await service.verify_challenge(body.phone, body.otp)
    if result.verified:
        return JSONResponse(result.model_dump(mode="json", exclude_none=True))

    if result.reason is VerifyOutcome.MISMATCH:
        detail = f"Invalid OTP. {result.attempts_remaining} attempts remaining."
    else:
        detail = _FAILURE_MESSAGES[result.reason]
    content = result.model_dump(mode="json", exclude_none=True)
    content["detail"] = detail
    return JSONResponse(content, status_code=401)
