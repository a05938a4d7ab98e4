"""API request/response schemas for the challenge surface."""

from pydantic import BaseModel

from otpgate.types import VerifyOutcome


class SendOtpRequest(BaseModel):
    phone: str | None = None


class VerifyOtpRequest(BaseModel):
    phone: str | None = None
    otp: str | None = None


class ChallengeIssued(BaseModel):
    expires_in_seconds: int


class ChallengeVerification(BaseModel):
    verified: bool
    identifier: str | None = None
    reason: VerifyOutcome | None = None
    attempts_remaining: int | None = None


class OtpSentResponse(BaseModel):
    phone: str
    expires_in_seconds: int
