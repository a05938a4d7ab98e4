"""Exception hierarchy for otpgate."""


class OtpGateError(Exception):
    """Base exception for all otpgate errors."""

    code = "OTP_ERROR"


class ValidationError(OtpGateError):
    """Raised when caller-supplied input has the wrong shape."""

    code = "VALIDATION_ERROR"


class InvalidIdentifierError(ValidationError):
    """Raised when an identifier fails format validation."""

    code = "INVALID_PHONE"


class GenerationError(OtpGateError):
    """Raised when the secure random source cannot produce a code."""

    code = "GENERATION_ERROR"


class DeliveryError(OtpGateError):
    """Raised when a code sender fails to deliver a challenge."""

    code = "DELIVERY_ERROR"


class ConfigError(OtpGateError):
    """Raised when configuration is invalid."""

    code = "CONFIG_ERROR"
