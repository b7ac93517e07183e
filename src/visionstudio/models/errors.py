"""Error code definitions for VisionStudio."""

from enum import Enum


class ErrorCode(str, Enum):
    """Failure categories for generation operations."""

    # Retryable errors (retryable=True)
    RATE_LIMITED = "RATE_LIMITED"

    # Not retryable errors (retryable=False)
    INVALID_INPUT = "INVALID_INPUT"
    CREDENTIAL_MISSING = "CREDENTIAL_MISSING"
    CREDENTIAL_REJECTED = "CREDENTIAL_REJECTED"
    CONTENT_BLOCKED = "CONTENT_BLOCKED"
    BACKEND_ERROR = "BACKEND_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"


# Set of retryable error codes
RETRYABLE_ERRORS = {
    ErrorCode.RATE_LIMITED,
}

# Failures the user recovers from by picking a different credential
CREDENTIAL_ERRORS = {
    ErrorCode.CREDENTIAL_MISSING,
    ErrorCode.CREDENTIAL_REJECTED,
}


def is_retryable(code: ErrorCode) -> bool:
    """Check if an error code indicates a retryable error."""
    return code in RETRYABLE_ERRORS


def is_credential_error(code: ErrorCode) -> bool:
    """Check if an error code calls for interactive credential selection."""
    return code in CREDENTIAL_ERRORS


class GenerationFailure(Exception):
    """Classified failure raised by the builder, gate, invoker and interpreter."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        original_exception: Exception | None = None,
        tier: str | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.original_exception = original_exception
        self.tier = tier
        self.retry_after = retry_after
        self.attempts = 0

    @property
    def retryable(self) -> bool:
        return is_retryable(self.error_code)


class InputValidationError(GenerationFailure):
    """Raised when a request has neither a prompt nor reference images."""

    def __init__(self, message: str = "Describe your vision or upload a reference image."):
        super().__init__(ErrorCode.INVALID_INPUT, message)


class GenerationCancelled(Exception):
    """Raised inside the invoker when the caller abandons a request."""
