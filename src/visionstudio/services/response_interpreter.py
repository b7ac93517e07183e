"""Extracts rendered images from backend responses and classifies failures."""

import logging
import math
import re
from typing import Any, Optional

from pydantic import BaseModel

from visionstudio.models.errors import ErrorCode, GenerationFailure
from visionstudio.models.requests import InlineData
from visionstudio.models.responses import BackendResponse

logger = logging.getLogger(__name__)

# Completion reasons that mean the output was withheld by safety filters
SAFETY_FINISH_REASONS = {
    "SAFETY",
    "IMAGE_SAFETY",
    "PROHIBITED_CONTENT",
    "BLOCKLIST",
    "SPII",
}

CONTENT_BLOCKED_MESSAGE = (
    "The request was blocked by provider-side safety filters. Try a different prompt."
)

_CREDENTIAL_MISSING_MARKERS = (
    "api key must be set",
    "api key required",
    "api key not valid",
    "api_key_invalid",
    "requested entity was not found",
)
_RATE_LIMIT_MARKERS = ("resource_exhausted", "rate limit", "quota")
_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)s\s*$")


class RenderedImage(BaseModel):
    """The image payload picked out of a successful response."""

    mime_type: str
    data: str

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def interpret(response: BackendResponse) -> RenderedImage:
    """
    Return the first image-bearing part across all candidates.

    Data presence wins over the stated completion reason: a candidate may
    report a non-success reason and still carry an image.

    Raises:
        GenerationFailure: MALFORMED_RESPONSE, CONTENT_BLOCKED or BACKEND_ERROR
    """
    if not response.candidates:
        if response.prompt_block_reason:
            raise GenerationFailure(ErrorCode.CONTENT_BLOCKED, CONTENT_BLOCKED_MESSAGE)
        raise GenerationFailure(ErrorCode.MALFORMED_RESPONSE, "Empty response from engine.")

    for candidate in response.candidates:
        for part in candidate.parts or []:
            image = _image_from(part.inline_data)
            if image is not None:
                return image

    reason = response.candidates[0].finish_reason
    if reason and reason.upper() in SAFETY_FINISH_REASONS:
        raise GenerationFailure(ErrorCode.CONTENT_BLOCKED, CONTENT_BLOCKED_MESSAGE)

    logger.error("Backend returned no image (finish reason: %s)", reason)
    raise GenerationFailure(
        ErrorCode.BACKEND_ERROR,
        f"Rendering failed with status: {reason or 'UNKNOWN'}",
    )


def _image_from(inline_data: Optional[InlineData]) -> Optional[RenderedImage]:
    if inline_data is None or not inline_data.data:
        return None
    return RenderedImage(mime_type=inline_data.mime_type or "image/png", data=inline_data.data)


def classify_transport_error(
    status_code: Optional[int],
    status: Optional[str],
    message: str,
    tier: Optional[str] = None,
    details: Any = None,
    original_exception: Exception | None = None,
) -> GenerationFailure:
    """
    Map a transport-level backend error onto the failure taxonomy.

    Args:
        status_code: HTTP-style status code, if known
        status: Backend status string (e.g. RESOURCE_EXHAUSTED)
        message: Backend error message
        tier: Tier of the failed request, recorded on credential rejections
        details: Raw error payload, searched for a retry-delay hint
        original_exception: Exception being classified

    Returns:
        The classified GenerationFailure (never raised here)
    """
    status_text = (status or "").upper()
    lowered = message.lower()

    if status_code == 429 or status_text == "RESOURCE_EXHAUSTED" or (
        status_code is None and any(marker in lowered for marker in _RATE_LIMIT_MARKERS)
    ):
        return GenerationFailure(
            ErrorCode.RATE_LIMITED,
            f"Rate limit hit: {message}",
            original_exception=original_exception,
            retry_after=retry_after_hint(details),
        )

    if any(marker in lowered for marker in _CREDENTIAL_MISSING_MARKERS) or (
        status_code == 401 or status_text == "UNAUTHENTICATED"
    ):
        return GenerationFailure(
            ErrorCode.CREDENTIAL_MISSING,
            f"Project connection required: {message}",
            original_exception=original_exception,
            tier=tier,
        )

    if status_code == 403 or status_text == "PERMISSION_DENIED":
        return GenerationFailure(
            ErrorCode.CREDENTIAL_REJECTED,
            f"Credential rejected: {message}",
            original_exception=original_exception,
            tier=tier,
        )

    label = status_code or status_text
    return GenerationFailure(
        ErrorCode.BACKEND_ERROR,
        f"Backend error {label}: {message}" if label else f"Backend error: {message}",
        original_exception=original_exception,
    )


def retry_after_hint(details: Any) -> Optional[float]:
    """Find a RetryInfo ``retryDelay`` (e.g. ``"37s"``) in an error payload."""
    if isinstance(details, dict):
        delay = details.get("retryDelay") or details.get("retry_delay")
        if isinstance(delay, (int, float)):
            return float(delay)
        if isinstance(delay, str):
            match = _DURATION_PATTERN.match(delay)
            if match:
                return float(match.group(1))
        for value in details.values():
            hint = retry_after_hint(value)
            if hint is not None:
                return hint
    elif isinstance(details, list):
        for item in details:
            hint = retry_after_hint(item)
            if hint is not None:
                return hint
    return None


def cooldown_from_hint(hint: Optional[float], default_seconds: int) -> int:
    """Whole-second cooldown for a rate-limit hint, falling back to the default."""
    if hint is None or hint <= 0:
        return default_seconds
    return max(1, math.ceil(hint))
