"""Response models for VisionStudio."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from visionstudio.models.artifacts import Artifact
from visionstudio.models.errors import ErrorCode
from visionstudio.models.metrics import GenerationMetrics
from visionstudio.models.requests import InlineData


class ResponsePart(BaseModel):
    """One content part of a backend candidate."""

    text: Optional[str] = None
    inline_data: Optional[InlineData] = None


class Candidate(BaseModel):
    """One candidate output returned by the backend."""

    parts: Optional[list[ResponsePart]] = None
    finish_reason: Optional[str] = None


class BackendResponse(BaseModel):
    """Raw backend response, reduced to the fields the interpreter reads."""

    candidates: Optional[list[Candidate]] = None
    prompt_block_reason: Optional[str] = Field(
        None, description="Set when the backend refused the prompt outright"
    )


class RecoveryAction(str, Enum):
    """What the caller should do before resubmitting."""

    SELECT_CREDENTIAL = "select_credential"
    WAIT_FOR_COOLDOWN = "wait_for_cooldown"
    REVISE_PROMPT = "revise_prompt"


class GenerationError(BaseModel):
    """Error details for failed generation operations."""

    code: ErrorCode = Field(..., description="Error category code")
    message: str = Field(..., description="User-friendly error message")
    retryable: bool = Field(..., description="Whether the client should retry this request")
    tier: Optional[str] = Field(None, description="Tier whose credential was rejected")
    retry_after: Optional[float] = Field(None, ge=0, description="Backend retry-delay hint in seconds")
    details: Optional[dict] = Field(None, description="Optional additional context for debugging")


class GenerationResult(BaseModel):
    """Outcome of a single ``generate`` call."""

    success: bool = Field(..., description="Whether an artifact was produced")
    artifact: Optional[Artifact] = Field(None, description="Produced artifact (present if success=True)")
    error: Optional[GenerationError] = Field(None, description="Error details if success=False")
    cancelled: bool = Field(False, description="The caller abandoned the request")
    recovery: Optional[RecoveryAction] = Field(None, description="Suggested recovery before resubmitting")
    cooldown_seconds: Optional[int] = Field(None, ge=1, description="Submission gate duration after rate limiting")
    metrics: Optional[GenerationMetrics] = Field(None, description="Performance tracking")

    @model_validator(mode="after")
    def validate_success_state(self):
        """Ensure success state is consistent."""
        if self.success is True:
            if self.artifact is None:
                raise ValueError("artifact must be present when success=True")
            if self.error is not None or self.cancelled:
                raise ValueError("error must be None when success=True")
        else:
            if self.artifact is not None:
                raise ValueError("artifact must be None when success=False")
            if self.error is None and not self.cancelled:
                raise ValueError("error must be present when success=False")
        if self.cooldown_seconds is not None and (
            self.error is None or self.error.code != ErrorCode.RATE_LIMITED
        ):
            raise ValueError("cooldown_seconds is only set for rate-limited failures")
        return self

    @classmethod
    def failed(cls, error: GenerationError, **kwargs) -> "GenerationResult":
        return cls(success=False, error=error, **kwargs)
