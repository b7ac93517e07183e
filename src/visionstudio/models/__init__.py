"""Models package for VisionStudio."""

from visionstudio.models.artifacts import Artifact, SortOrder, VaultState
from visionstudio.models.config import RetryPolicy
from visionstudio.models.errors import (
    ErrorCode,
    GenerationCancelled,
    GenerationFailure,
    InputValidationError,
    is_credential_error,
    is_retryable,
)
from visionstudio.models.metrics import GenerationMetrics
from visionstudio.models.requests import (
    AspectRatio,
    BackendConfig,
    BackendRequest,
    GenerationRequest,
    ImageSize,
    InlineData,
    InlinePart,
    ModelTier,
    ReferenceImage,
    SafetySetting,
    TextPart,
    UserInput,
)
from visionstudio.models.responses import (
    BackendResponse,
    Candidate,
    GenerationError,
    GenerationResult,
    RecoveryAction,
    ResponsePart,
)

__all__ = [
    "Artifact",
    "AspectRatio",
    "BackendConfig",
    "BackendRequest",
    "BackendResponse",
    "Candidate",
    "ErrorCode",
    "GenerationCancelled",
    "GenerationError",
    "GenerationFailure",
    "GenerationMetrics",
    "GenerationRequest",
    "GenerationResult",
    "ImageSize",
    "InlineData",
    "InlinePart",
    "InputValidationError",
    "ModelTier",
    "RecoveryAction",
    "ReferenceImage",
    "ResponsePart",
    "RetryPolicy",
    "SafetySetting",
    "SortOrder",
    "TextPart",
    "UserInput",
    "VaultState",
    "is_credential_error",
    "is_retryable",
]
