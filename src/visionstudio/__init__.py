"""VisionStudio - prompt-to-image generation with a local artifact vault."""

from visionstudio.models.artifacts import Artifact, SortOrder, VaultState
from visionstudio.models.config import RetryPolicy
from visionstudio.models.errors import ErrorCode, GenerationFailure, is_retryable
from visionstudio.models.metrics import GenerationMetrics
from visionstudio.models.requests import (
    AspectRatio,
    ImageSize,
    ModelTier,
    ReferenceImage,
    UserInput,
)
from visionstudio.models.responses import GenerationError, GenerationResult, RecoveryAction
from visionstudio.providers.base import CredentialProvider, ImageBackend
from visionstudio.providers.credentials import EnvCredentialProvider
from visionstudio.services.credential_gate import CredentialGate
from visionstudio.services.export_service import ExportService
from visionstudio.services.image_service import ImageService
from visionstudio.services.metrics_service import MetricsService
from visionstudio.services.request_builder import RequestBuilder
from visionstudio.services.retry_service import BackendInvoker
from visionstudio.services.storage import FileSlotStore, MemorySlotStore, StorageCapacityError
from visionstudio.services.vault import ArtifactVault, Cooldown
from visionstudio.studio import StudioSession, SubmissionOutcome

__version__ = "0.1.0"

__all__ = [
    # Protocols
    "CredentialProvider",
    "ImageBackend",
    # Request/response types
    "AspectRatio",
    "ImageSize",
    "ModelTier",
    "ReferenceImage",
    "UserInput",
    "GenerationResult",
    "GenerationError",
    "GenerationMetrics",
    "RecoveryAction",
    "ErrorCode",
    "GenerationFailure",
    "is_retryable",
    # Vault types
    "Artifact",
    "SortOrder",
    "VaultState",
    # Configuration
    "RetryPolicy",
    # Providers
    "EnvCredentialProvider",
    # Services
    "ArtifactVault",
    "BackendInvoker",
    "Cooldown",
    "CredentialGate",
    "ExportService",
    "ImageService",
    "MetricsService",
    "RequestBuilder",
    "FileSlotStore",
    "MemorySlotStore",
    "StorageCapacityError",
    # Session
    "StudioSession",
    "SubmissionOutcome",
]
