"""Request models for VisionStudio."""

import base64
import uuid
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class ModelTier(str, Enum):
    """Generation tiers, valued by their backend model identifier."""

    STANDARD = "gemini-2.5-flash-image"
    PRO = "gemini-3-pro-image-preview"

    @property
    def label(self) -> str:
        return "Pro" if self is ModelTier.PRO else "Standard"


class AspectRatio(str, Enum):
    """Supported output aspect ratios."""

    SQUARE = "1:1"
    PORTRAIT = "3:4"
    LANDSCAPE = "4:3"
    TALL = "9:16"
    WIDE = "16:9"


class ImageSize(str, Enum):
    """Output resolution classes (Pro tier only)."""

    SIZE_1K = "1K"
    SIZE_2K = "2K"
    SIZE_4K = "4K"


class ReferenceImage(BaseModel):
    """An uploaded image that guides generation. Immutable once created."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique upload token")
    mime_type: str = Field(..., min_length=1, description="MIME type of the image, e.g. image/png")
    data: str = Field(..., min_length=1, description="Base64-encoded image payload")

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> "ReferenceImage":
        """Create a reference image from raw file bytes."""
        return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))

    @classmethod
    def from_data_url(cls, data_url: str) -> "ReferenceImage":
        """Create a reference image from a ``data:<mime>;base64,<payload>`` URL."""
        header, _, payload = data_url.partition(",")
        if not header.startswith("data:") or not payload:
            raise ValueError("Expected a base64 data URL")
        mime_type = header[len("data:"):].split(";", 1)[0] or "application/octet-stream"
        return cls(mime_type=mime_type, data=payload)


class UserInput(BaseModel):
    """Raw user intent as collected by the submission form."""

    prompt: str = Field("", max_length=10000, description="Text description of the desired image")
    aspect_ratio: AspectRatio = Field(AspectRatio.SQUARE, description="Output aspect ratio")
    model: ModelTier = Field(ModelTier.STANDARD, description="Generation tier")
    image_size: ImageSize = Field(ImageSize.SIZE_1K, description="Output size, honoured for Pro only")
    reference_images: list[ReferenceImage] = Field(default_factory=list, description="Ordered reference images")
    seed: Optional[int] = Field(None, description="Optional seed for reproducible output")


class GenerationRequest(BaseModel):
    """A validated, normalized generation request."""

    prompt: str = Field(..., min_length=1, description="Text guidance sent to the backend")
    source_prompt: str = Field(..., description="Prompt recorded on the resulting artifact")
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    model: ModelTier = ModelTier.STANDARD
    image_size: Optional[ImageSize] = None
    reference_images: list[ReferenceImage] = Field(default_factory=list)
    seed: Optional[int] = None

    @model_validator(mode="after")
    def validate_tier_options(self):
        """Image size only means something for the Pro tier."""
        if self.image_size is not None and self.model is not ModelTier.PRO:
            raise ValueError("image_size is only supported for the Pro tier")
        return self


class InlineData(BaseModel):
    """Binary payload carried inline in a content part."""

    mime_type: str = "image/png"
    data: str = Field(..., description="Base64-encoded payload")

    def decode(self) -> bytes:
        return base64.b64decode(self.data)


class TextPart(BaseModel):
    text: str


class InlinePart(BaseModel):
    inline_data: InlineData


ContentPart = Union[TextPart, InlinePart]


class SafetySetting(BaseModel):
    category: str
    threshold: str


class BackendConfig(BaseModel):
    """Per-request generation settings understood by the backend."""

    aspect_ratio: AspectRatio
    image_size: Optional[ImageSize] = None
    seed: Optional[int] = None
    safety_settings: list[SafetySetting] = Field(default_factory=list)
    enable_search: bool = Field(False, description="Enable the search tool (Pro tier)")


class BackendRequest(BaseModel):
    """Backend-agnostic request descriptor."""

    model: ModelTier
    parts: list[ContentPart] = Field(..., min_length=1)
    config: BackendConfig

    @field_validator("parts")
    @classmethod
    def validate_has_text(cls, parts: list[ContentPart]) -> list[ContentPart]:
        if not any(isinstance(part, TextPart) and part.text for part in parts):
            raise ValueError("parts must include non-empty text guidance")
        return parts
