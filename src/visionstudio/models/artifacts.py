"""Artifact and vault state models."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from visionstudio.models.requests import AspectRatio, ModelTier


class Artifact(BaseModel):
    """A completed generated image plus its generation metadata."""

    model_config = {"frozen": True}

    id: str = Field(..., min_length=1, description="Unique artifact token")
    url: str = Field(..., description="data: URL holding the rendered image")
    source_prompt: str = Field(..., description="Prompt the artifact was generated from")
    model: ModelTier = Field(..., description="Tier that produced the artifact")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the artifact was created",
    )
    aspect_ratio: AspectRatio = Field(..., description="Aspect ratio requested")

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        """Store creation times as UTC-aware so they always compare."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def mime_type(self) -> str:
        header = self.url.split(",", 1)[0]
        if header.startswith("data:"):
            return header[len("data:"):].split(";", 1)[0] or "image/png"
        return "image/png"


class SortOrder(str, Enum):
    """Display order for vault queries."""

    NEWEST = "newest"
    OLDEST = "oldest"


class VaultState(BaseModel):
    """Snapshot of the vault for display."""

    artifacts: list[Artifact] = Field(default_factory=list)
    cooldown_remaining_seconds: int = Field(0, ge=0)

    @property
    def can_submit(self) -> bool:
        return self.cooldown_remaining_seconds == 0
