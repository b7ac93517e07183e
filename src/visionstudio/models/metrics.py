"""Metrics models for VisionStudio."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from visionstudio.models.errors import ErrorCode


class GenerationMetrics(BaseModel):
    """Tracking data for a generation operation."""

    model_config = {"protected_namespaces": ()}

    duration_ms: int = Field(..., ge=0, description="Total generation time in milliseconds")
    model_used: Optional[str] = Field(None, description="Backend model identifier")
    attempts: int = Field(0, ge=0, description="Backend attempts made (0 = backend never called)")
    retry_count: int = Field(0, ge=0, description="Number of retries performed (0 = first attempt succeeded)")
    error_code: Optional[ErrorCode] = Field(None, description="Failure category, None on success")
    timestamp: Optional[datetime] = Field(None, description="When the generation completed (UTC)")
    input: Optional[str] = Field(None, description="Input parameters as JSON string (for observability)")

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None
