"""Video asset schemas."""
from pydantic import Field
from datetime import datetime
from typing import Optional
import uuid
from vidshield.models.enums import ProcessingStatus, SensitivityStatus
from vidshield.schemas.base import CamelModel


class VideoAsset(CamelModel):
    """Video asset record."""
    id: uuid.UUID
    title: str
    owner_id: uuid.UUID
    owner_email: Optional[str] = None
    size_bytes: int
    duration_seconds: Optional[float] = None
    uploaded_at: datetime
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    sensitivity_status: SensitivityStatus = SensitivityStatus.UNSET
    filename: str


class VideoUpdate(CamelModel):
    """Title update request body."""
    title: str = Field(..., min_length=1, max_length=500)


class VideoStatusUpdate(CamelModel):
    """Status report sent by the processing pipeline."""
    processing_status: ProcessingStatus
    sensitivity_status: Optional[SensitivityStatus] = None
    duration_seconds: Optional[float] = Field(default=None, ge=0)
