"""Database models."""
from vidshield.models.user import User
from vidshield.models.video import Video
from vidshield.models.enums import (
    DisplayStatus,
    ProcessingStatus,
    Role,
    SensitivityStatus,
    StatusFilter,
)

__all__ = [
    "User",
    "Video",
    "DisplayStatus",
    "ProcessingStatus",
    "Role",
    "SensitivityStatus",
    "StatusFilter",
]
