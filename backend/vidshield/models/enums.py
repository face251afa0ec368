"""Enum types shared by the database models and the wire schemas."""
import enum


class Role(str, enum.Enum):
    """Identity role enum."""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class ProcessingStatus(str, enum.Enum):
    """Video processing status enum, owned by the processing pipeline."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class SensitivityStatus(str, enum.Enum):
    """Moderation outcome, meaningful only once processing has completed."""
    UNSET = "unset"
    SAFE = "safe"
    FLAGGED = "flagged"


class DisplayStatus(str, enum.Enum):
    """User-facing status derived from processing and sensitivity status."""
    PROCESSING = "Processing"
    SAFE = "Safe"
    FLAGGED = "Flagged"


class StatusFilter(str, enum.Enum):
    """Library filter tabs."""
    ALL = "all"
    PROCESSING = "processing"
    SAFE = "safe"
    FLAGGED = "flagged"
