"""Builders for schema objects used across tests."""
from datetime import datetime, timezone
import uuid
from vidshield.models.enums import ProcessingStatus, Role, SensitivityStatus
from vidshield.schemas.auth import Credential
from vidshield.schemas.user import Identity
from vidshield.schemas.video import VideoAsset

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_identity(role=Role.EDITOR, email=None, **kwargs) -> Identity:
    identity_id = kwargs.pop("id", None) or uuid.uuid4()
    return Identity(
        id=identity_id,
        display_name=kwargs.pop("display_name", "Test User"),
        email=email or f"user-{identity_id.hex[:8]}@example.com",
        role=role,
        created_at=kwargs.pop("created_at", NOW),
    )


def make_credential(identity=None, token=None) -> Credential:
    identity = identity or make_identity()
    return Credential(token=token or f"token-{uuid.uuid4().hex}", identity=identity)


def make_asset(title="Clip", owner_id=None, **kwargs) -> VideoAsset:
    return VideoAsset(
        id=kwargs.pop("id", None) or uuid.uuid4(),
        title=title,
        owner_id=owner_id or uuid.uuid4(),
        owner_email=kwargs.pop("owner_email", None),
        size_bytes=kwargs.pop("size_bytes", 1024),
        duration_seconds=kwargs.pop("duration_seconds", None),
        uploaded_at=kwargs.pop("uploaded_at", NOW),
        processing_status=kwargs.pop("processing_status", ProcessingStatus.PENDING),
        sensitivity_status=kwargs.pop("sensitivity_status", SensitivityStatus.UNSET),
        filename=kwargs.pop("filename", f"{title}.mp4"),
    )
