"""Upload session controller."""
import asyncio
import enum
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, List, Optional, TYPE_CHECKING
from vidshield.client.registry import AssetRegistryClient
from vidshield.config import Settings, get_settings
from vidshield.errors import (
    AlreadyUploadingError,
    ErrorKind,
    UploadFailedError,
    ValidationError,
    VidshieldError,
)
from vidshield.schemas.video import VideoAsset

if TYPE_CHECKING:
    from vidshield.client.reconciler import LifecycleReconciler

logger = logging.getLogger(__name__)

UPLOAD_FAILED_MESSAGE = "Upload failed. Please try again."


class UploadState(str, enum.Enum):
    """Upload controller states."""
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    UPLOADING = "uploading"


@dataclass(frozen=True)
class CandidateFile:
    """A file chosen for upload, described by what the picker reports."""
    path: Path
    filename: str
    media_type: str
    size_bytes: int
    
    @classmethod
    def from_path(cls, path, media_type: Optional[str] = None) -> "CandidateFile":
        path = Path(path)
        if media_type is None:
            media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(
            path=path,
            filename=path.name,
            media_type=media_type,
            size_bytes=path.stat().st_size,
        )
    
    @property
    def suggested_title(self) -> str:
        """Filename without its extension."""
        return Path(self.filename).stem
    
    def open(self) -> BinaryIO:
        return self.path.open("rb")


class UploadSessionController:
    """Validates a candidate file and drives a single cancellable upload.
    
    State machine:
        IDLE -> FILE_SELECTED -> UPLOADING -> IDLE           (success)
                                           -> FILE_SELECTED  (failure or cancel)
        FILE_SELECTED -> IDLE                                (file removed)
    """
    
    def __init__(
        self,
        registry: AssetRegistryClient,
        reconciler: Optional["LifecycleReconciler"] = None,
        navigate: Optional[Callable[[str], None]] = None,
        settings: Optional[Settings] = None,
    ):
        self._registry = registry
        self._reconciler = reconciler
        self._navigate = navigate
        self._settings = settings or get_settings()
        
        self._state = UploadState.IDLE
        self._candidate: Optional[CandidateFile] = None
        self._title = ""
        self._progress = 0
        self._stream: Optional[BinaryIO] = None
        self._transfer: Optional[asyncio.Task] = None
        self._cancel_requested = False
        self._listeners: List[Callable[[int], None]] = []
        
        self.error: Optional[VidshieldError] = None
    
    @property
    def state(self) -> UploadState:
        return self._state
    
    @property
    def progress(self) -> int:
        return self._progress
    
    @property
    def candidate(self) -> Optional[CandidateFile]:
        return self._candidate
    
    @property
    def title(self) -> str:
        return self._title
    
    def on_progress(self, listener: Callable[[int], None]) -> None:
        self._listeners.append(listener)
    
    def validate_file(self, candidate: CandidateFile) -> None:
        """Check media type and size. Never touches the network."""
        if candidate.media_type not in self._settings.allowed_media_types:
            raise ValidationError(
                ErrorKind.UNSUPPORTED_FORMAT,
                "Invalid file type. Please upload MP4, MOV, AVI, or WebM files only.",
            )
        
        if candidate.size_bytes > self._settings.max_upload_bytes:
            limit_gb = self._settings.max_upload_bytes / (1024 ** 3)
            raise ValidationError(ErrorKind.FILE_TOO_LARGE, f"File size exceeds {limit_gb:g}GB limit.")
    
    def select(self, candidate: CandidateFile) -> None:
        """Validate and select a file, suggesting a title from its name.
        
        An invalid file leaves the previous selection untouched.
        """
        if self._state == UploadState.UPLOADING:
            raise AlreadyUploadingError()
        
        self.error = None
        try:
            self.validate_file(candidate)
        except ValidationError as e:
            self.error = e
            raise
        
        self._candidate = candidate
        self._title = candidate.suggested_title
        self._progress = 0
        self._state = UploadState.FILE_SELECTED
    
    def remove_file(self) -> None:
        """Drop the selected file and return to IDLE."""
        if self._state == UploadState.UPLOADING:
            raise AlreadyUploadingError()
        
        self._candidate = None
        self._title = ""
        self._progress = 0
        self.error = None
        self._state = UploadState.IDLE
    
    async def submit(self, candidate: Optional[CandidateFile] = None, title: Optional[str] = None) -> Optional[VideoAsset]:
        """Upload the selected (or given) file.
        
        Returns the created asset, or None when the transfer was cancelled.
        Raises ValidationError before any network call, AlreadyUploadingError
        while another transfer runs and UploadFailedError when the transfer
        fails.
        """
        if self._state == UploadState.UPLOADING:
            raise AlreadyUploadingError()
        
        if candidate is not None:
            self.select(candidate)
        if title is not None:
            self._title = title
        
        if self._candidate is None:
            self.error = ValidationError(ErrorKind.MISSING_FILE, "Please select a file to upload")
            raise self.error
        
        clean_title = self._title.strip()
        if not clean_title:
            self.error = ValidationError(ErrorKind.MISSING_TITLE, "Please enter a title for your video")
            raise self.error
        
        candidate = self._candidate
        self.error = None
        self._cancel_requested = False
        self._progress = 0
        self._stream = candidate.open()
        self._state = UploadState.UPLOADING
        
        logger.info(f"Uploading {candidate.filename} ({candidate.size_bytes} bytes)")
        self._transfer = asyncio.ensure_future(
            self._registry.upload(
                self._stream,
                filename=candidate.filename,
                media_type=candidate.media_type,
                size_bytes=candidate.size_bytes,
                title=clean_title,
                on_progress=self._report_progress,
            )
        )
        
        try:
            asset = await self._transfer
        except asyncio.CancelledError:
            self._reset_after_transfer()
            if self._cancel_requested:
                logger.info(f"Upload of {candidate.filename} cancelled")
                return None
            raise
        except VidshieldError as e:
            self._reset_after_transfer()
            message = getattr(e, "message", None) or UPLOAD_FAILED_MESSAGE
            logger.warning(f"Upload of {candidate.filename} failed: {message}")
            self.error = UploadFailedError(message)
            raise self.error from e
        
        self._release_stream()
        self._transfer = None
        self._candidate = None
        self._title = ""
        self._progress = 0
        self._state = UploadState.IDLE
        logger.info(f"Upload of {candidate.filename} finished as video {asset.id}")
        
        if self._reconciler is not None:
            self._reconciler.ingest(asset)
        if self._navigate is not None:
            self._navigate(self._settings.library_route)
        
        return asset
    
    def cancel(self) -> bool:
        """Cancel the in-flight transfer.
        
        Returns False when nothing is uploading or the transfer already
        completed on the server side.
        """
        if self._state != UploadState.UPLOADING or self._transfer is None:
            return False
        if self._transfer.done():
            # Finished but not yet handed off; the asset already exists.
            return False
        
        self._cancel_requested = True
        self._transfer.cancel()
        self._release_stream()
        self._set_progress(0)
        return True
    
    def _report_progress(self, sent: int, total: int) -> None:
        if self._state != UploadState.UPLOADING or self._cancel_requested:
            return
        
        if total <= 0:
            percent = 100
        else:
            percent = min(100, sent * 100 // total)
        
        if percent > self._progress:
            self._set_progress(percent)
    
    def _set_progress(self, value: int) -> None:
        self._progress = value
        for listener in list(self._listeners):
            listener(value)
    
    def _release_stream(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
    
    def _reset_after_transfer(self) -> None:
        self._release_stream()
        self._transfer = None
        self._set_progress(0)
        self._state = UploadState.FILE_SELECTED
