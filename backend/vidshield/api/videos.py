"""Video management endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form, Header, Request
from fastapi.responses import StreamingResponse, FileResponse
from sqlalchemy.orm import Session
from typing import Iterator, List, Optional, Tuple
from pathlib import Path
import hmac
import logging
import uuid as uuid_lib
from vidshield.config import Settings
from vidshield.database import get_db
from vidshield.schemas.video import VideoAsset, VideoStatusUpdate, VideoUpdate
from vidshield.models.video import Video
from vidshield.models.user import User
from vidshield.models.enums import ProcessingStatus, SensitivityStatus
from vidshield.dependencies import get_app_settings, get_current_user, get_stream_user
from vidshield.services.access_control import can_mutate_asset, can_view_asset
from vidshield.services.lifecycle import derive_display_status

logger = logging.getLogger(__name__)

router = APIRouter()

CHUNK_SIZE = 1024 * 1024
STREAM_CHUNK_SIZE = 64 * 1024


def can_access_video(user: User, video: Video) -> bool:
    """Check if a user can see or stream a video."""
    display_status = derive_display_status(video.processing_status, video.sensitivity_status)
    return can_view_asset(user.role, video.owner_id == user.id, display_status)


def get_video_or_404(video_id: uuid_lib.UUID, db: Session) -> Video:
    video = db.query(Video).filter(Video.id == video_id).first()
    
    if not video:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Video not found"
        )
    
    return video


@router.post("/upload", response_model=VideoAsset, status_code=status.HTTP_201_CREATED)
async def upload_video(
    video: UploadFile = File(...),
    title: str = Form(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Upload a video file; processing starts as pending."""
    title = title.strip()
    if not title:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title is required"
        )
    
    # Validate file type
    if video.content_type not in settings.allowed_media_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Please upload MP4, MOV, AVI, or WebM files only."
        )
    
    # Generate unique filename
    filename = video.filename or "video.mp4"
    video_id = uuid_lib.uuid4()
    
    owner_dir = Path(settings.video_storage_path) / str(current_user.id)
    owner_dir.mkdir(parents=True, exist_ok=True)
    file_path = owner_dir / f"{video_id}{Path(filename).suffix}"
    
    # Save file, enforcing the size ceiling while copying
    size_bytes = 0
    try:
        with file_path.open("wb") as buffer:
            while True:
                chunk = await video.read(CHUNK_SIZE)
                if not chunk:
                    break
                size_bytes += len(chunk)
                if size_bytes > settings.max_upload_bytes:
                    break
                buffer.write(chunk)
    except OSError as e:
        file_path.unlink(missing_ok=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save file: {str(e)}"
        )
    
    if size_bytes > settings.max_upload_bytes:
        file_path.unlink(missing_ok=True)
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File size exceeds upload limit."
        )
    
    record = Video(
        id=video_id,
        title=title,
        owner_id=current_user.id,
        filename=filename,
        file_path=str(file_path),
        media_type=video.content_type,
        size_bytes=size_bytes,
        processing_status=ProcessingStatus.PENDING,
        sensitivity_status=SensitivityStatus.UNSET,
    )
    
    db.add(record)
    db.commit()
    db.refresh(record)
    
    logger.info(f"{current_user.email} uploaded video {record.id} ({size_bytes} bytes)")
    return record


@router.get("", response_model=List[VideoAsset])
async def list_videos(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List videos visible to the current user, newest first."""
    videos = db.query(Video).order_by(Video.uploaded_at.desc()).all()
    return [video for video in videos if can_access_video(current_user, video)]


@router.get("/{video_id}", response_model=VideoAsset)
async def get_video(
    video_id: uuid_lib.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get video by ID."""
    video = get_video_or_404(video_id, db)
    
    if not can_access_video(current_user, video):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied"
        )
    
    return video


@router.put("/{video_id}", response_model=VideoAsset)
async def update_video(
    video_id: uuid_lib.UUID,
    video_update: VideoUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update video title (owner or admin)."""
    video = get_video_or_404(video_id, db)
    
    if not can_mutate_asset(current_user.role, video.owner_id == current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Edit permission denied"
        )
    
    title = video_update.title.strip()
    if not title:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title cannot be empty"
        )
    
    video.title = title
    db.commit()
    db.refresh(video)
    
    return video


@router.put("/{video_id}/status", response_model=VideoAsset)
async def update_video_status(
    video_id: uuid_lib.UUID,
    status_update: VideoStatusUpdate,
    x_pipeline_secret: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Record processing and moderation results (processing pipeline only)."""
    if not x_pipeline_secret or not hmac.compare_digest(x_pipeline_secret, settings.pipeline_secret):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Pipeline access required"
        )
    
    video = get_video_or_404(video_id, db)
    
    video.processing_status = status_update.processing_status
    if status_update.sensitivity_status is not None:
        video.sensitivity_status = status_update.sensitivity_status
    if status_update.duration_seconds is not None:
        video.duration_seconds = status_update.duration_seconds
    
    db.commit()
    db.refresh(video)
    
    logger.info(
        f"Video {video.id} is now {video.processing_status.value}/{video.sensitivity_status.value}"
    )
    return video


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_video(
    video_id: uuid_lib.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a video (owner or admin)."""
    video = get_video_or_404(video_id, db)
    
    if not can_mutate_asset(current_user.role, video.owner_id == current_user.id, delete=True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Delete permission denied"
        )
    
    file_path = Path(video.file_path)
    
    db.delete(video)
    db.commit()
    
    try:
        file_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Failed to delete {file_path}: {e}")
    
    return None


@router.get("/{video_id}/stream")
async def stream_video(
    video_id: uuid_lib.UUID,
    request: Request,
    current_user: User = Depends(get_stream_user),
    db: Session = Depends(get_db),
):
    """Serve the video file, honouring single byte ranges.
    
    The credential may come as a bearer header or as ?token= for players
    that cannot set headers.
    """
    video = get_video_or_404(video_id, db)
    
    if not can_access_video(current_user, video):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied"
        )
    
    file_path = Path(video.file_path)
    if not file_path.exists():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Video file not found"
        )
    
    file_size = file_path.stat().st_size
    range_header = request.headers.get("range")
    
    if not range_header:
        return FileResponse(
            file_path,
            media_type=video.media_type,
            headers={"Accept-Ranges": "bytes", "Content-Length": str(file_size)},
        )
    
    start, end = byte_range(range_header, file_size)
    length = end - start + 1
    
    return StreamingResponse(
        read_file_range(file_path, start, length),
        status_code=status.HTTP_206_PARTIAL_CONTENT,
        headers={
            "Content-Range": f"bytes {start}-{end}/{file_size}",
            "Accept-Ranges": "bytes",
            "Content-Length": str(length),
            "Content-Type": video.media_type,
        }
    )


def byte_range(range_header: str, file_size: int) -> Tuple[int, int]:
    """Resolve a single "bytes=" range to inclusive offsets, or raise 416."""
    first, _, last = range_header.strip().removeprefix("bytes=").partition("-")
    
    try:
        if not first:
            # Suffix form: the last N bytes
            start, end = max(file_size - int(last), 0), file_size - 1
        else:
            start = int(first)
            end = min(int(last), file_size - 1) if last else file_size - 1
    except ValueError:
        start, end = file_size, file_size
    
    if start >= file_size or start > end:
        raise HTTPException(
            status_code=status.HTTP_416_REQUESTED_RANGE_NOT_SATISFIABLE,
            detail="Requested range not satisfiable",
            headers={"Content-Range": f"bytes */{file_size}"},
        )
    
    return start, end


def read_file_range(file_path: Path, start: int, length: int) -> Iterator[bytes]:
    with file_path.open("rb") as handle:
        handle.seek(start)
        while length > 0:
            chunk = handle.read(min(STREAM_CHUNK_SIZE, length))
            if not chunk:
                break
            length -= len(chunk)
            yield chunk
