"""Pure lifecycle projections and formatters for video assets."""
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Union
from vidshield.models.enums import DisplayStatus, ProcessingStatus, SensitivityStatus, StatusFilter
from vidshield.schemas.video import VideoAsset


def derive_display_status(
    processing_status: Union[ProcessingStatus, str],
    sensitivity_status: Union[SensitivityStatus, str],
) -> DisplayStatus:
    """Merge processing and moderation status into one user-facing status.
    
    Anything not completed is Processing, except failures which show as
    Flagged. A completed asset whose moderation is still unset is treated as
    not yet safe.
    """
    processing_status = ProcessingStatus(processing_status)
    sensitivity_status = SensitivityStatus(sensitivity_status)
    
    if processing_status in (ProcessingStatus.PENDING, ProcessingStatus.PROCESSING):
        return DisplayStatus.PROCESSING
    
    if processing_status == ProcessingStatus.FAILED:
        return DisplayStatus.FLAGGED
    
    if sensitivity_status == SensitivityStatus.SAFE:
        return DisplayStatus.SAFE
    if sensitivity_status == SensitivityStatus.FLAGGED:
        return DisplayStatus.FLAGGED
    return DisplayStatus.PROCESSING


def display_status_of(asset: VideoAsset) -> DisplayStatus:
    """Display status of a single asset."""
    return derive_display_status(asset.processing_status, asset.sensitivity_status)


def matches_search(asset: VideoAsset, search: str) -> bool:
    """Case-insensitive substring match over title and owner email."""
    needle = search.strip().lower()
    if not needle:
        return True
    
    if needle in asset.title.lower():
        return True
    return bool(asset.owner_email) and needle in asset.owner_email.lower()


def filter_assets(
    assets: Iterable[VideoAsset],
    search: str = "",
    status_filter: Union[StatusFilter, str] = StatusFilter.ALL,
) -> List[VideoAsset]:
    """Apply the library search box and filter tab, keeping source order."""
    status_filter = StatusFilter(status_filter)
    
    filtered = []
    for asset in assets:
        if status_filter != StatusFilter.ALL:
            if display_status_of(asset).value.lower() != status_filter.value:
                continue
        if not matches_search(asset, search):
            continue
        filtered.append(asset)
    
    return filtered


def recent_uploads(assets: Iterable[VideoAsset], limit: Optional[int] = 5) -> List[VideoAsset]:
    """Newest uploads first.
    
    sorted() is stable with reverse=True, so assets sharing an upload time
    keep the order the registry returned them in.
    """
    ordered = sorted(assets, key=lambda asset: asset.uploaded_at, reverse=True)
    if limit is None:
        return ordered
    return ordered[:limit]


def summarize(assets: Iterable[VideoAsset]) -> Dict[str, int]:
    """Dashboard counters."""
    counts = {"total": 0, "processing": 0, "safe": 0, "flagged": 0}
    for asset in assets:
        counts["total"] += 1
        counts[display_status_of(asset).value.lower()] += 1
    return counts


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def format_time_ago(uploaded_at: datetime, now: datetime) -> str:
    """Relative upload time, e.g. "5 minutes ago"."""
    elapsed = (_as_utc(now) - _as_utc(uploaded_at)).total_seconds()
    
    minutes = int(elapsed // 60)
    hours = int(elapsed // 3600)
    days = int(elapsed // 86400)
    
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} {'minute' if minutes == 1 else 'minutes'} ago"
    if hours < 24:
        return f"{hours} {'hour' if hours == 1 else 'hours'} ago"
    if days == 1:
        return "1 day ago"
    return f"{days} days ago"


def format_file_size(size_bytes: int) -> str:
    """Human readable size, e.g. "1.5 GB"."""
    if size_bytes <= 0:
        return "0 Bytes"
    
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    size = float(size_bytes)
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    
    return f"{round(size, 2):g} {units[index]}"


def format_duration(seconds: Optional[float]) -> str:
    """Duration as m:ss, or "--" while unknown."""
    if not seconds:
        return "--"
    
    total = int(seconds)
    return f"{total // 60}:{total % 60:02d}"
