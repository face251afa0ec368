"""Lifecycle reconciler: cached asset list with derived display status."""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Union
from vidshield.client.credentials import CredentialStore
from vidshield.client.registry import AssetId, AssetRegistryClient
from vidshield.config import Settings, get_settings
from vidshield.errors import (
    AuthorizationError,
    ConflictOrNotFoundError,
    ErrorKind,
    ValidationError,
    VidshieldError,
)
from vidshield.models.enums import DisplayStatus, StatusFilter
from vidshield.schemas.video import VideoAsset
from vidshield.services.access_control import can_mutate_asset
from vidshield.services.lifecycle import (
    display_status_of,
    filter_assets,
    format_time_ago,
    recent_uploads,
    summarize,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AssetView:
    """One library row: the asset and what the user should see for it."""
    asset: VideoAsset
    display_status: DisplayStatus
    uploaded_ago: str


@dataclass(frozen=True)
class DeletionRequest:
    """First step of a two-step asset deletion."""
    asset_id: AssetId


class LifecycleReconciler:
    """Fetches video assets and keeps the latest good list for display.
    
    Overlapping fetches are tagged with increasing sequence numbers; a
    response older than the last applied one is dropped, and so is any
    response to a fetch issued before a confirmed local change (upload
    hand-off, rename, delete). Failed fetches
    leave the cached list untouched. After close(), nothing is applied.
    """
    
    def __init__(
        self,
        registry: AssetRegistryClient,
        store: CredentialStore,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        self._registry = registry
        self._store = store
        self._clock = clock or utc_now
        self._settings = settings or get_settings()
        
        self._assets: List[VideoAsset] = []
        self._issued = 0
        self._applied = 0
        self._closed = False
        self._poller: Optional[asyncio.Task] = None
        self._pending_deletions: Dict[str, DeletionRequest] = {}
        
        self.loaded = False
        self.error: Optional[VidshieldError] = None
    
    @property
    def assets(self) -> List[VideoAsset]:
        return list(self._assets)
    
    @property
    def closed(self) -> bool:
        return self._closed
    
    async def refresh(self) -> bool:
        """Fetch the asset list.
        
        Returns True when the response was applied, False when it was stale
        or arrived after close(). Fetch failures are recorded on `error` and
        re-raised.
        """
        self._issued += 1
        sequence = self._issued
        
        try:
            assets = await self._registry.list()
        except VidshieldError as e:
            if not self._closed and sequence > self._applied:
                self.error = e
            logger.warning(f"Failed to load videos: {e}")
            raise
        
        if self._closed:
            return False
        
        if sequence <= self._applied:
            logger.debug(f"Discarding stale video list #{sequence} (latest applied #{self._applied})")
            return False
        
        self._assets = assets
        self._applied = sequence
        self.loaded = True
        self.error = None
        return True
    
    def view(self, search: str = "", status_filter: Union[StatusFilter, str] = StatusFilter.ALL) -> List[AssetView]:
        """Filtered library rows, in registry order."""
        now = self._clock()
        return [self._row(asset, now) for asset in filter_assets(self._assets, search, status_filter)]
    
    def recent(self, limit: Optional[int] = None) -> List[AssetView]:
        """Newest uploads first for the dashboard."""
        if limit is None:
            limit = self._settings.recent_uploads_limit
        now = self._clock()
        return [self._row(asset, now) for asset in recent_uploads(self._assets, limit)]
    
    def summary(self) -> Dict[str, int]:
        return summarize(self._assets)
    
    def _row(self, asset: VideoAsset, now: datetime) -> AssetView:
        return AssetView(
            asset=asset,
            display_status=display_status_of(asset),
            uploaded_ago=format_time_ago(asset.uploaded_at, now),
        )
    
    def find(self, asset_id: AssetId) -> Optional[VideoAsset]:
        for asset in self._assets:
            if str(asset.id) == str(asset_id):
                return asset
        return None
    
    def ingest(self, asset: VideoAsset) -> None:
        """Add or replace an asset, e.g. one handed over by a finished upload."""
        if self._closed:
            return
        
        self._supersede_pending_fetches()
        for index, existing in enumerate(self._assets):
            if existing.id == asset.id:
                self._assets[index] = asset
                return
        self._assets.insert(0, asset)
    
    def _forget(self, asset_id: AssetId) -> None:
        self._supersede_pending_fetches()
        self._assets = [asset for asset in self._assets if str(asset.id) != str(asset_id)]
    
    def _supersede_pending_fetches(self) -> None:
        # A confirmed local change is newer than any list fetched before it.
        self._applied = self._issued
    
    def can_edit(self, asset: VideoAsset, delete: bool = False) -> bool:
        """Whether the current identity may edit (or delete) `asset`."""
        credential = self._store.current()
        if credential is None:
            return False
        
        identity = credential.identity
        return can_mutate_asset(identity.role, asset.owner_id == identity.id, delete=delete)
    
    def _check_allowed(self, asset_id: AssetId, delete: bool) -> None:
        asset = self.find(asset_id)
        # Unknown assets are left for the server to judge.
        if asset is not None and not self.can_edit(asset, delete=delete):
            verb = "delete" if delete else "edit"
            raise AuthorizationError(f"You do not have permission to {verb} this video")
    
    async def rename(self, asset_id: AssetId, title: str) -> VideoAsset:
        """Change an asset's title."""
        title = title.strip()
        if not title:
            raise ValidationError(ErrorKind.MISSING_TITLE, "Title cannot be empty")
        
        self._check_allowed(asset_id, delete=False)
        
        try:
            asset = await self._registry.update_title(asset_id, title)
        except ConflictOrNotFoundError:
            self._forget(asset_id)
            raise
        
        self.ingest(asset)
        return asset
    
    def request_deletion(self, asset_id: AssetId) -> DeletionRequest:
        """First step of deleting an asset; confirm with delete()."""
        self._check_allowed(asset_id, delete=True)
        request = DeletionRequest(asset_id)
        self._pending_deletions[str(asset_id)] = request
        return request
    
    def cancel_deletion(self, request: DeletionRequest) -> None:
        self._pending_deletions.pop(str(request.asset_id), None)
    
    async def delete(self, request: DeletionRequest) -> None:
        """Delete a confirmed asset; the row stays until the server agrees."""
        key = str(request.asset_id)
        if self._pending_deletions.get(key) is not request:
            raise ValueError("Deletion was not requested or already handled")
        del self._pending_deletions[key]
        
        try:
            await self._registry.delete(request.asset_id)
        except ConflictOrNotFoundError:
            self._forget(request.asset_id)
            raise
        
        self._forget(request.asset_id)
        logger.info(f"Deleted video {request.asset_id}")
    
    def start_polling(self, interval: Optional[float] = None) -> asyncio.Task:
        """Refresh in the background until close()."""
        if self._closed:
            raise RuntimeError("Reconciler is closed")
        if self._poller is not None and not self._poller.done():
            return self._poller
        
        if interval is None:
            interval = self._settings.poll_interval_seconds
        self._poller = asyncio.ensure_future(self._poll(interval))
        return self._poller
    
    async def _poll(self, interval: float) -> None:
        while not self._closed:
            try:
                await self.refresh()
            except VidshieldError:
                # Recorded on self.error; keep showing the cached list and retry.
                pass
            await asyncio.sleep(interval)
    
    async def close(self) -> None:
        """Stop polling; responses arriving later are discarded."""
        self._closed = True
        poller, self._poller = self._poller, None
        if poller is not None and not poller.done():
            poller.cancel()
            try:
                await poller
            except asyncio.CancelledError:
                pass
    
    async def __aenter__(self) -> "LifecycleReconciler":
        return self
    
    async def __aexit__(self, *exc_info) -> None:
        await self.close()
