"""Typed facades over the identity and video endpoints."""
import logging
import os
from typing import BinaryIO, Callable, List, Optional, Union
import uuid
from vidshield.client.http import ApiClient
from vidshield.models.enums import Role
from vidshield.schemas.auth import Credential
from vidshield.schemas.user import Identity
from vidshield.schemas.video import VideoAsset

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
AssetId = Union[uuid.UUID, str]


class ProgressReader:
    """File wrapper reporting how many bytes httpx has read for the request body."""
    
    def __init__(self, raw: BinaryIO, total: int, on_progress: Optional[ProgressCallback] = None):
        self._raw = raw
        self._total = total
        self._on_progress = on_progress
        self._sent = 0
    
    def read(self, size: int = -1) -> bytes:
        chunk = self._raw.read(size)
        if chunk:
            self._sent += len(chunk)
            if self._on_progress is not None:
                self._on_progress(self._sent, self._total)
        return chunk
    
    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        position = self._raw.seek(offset, whence)
        if whence == os.SEEK_SET and offset == 0:
            self._sent = 0
        return position
    
    def tell(self) -> int:
        return self._raw.tell()


class IdentityClient:
    """Authentication and roster endpoints."""
    
    def __init__(self, api: ApiClient):
        self.api = api
    
    async def login(self, email: str, password: str) -> Credential:
        """Log in and store the issued credential."""
        data = await self.api.request(
            "POST", "/auth/login",
            fallback="Login failed",
            json={"email": email, "password": password},
        )
        credential = Credential.model_validate(data)
        self.api.store.set(credential)
        logger.info(f"Logged in as {credential.identity.email}")
        return credential
    
    async def register(self, display_name: str, email: str, password: str) -> Credential:
        """Register a new identity and store the issued credential."""
        data = await self.api.request(
            "POST", "/auth/register",
            fallback="Registration failed",
            json={"displayName": display_name, "email": email, "password": password},
        )
        credential = Credential.model_validate(data)
        self.api.store.set(credential)
        logger.info(f"Registered {credential.identity.email} as {credential.identity.role.value}")
        return credential
    
    def logout(self) -> None:
        self.api.store.clear()
    
    async def profile(self) -> Identity:
        """Fetch the current identity and refresh the cached claims."""
        data = await self.api.request("GET", "/auth/profile", fallback="Failed to load profile")
        identity = Identity.model_validate(data)
        
        credential = self.api.store.current()
        if credential is not None and credential.identity.id == identity.id:
            self.api.store.set(credential.model_copy(update={"identity": identity}))
        
        return identity
    
    async def list_identities(self) -> List[Identity]:
        data = await self.api.request("GET", "/auth/users", fallback="Failed to load users")
        return [Identity.model_validate(item) for item in data or []]
    
    async def change_role(self, identity_id: AssetId, role: Role) -> Identity:
        data = await self.api.request(
            "PUT", f"/auth/users/{identity_id}/role",
            fallback="Failed to update role",
            json={"role": role.value},
        )
        return Identity.model_validate(data)
    
    async def remove(self, identity_id: AssetId) -> None:
        await self.api.request("DELETE", f"/auth/users/{identity_id}", fallback="Failed to remove user")


class AssetRegistryClient:
    """CRUD facade for video asset records."""
    
    def __init__(self, api: ApiClient):
        self.api = api
    
    async def list(self) -> List[VideoAsset]:
        data = await self.api.request("GET", "/videos", fallback="Failed to load videos")
        return [VideoAsset.model_validate(item) for item in data or []]
    
    async def get(self, asset_id: AssetId) -> VideoAsset:
        data = await self.api.request("GET", f"/videos/{asset_id}", fallback="Failed to load video")
        return VideoAsset.model_validate(data)
    
    async def update_title(self, asset_id: AssetId, title: str) -> VideoAsset:
        data = await self.api.request(
            "PUT", f"/videos/{asset_id}",
            fallback="Failed to update title",
            json={"title": title},
        )
        return VideoAsset.model_validate(data)
    
    async def delete(self, asset_id: AssetId) -> None:
        await self.api.request("DELETE", f"/videos/{asset_id}", fallback="Failed to delete video")
    
    async def upload(
        self,
        stream: BinaryIO,
        filename: str,
        media_type: str,
        size_bytes: int,
        title: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> VideoAsset:
        """Upload a video as multipart form data, reporting body progress."""
        reader = ProgressReader(stream, size_bytes, on_progress)
        data = await self.api.request(
            "POST", "/videos/upload",
            fallback="Upload failed. Please try again.",
            data={"title": title},
            files={"video": (filename, reader, media_type)},
        )
        return VideoAsset.model_validate(data)
