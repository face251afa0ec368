"""Tests for the upload session controller."""
import asyncio
from pathlib import Path
import pytest
from factories import make_asset
from vidshield.client import CandidateFile, LifecycleReconciler, UploadSessionController, UploadState
from vidshield.errors import (
    AlreadyUploadingError,
    ApiError,
    ErrorKind,
    TransportError,
    UploadFailedError,
    ValidationError,
)
from vidshield.models.enums import ProcessingStatus


class FakeRegistry:
    """Registry double whose upload pauses at 40% until released."""
    
    def __init__(self, error=None):
        self.error = error
        self.calls = 0
        self.streams = []
        self.created = []
        self.reached_40 = asyncio.Event()
        self.release = asyncio.Event()
        self.finished = asyncio.Event()
    
    async def upload(self, stream, filename, media_type, size_bytes, title, on_progress=None):
        self.calls += 1
        self.streams.append(stream)
        on_progress(size_bytes * 40 // 100, size_bytes)
        self.reached_40.set()
        await self.release.wait()
        if self.error is not None:
            raise self.error
        on_progress(size_bytes, size_bytes)
        asset = make_asset(title=title, filename=filename, size_bytes=size_bytes)
        self.created.append(asset)
        self.finished.set()
        return asset
    
    async def list(self):
        return list(self.created)


@pytest.fixture
def video_file(tmp_path) -> CandidateFile:
    path = tmp_path / "holiday.mp4"
    path.write_bytes(b"\x00" * 1000)
    return CandidateFile.from_path(path)


@pytest.fixture
def fake_registry():
    return FakeRegistry()


@pytest.fixture
def controller(fake_registry, settings, navigations):
    return UploadSessionController(fake_registry, navigate=navigations.append, settings=settings)


def test_candidate_from_path(video_file):
    assert video_file.filename == "holiday.mp4"
    assert video_file.media_type == "video/mp4"
    assert video_file.size_bytes == 1000
    assert video_file.suggested_title == "holiday"


async def test_unsupported_format_never_hits_the_network(controller, fake_registry, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("not a video")
    candidate = CandidateFile.from_path(path)
    
    with pytest.raises(ValidationError) as excinfo:
        await controller.submit(candidate, "Notes")
    
    assert excinfo.value.kind == ErrorKind.UNSUPPORTED_FORMAT
    assert fake_registry.calls == 0
    assert controller.state == UploadState.IDLE
    assert controller.candidate is None


def test_size_ceiling_is_inclusive(controller, settings):
    ceiling = settings.max_upload_bytes
    at_limit = CandidateFile(Path("big.mp4"), "big.mp4", "video/mp4", ceiling)
    over_limit = CandidateFile(Path("bigger.mp4"), "bigger.mp4", "video/mp4", ceiling + 1)
    
    controller.select(at_limit)
    assert controller.state == UploadState.FILE_SELECTED
    
    with pytest.raises(ValidationError) as excinfo:
        controller.select(over_limit)
    assert excinfo.value.kind == ErrorKind.FILE_TOO_LARGE
    assert controller.candidate is at_limit


def test_default_ceiling_is_five_gib():
    from vidshield.config import Settings
    
    assert Settings(_env_file=None).max_upload_bytes == 5 * 1024 ** 3


async def test_blank_title_is_rejected(controller, fake_registry, video_file):
    with pytest.raises(ValidationError) as excinfo:
        await controller.submit(video_file, "   ")
    
    assert excinfo.value.kind == ErrorKind.MISSING_TITLE
    assert fake_registry.calls == 0
    assert controller.state == UploadState.FILE_SELECTED


async def test_submit_without_file(controller):
    with pytest.raises(ValidationError) as excinfo:
        await controller.submit(title="Something")
    assert excinfo.value.kind == ErrorKind.MISSING_FILE


async def test_successful_upload_hands_off(fake_registry, settings, navigations, store, video_file):
    reconciler = LifecycleReconciler(fake_registry, store, settings=settings)
    controller = UploadSessionController(fake_registry, reconciler, navigations.append, settings)
    progress = []
    controller.on_progress(progress.append)
    
    fake_registry.release.set()
    asset = await controller.submit(video_file, "  Holiday  ")
    
    assert asset.title == "Holiday"
    assert progress == [40, 100]
    assert controller.state == UploadState.IDLE
    assert controller.progress == 0
    assert controller.candidate is None
    assert reconciler.assets == [asset]
    assert navigations == ["/videos"]
    assert fake_registry.streams[0].closed


async def test_second_upload_is_rejected(controller, fake_registry, video_file, tmp_path):
    other_path = tmp_path / "other.webm"
    other_path.write_bytes(b"\x01" * 10)
    
    task = asyncio.create_task(controller.submit(video_file, "Holiday"))
    await fake_registry.reached_40.wait()
    
    with pytest.raises(AlreadyUploadingError) as excinfo:
        await controller.submit(CandidateFile.from_path(other_path), "Other")
    
    assert excinfo.value.kind == ErrorKind.ALREADY_UPLOADING
    assert controller.progress == 40
    assert controller.candidate is video_file
    assert fake_registry.calls == 1
    
    fake_registry.release.set()
    asset = await task
    assert asset.title == "Holiday"


async def test_cancel_mid_transfer(controller, fake_registry, video_file):
    task = asyncio.create_task(controller.submit(video_file, "Holiday"))
    await fake_registry.reached_40.wait()
    assert controller.progress == 40
    
    assert controller.cancel() is True
    
    assert await task is None
    assert controller.state == UploadState.FILE_SELECTED
    assert controller.progress == 0
    assert controller.candidate is video_file
    assert fake_registry.streams[0].closed
    assert fake_registry.created == []


def test_cancel_when_idle(controller):
    assert controller.cancel() is False


async def test_cancel_after_transfer_completed_is_refused(controller, fake_registry, video_file, navigations):
    fake_registry.release.set()
    task = asyncio.create_task(controller.submit(video_file, "Holiday"))
    
    # The server has created the asset but submit has not resumed yet.
    await fake_registry.finished.wait()
    assert controller.state == UploadState.UPLOADING
    
    assert controller.cancel() is False
    
    asset = await task
    assert asset is fake_registry.created[0]
    assert controller.state == UploadState.IDLE
    assert navigations == ["/videos"]
    assert fake_registry.streams[0].closed


@pytest.mark.parametrize("error,message", [
    (ApiError("Storage quota exceeded", 507), "Storage quota exceeded"),
    (TransportError("Network error"), "Upload failed. Please try again."),
])
async def test_failure_keeps_file_for_retry(controller, fake_registry, video_file, error, message):
    fake_registry.error = error
    fake_registry.release.set()
    
    with pytest.raises(UploadFailedError) as excinfo:
        await controller.submit(video_file, "Holiday")
    
    assert excinfo.value.message == message
    assert excinfo.value.kind == ErrorKind.UPLOAD_FAILED
    assert controller.error is excinfo.value
    assert controller.state == UploadState.FILE_SELECTED
    assert controller.candidate is video_file
    assert controller.title == "Holiday"
    assert controller.progress == 0
    
    fake_registry.error = None
    asset = await controller.submit()
    assert asset.title == "Holiday"


def test_remove_file(controller, video_file):
    controller.select(video_file)
    assert controller.title == "holiday"
    
    controller.remove_file()
    assert controller.state == UploadState.IDLE
    assert controller.candidate is None
    assert controller.title == ""


async def test_upload_through_the_api(identities, registry, store, settings, navigations, video_file):
    await identities.register("Editor", "editor@example.com", "password123")
    reconciler = LifecycleReconciler(registry, store, settings=settings)
    controller = UploadSessionController(registry, reconciler, navigations.append, settings)
    progress = []
    controller.on_progress(progress.append)
    
    asset = await controller.submit(video_file, "Holiday")
    
    assert asset.title == "Holiday"
    assert asset.size_bytes == 1000
    assert asset.processing_status == ProcessingStatus.PENDING
    assert asset.owner_id == store.current().identity.id
    assert progress[-1] == 100
    assert progress == sorted(progress)
    assert reconciler.assets == [asset]
    assert navigations == ["/videos"]
    
    assert [item.id for item in await registry.list()] == [asset.id]
