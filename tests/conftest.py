"""Shared pytest configuration and fixtures for the test suite."""

import atexit
import os
import shutil
import tempfile
import threading
import time
import uuid
from pathlib import Path

_TEST_MEDIA_DIR = Path(tempfile.mkdtemp(prefix="bhajan-tests-"))
os.environ["DATABASE_DSN"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOCAL_STORAGE_ROOT"] = str(_TEST_MEDIA_DIR)
os.environ["OBJECT_STORAGE_PROVIDER"] = "local"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.base import Base  # noqa: E402
from app.core.exceptions import TransportError  # noqa: E402
from app.modules.bhajans import models  # noqa: E402,F401
from app.platform.ports.object_storage import StoredObject  # noqa: E402


class FakeObjectStorage:
    """Thread-safe in-memory blob store that records every call."""

    base_url = "https://blobs.test"

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.uploads: list[dict] = []
        self.deletes: list[str] = []
        self.fail_filenames: set[str] = set()
        self.fail_deletes = False
        self.upload_delay = 0.0
        self.barrier: threading.Barrier | None = None
        self._lock = threading.Lock()

    def upload(self, data: bytes, *, resource_type: str, content_type: str, filename: str | None = None) -> StoredObject:
        with self._lock:
            self.uploads.append(
                {"resource_type": resource_type, "content_type": content_type, "filename": filename, "size": len(data)}
            )
        if self.barrier is not None:
            self.barrier.wait()
        if self.upload_delay:
            time.sleep(self.upload_delay)
        if filename in self.fail_filenames:
            raise TransportError(f"upload rejected for {filename}")
        key = f"{resource_type}/{uuid.uuid4().hex}"
        url = f"{self.base_url}/{key}"
        with self._lock:
            self.objects[url] = data
        return StoredObject(key=key, url=url)

    def delete(self, reference: str) -> None:
        with self._lock:
            self.deletes.append(reference)
        if self.fail_deletes:
            raise TransportError(f"delete rejected for {reference}")
        with self._lock:
            self.objects.pop(reference, None)


@pytest.fixture
def storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@atexit.register
def _cleanup_test_media_dir() -> None:
    """Remove the temporary media directory after the test session."""
    shutil.rmtree(_TEST_MEDIA_DIR, ignore_errors=True)
