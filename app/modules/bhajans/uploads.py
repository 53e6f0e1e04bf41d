import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Mapping
from app.core.exceptions import TransportError, UploadFailure
from app.modules.bhajans.schemas import AssetSlot
from app.platform.ports.object_storage import ObjectStoragePort

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class AssetPayload:
    data: bytes
    content_type: str | None = None
    filename: str | None = None

class AssetUploadCoordinator:
    """Fans asset uploads and deletions out to the object store and joins them.

    Storage adapters are blocking, so every call runs in a worker thread and
    is bounded by ``timeout_seconds``. A timed-out thread is abandoned, not
    killed: the object it was writing may still appear in the store.
    """

    def __init__(self, storage: ObjectStoragePort, *, timeout_seconds: float = 60.0, cleanup_on_failure: bool = True):
        self.storage = storage
        self.timeout_seconds = timeout_seconds
        self.cleanup_on_failure = cleanup_on_failure

    async def upload_all(self, assets: Mapping[AssetSlot, AssetPayload]) -> dict[AssetSlot, str]:
        """Upload every payload concurrently and return slot -> reference.

        Waits for the whole batch. If any upload fails, the successful ones are
        deleted again (when ``cleanup_on_failure`` is set) and ``UploadFailure``
        for the first failed slot, in slot order, is raised.
        """
        if not assets:
            return {}
        slots = [slot for slot in AssetSlot if slot in assets]
        results = await asyncio.gather(
            *(self._upload_one(slot, assets[slot]) for slot in slots),
            return_exceptions=True,
        )

        uploaded: dict[AssetSlot, str] = {}
        failures: list[BaseException] = []
        for slot, result in zip(slots, results):
            if isinstance(result, BaseException):
                failures.append(result)
            else:
                uploaded[slot] = result

        if failures:
            if uploaded and self.cleanup_on_failure:
                logger.warning(f"Batch failed; removing {len(uploaded)} sibling upload(s): {[s.value for s in uploaded]}")
                await self.delete_all(uploaded.values())
            for failure in failures:
                if not isinstance(failure, UploadFailure):
                    raise failure
            raise failures[0]
        return uploaded

    async def _upload_one(self, slot: AssetSlot, payload: AssetPayload) -> str:
        logger.info(f"Uploading {slot.value} ({len(payload.data)} bytes) as {slot.resource_type}")
        try:
            stored = await asyncio.wait_for(
                asyncio.to_thread(
                    self.storage.upload,
                    payload.data,
                    resource_type=slot.resource_type,
                    content_type=payload.content_type or "application/octet-stream",
                    filename=payload.filename,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Upload of {slot.value} timed out after {self.timeout_seconds}s")
            raise UploadFailure(slot.value, TransportError(f"upload timed out after {self.timeout_seconds}s")) from e
        except TransportError as e:
            logger.error(f"Upload of {slot.value} failed: {e}")
            raise UploadFailure(slot.value, e) from e
        except Exception as e:
            logger.exception(f"Storage adapter raised unexpectedly while uploading {slot.value}")
            raise UploadFailure(slot.value, TransportError(f"{type(e).__name__}: {e}")) from e
        logger.info(f"Uploaded {slot.value}: {stored.url}")
        return stored.url

    async def delete_all(self, references: Iterable[str]) -> list[str]:
        """Best-effort concurrent deletion. Returns the references left behind."""
        refs = [r for r in references if r]
        if not refs:
            return []
        results = await asyncio.gather(*(self._delete_one(r) for r in refs), return_exceptions=True)
        failed = []
        for ref, result in zip(refs, results):
            if isinstance(result, Exception):
                logger.warning(f"Could not delete {ref} from object storage: {result!r}")
                failed.append(ref)
            elif isinstance(result, BaseException):
                raise result
        return failed

    async def _delete_one(self, reference: str) -> None:
        await asyncio.wait_for(asyncio.to_thread(self.storage.delete, reference), timeout=self.timeout_seconds)
        logger.info(f"Deleted {reference} from object storage")
