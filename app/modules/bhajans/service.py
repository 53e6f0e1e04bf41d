import uuid
import logging
from typing import Any, Mapping, Sequence, TypeVar
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, DataError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.exceptions import (
    IngestionFailure, InvalidIdentifierError, NotFoundError, ServerError, ServiceError, UploadFailure, ValidationError,
)
from app.modules.bhajans.models import Bhajan
from app.modules.bhajans.repository import BhajanRepository
from app.modules.bhajans.schemas import AssetSlot, BhajanCreate, BhajanUpdate
from app.modules.bhajans.uploads import AssetPayload, AssetUploadCoordinator
from app.platform.ports.object_storage import ObjectStoragePort

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

def parse_id(bhajan_id: str | uuid.UUID) -> uuid.UUID:
    if isinstance(bhajan_id, uuid.UUID):
        return bhajan_id
    try:
        return uuid.UUID(str(bhajan_id))
    except ValueError:
        raise InvalidIdentifierError(f"Invalid bhajan ID format: {bhajan_id!r}") from None

def _validate(model: type[M], fields: Mapping[str, Any]) -> M:
    try:
        return model.model_validate(dict(fields))
    except PydanticValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]) or "__root__", "message": err["msg"]}
            for err in e.errors()
        ]
        summary = "; ".join(f"{err['field']}: {err['message']}" for err in errors)
        raise ValidationError(f"Validation error: {summary}", errors=errors) from None

def _slots(assets: Mapping[str, AssetPayload] | None) -> dict[AssetSlot, AssetPayload]:
    slots = {}
    for name, payload in (assets or {}).items():
        try:
            slot = AssetSlot(name)
        except ValueError:
            raise ValidationError(f"Unknown asset slot {name!r}; expected one of audio, video, thumbnail") from None
        slots[slot] = payload
    return slots

def _db_error(e: SQLAlchemyError, action: str) -> ServiceError:
    if isinstance(e, (IntegrityError, DataError)):
        return ValidationError(f"Validation error while {action}: {e.orig}")
    return ServerError(f"Database error while {action}: {e}")

class BhajanService:
    """Owns the create/update/delete sequence across the database and the object store.

    Records are only written here; asset bytes are only written through the
    upload coordinator. Every public method either returns a result or raises
    a ``ServiceError``.
    """

    def __init__(self, session: AsyncSession, storage: ObjectStoragePort):
        self.session = session
        self.repo = BhajanRepository(session)
        self.uploads = AssetUploadCoordinator(
            storage,
            timeout_seconds=settings.BLOB_STORE_TIMEOUT_SECONDS,
            cleanup_on_failure=settings.CLEANUP_FAILED_UPLOADS,
        )

    async def _upload(self, assets: dict[AssetSlot, AssetPayload]) -> dict[AssetSlot, str]:
        try:
            return await self.uploads.upload_all(assets)
        except UploadFailure as e:
            raise IngestionFailure(f"Failed to upload {e.slot}", slot=e.slot, cause=str(e.cause)) from e

    async def _abort(self, e: SQLAlchemyError, action: str, uploaded: Mapping[AssetSlot, str]) -> ServiceError:
        # The row never made it; the objects uploaded for it would be orphans.
        await self.session.rollback()
        if uploaded:
            await self.uploads.delete_all(uploaded.values())
        err = _db_error(e, action)
        if isinstance(err, ServerError):
            logger.error(err.detail)
        else:
            logger.info(err.detail)
        return err

    async def create(self, fields: Mapping[str, Any], assets: Mapping[str, AssetPayload] | None = None) -> Bhajan:
        payload = _validate(BhajanCreate, fields)
        slots = _slots(assets)
        if not slots:
            logger.warning(f"No files uploaded for '{payload.title}', storing text data only")

        references = await self._upload(slots)

        data = payload.model_dump()
        data.update({slot.value: references.get(slot, "") for slot in AssetSlot})
        try:
            obj = await self.repo.create(**data)
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._abort(e, "adding bhajan", references) from e
        logger.info(f"Bhajan created: {obj.id} ({obj.title})")
        return obj

    async def get(self, bhajan_id: str | uuid.UUID) -> Bhajan:
        key = parse_id(bhajan_id)
        try:
            obj = await self.repo.get(key)
        except SQLAlchemyError as e:
            raise ServerError(f"Database error while fetching bhajan: {e}") from e
        if not obj:
            raise NotFoundError("Bhajan not found", id=str(key))
        return obj

    async def list(self, limit: int | None = None, offset: int = 0) -> Sequence[Bhajan]:
        try:
            items = await self.repo.list(limit, offset)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching bhajans: {e}")
            raise ServerError(f"Database error while fetching bhajans: {e}") from e
        if not items:
            logger.debug("No bhajans found")
        return items

    async def update(self, bhajan_id: str | uuid.UUID, fields: Mapping[str, Any], assets: Mapping[str, AssetPayload] | None = None) -> Bhajan:
        key = parse_id(bhajan_id)
        payload = _validate(BhajanUpdate, fields)
        slots = _slots(assets)

        existing = await self.get(key)
        previous = {slot: getattr(existing, slot.value) for slot in AssetSlot}

        references = await self._upload(slots)

        changes = payload.changes()
        changes.update({slot.value: ref for slot, ref in references.items()})
        try:
            obj = await self.repo.update(key, **changes)
            if obj is None:
                await self.session.rollback()
                await self.uploads.delete_all(references.values())
                raise NotFoundError("Bhajan not found", id=str(key))
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._abort(e, "updating bhajan", references) from e

        superseded = [previous[slot] for slot, ref in references.items() if previous[slot] and previous[slot] != ref]
        if superseded and settings.DELETE_SUPERSEDED_ASSETS:
            await self.uploads.delete_all(superseded)
        logger.info(f"Bhajan updated: {obj.id} fields={sorted(changes)}")
        return obj

    async def delete(self, bhajan_id: str | uuid.UUID) -> dict:
        key = parse_id(bhajan_id)
        existing = await self.get(key)
        references = [existing.audio, existing.video, existing.thumbnail]

        # Storage failures never block the metadata delete.
        left_behind = await self.uploads.delete_all(references)
        if left_behind:
            logger.warning(f"Bhajan {key}: {len(left_behind)} asset(s) could not be removed from storage")

        try:
            deleted = await self.repo.delete(key)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise ServerError(f"Database error while deleting bhajan: {e}") from e
        if not deleted:
            raise NotFoundError("Bhajan not found", id=str(key))
        logger.info(f"Bhajan deleted: {key}")
        return {"message": "Bhajan deleted successfully", "id": key}
