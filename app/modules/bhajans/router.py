import time
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.db import get_session
from app.core.exceptions import ValidationError
from app.modules.bhajans.schemas import ALLOWED_CONTENT_TYPES, AssetSlot, BhajanDeleted, BhajanOut, HealthOut
from app.modules.bhajans.service import BhajanService
from app.modules.bhajans.uploads import AssetPayload
from app.platform.ports.object_storage import ObjectStoragePort

logger = logging.getLogger(__name__)

router = APIRouter()

_started = time.monotonic()

def get_object_storage(request: Request) -> ObjectStoragePort:
    return request.app.state.providers.object_storage()

def svc(
    session: AsyncSession = Depends(get_session),
    storage: ObjectStoragePort = Depends(get_object_storage),
) -> BhajanService:
    return BhajanService(session, storage)

async def read_assets(**files: UploadFile | None) -> dict[str, AssetPayload]:
    """Apply the per-slot whitelist and size cap, then load the bytes."""
    assets = {}
    for name, file in files.items():
        if file is None or not file.filename:
            continue
        slot = AssetSlot(name)
        allowed = ALLOWED_CONTENT_TYPES[slot]
        if file.content_type not in allowed:
            raise ValidationError(f"Invalid file type for {name}. Allowed types: {', '.join(allowed)}", slot=name)
        if file.size is not None and file.size > settings.MEDIA_MAX_FILE_BYTES:
            raise HTTPException(status_code=413, detail=f"File too large for {name} (>{settings.MEDIA_MAX_FILE_BYTES} bytes)")
        data = await file.read()
        if len(data) > settings.MEDIA_MAX_FILE_BYTES:
            raise HTTPException(status_code=413, detail=f"File too large for {name} (>{settings.MEDIA_MAX_FILE_BYTES} bytes)")
        if not data:
            continue
        assets[name] = AssetPayload(data=data, content_type=file.content_type, filename=file.filename)
    logger.debug(f"Received files: {list(assets)}")
    return assets

def present(**fields) -> dict:
    return {k: v for k, v in fields.items() if v is not None}

@router.get("/health", response_model=HealthOut)
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc),
        "uptime": round(time.monotonic() - _started, 3),
    }

@router.get("", response_model=list[BhajanOut])
async def list_bhajans(
    limit: int | None = Query(None, ge=1), offset: int = Query(0, ge=0),
    service: BhajanService = Depends(svc),
):
    return await service.list(limit, offset)

@router.get("/{bhajan_id}", response_model=BhajanOut)
async def get_bhajan(bhajan_id: str, service: BhajanService = Depends(svc)):
    return await service.get(bhajan_id)

@router.post("/upload", response_model=BhajanOut, status_code=status.HTTP_201_CREATED)
async def upload_bhajan(
    title: str | None = Form(None),
    artist: str | None = Form(None),
    language: str | None = Form(None),
    duration: str | None = Form(None),
    lyrics: str | None = Form(None),
    genre: str | None = Form(None),
    album: str | None = Form(None),
    release_year: str | None = Form(None, alias="releaseYear"),
    tags: list[str] | None = Form(None),
    is_featured: str | None = Form(None, alias="isFeatured"),
    uploaded_by: str | None = Form(None, alias="uploadedBy"),
    audio: UploadFile | None = File(None),
    video: UploadFile | None = File(None),
    thumbnail: UploadFile | None = File(None),
    service: BhajanService = Depends(svc),
):
    fields = present(
        title=title, artist=artist, language=language, duration=duration,
        lyrics=lyrics, genre=genre, album=album, release_year=release_year, tags=tags,
        is_featured=is_featured, uploaded_by=uploaded_by,
    )
    assets = await read_assets(audio=audio, video=video, thumbnail=thumbnail)
    return await service.create(fields, assets)

@router.patch("/{bhajan_id}", response_model=BhajanOut)
async def update_bhajan(
    bhajan_id: str,
    title: str | None = Form(None),
    artist: str | None = Form(None),
    language: str | None = Form(None),
    duration: str | None = Form(None),
    lyrics: str | None = Form(None),
    genre: str | None = Form(None),
    album: str | None = Form(None),
    release_year: str | None = Form(None, alias="releaseYear"),
    tags: list[str] | None = Form(None),
    is_featured: str | None = Form(None, alias="isFeatured"),
    uploaded_by: str | None = Form(None, alias="uploadedBy"),
    audio: UploadFile | None = File(None),
    video: UploadFile | None = File(None),
    thumbnail: UploadFile | None = File(None),
    service: BhajanService = Depends(svc),
):
    fields = present(
        title=title, artist=artist, language=language, duration=duration,
        lyrics=lyrics, genre=genre, album=album, release_year=release_year, tags=tags,
        is_featured=is_featured, uploaded_by=uploaded_by,
    )
    assets = await read_assets(audio=audio, video=video, thumbnail=thumbnail)
    return await service.update(bhajan_id, fields, assets)

@router.delete("/{bhajan_id}", response_model=BhajanDeleted)
async def delete_bhajan(bhajan_id: str, service: BhajanService = Depends(svc)):
    return await service.delete(bhajan_id)
