import uuid
from datetime import datetime
from enum import Enum
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

class AssetSlot(str, Enum):
    AUDIO = "audio"
    VIDEO = "video"
    THUMBNAIL = "thumbnail"

    @property
    def resource_type(self) -> str:
        # video objects are stored as video resources; anything else is left to the store
        return "video" if self is AssetSlot.VIDEO else "auto"

ALLOWED_CONTENT_TYPES: dict[AssetSlot, tuple[str, ...]] = {
    AssetSlot.AUDIO: ("audio/mpeg", "audio/mp3", "audio/wav"),
    AssetSlot.VIDEO: ("video/mp4", "video/mpeg"),
    AssetSlot.THUMBNAIL: ("image/jpeg", "image/png", "image/jpg"),
}

REQUIRED_FIELDS = ("title", "artist", "language", "duration")
_TEXT_FIELDS = ("lyrics", "genre", "album")
_BLANK_MEANS_ABSENT = frozenset({"release_year", "releaseYear", "is_featured", "isFeatured"})


def _split_tags(v: Any) -> Any:
    if v is None:
        return v
    if isinstance(v, str):
        v = v.split(",")
    if isinstance(v, (list, tuple)):
        return [t.strip() if isinstance(t, str) else t for t in v if not (isinstance(t, str) and not t.strip())]
    return v


class _BhajanFields(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_form_values(cls, data):
        # a blank releaseYear/isFeatured form value means the field was not supplied
        if isinstance(data, dict):
            data = {
                k: v for k, v in data.items()
                if not (k in _BLANK_MEANS_ABSENT and isinstance(v, str) and not v.strip())
            }
        return data

    @field_validator("tags", mode="before", check_fields=False)
    @classmethod
    def _tags(cls, v):
        return _split_tags(v)


class BhajanCreate(_BhajanFields):
    title: str = Field(..., min_length=1, max_length=255)
    artist: str = Field(..., min_length=1, max_length=255)
    language: str = Field(..., min_length=1, max_length=64)
    duration: float = Field(..., gt=0)
    lyrics: str = ""
    genre: str = Field("", max_length=128)
    album: str = Field("", max_length=255)
    release_year: int | None = Field(None, ge=0, le=9999)
    tags: list[str] = Field(default_factory=list)
    is_featured: bool = False
    uploaded_by: str = Field("anonymous", max_length=64)

    @field_validator("uploaded_by")
    @classmethod
    def _anonymous(cls, v: str) -> str:
        return v or "anonymous"


class BhajanUpdate(_BhajanFields):
    """Partial update: only fields present in the input are applied.

    Presence is read from ``model_fields_set``, so an explicit empty tag list
    is a change while an omitted ``tags`` is not.
    """

    title: str | None = Field(None, min_length=1, max_length=255)
    artist: str | None = Field(None, min_length=1, max_length=255)
    language: str | None = Field(None, min_length=1, max_length=64)
    duration: float | None = Field(None, gt=0)
    lyrics: str | None = None
    genre: str | None = Field(None, max_length=128)
    album: str | None = Field(None, max_length=255)
    release_year: int | None = Field(None, ge=0, le=9999)
    tags: list[str] | None = None
    is_featured: bool | None = None
    uploaded_by: str | None = Field(None, max_length=64)

    @model_validator(mode="after")
    def _required_not_cleared(self):
        for name in REQUIRED_FIELDS + ("is_featured",):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        data = {name: getattr(self, name) for name in self.model_fields_set}
        for name in _TEXT_FIELDS:
            if name in data and data[name] is None:
                data[name] = ""
        if "tags" in data and data["tags"] is None:
            data["tags"] = []
        if "uploaded_by" in data and not data["uploaded_by"]:
            data["uploaded_by"] = "anonymous"
        return data


class BhajanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: uuid.UUID
    title: str
    artist: str
    language: str
    duration: float
    lyrics: str
    genre: str
    album: str
    release_year: int | None
    tags: list[str]
    is_featured: bool
    uploaded_by: str
    audio: str
    video: str
    thumbnail: str
    views: int
    likes: int
    created_at: datetime
    updated_at: datetime


class BhajanDeleted(BaseModel):
    message: str
    id: uuid.UUID


class HealthOut(BaseModel):
    status: str
    timestamp: datetime
    uptime: float
