from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, Float, Boolean, JSON
from app.core.base import Base, TimestampedMixin
from app.core.config import settings

class Bhajan(Base, TimestampedMixin):
    title: Mapped[str] = mapped_column(String(255))
    artist: Mapped[str] = mapped_column(String(255))
    language: Mapped[str] = mapped_column(String(64), default=lambda: settings.DEFAULT_LANGUAGE)
    duration: Mapped[float] = mapped_column(Float)  # seconds

    lyrics: Mapped[str] = mapped_column(Text, default="")
    genre: Mapped[str] = mapped_column(String(128), default="")  # e.g. "Kirtan", "Aarti"
    album: Mapped[str] = mapped_column(String(255), default="")
    release_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)  # e.g. ["Hanuman", "Morning Bhajan"]
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)
    uploaded_by: Mapped[str] = mapped_column(String(64), default="anonymous")  # user id or "anonymous"

    # Asset references: "" or a URL of an object in the blob store.
    audio: Mapped[str] = mapped_column(String(1024), default="")
    video: Mapped[str] = mapped_column(String(1024), default="")
    thumbnail: Mapped[str] = mapped_column(String(1024), default="")

    # Maintained outside this service.
    views: Mapped[int] = mapped_column(Integer, default=0)
    likes: Mapped[int] = mapped_column(Integer, default=0)
