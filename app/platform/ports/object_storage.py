import mimetypes
import os
import uuid
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

@dataclass(frozen=True)
class StoredObject:
    key: str
    url: str

def build_object_key(prefix: str, resource_type: str, filename: str | None = None, content_type: str | None = None) -> str:
    """Fresh, never-reused key: <prefix><resource_type>/<uuid><ext>."""
    ext = ""
    if filename and "." in filename:
        ext = "." + filename.rsplit(".", 1)[1].lower()
    elif content_type:
        ext = mimetypes.guess_extension(content_type) or ""
    return f"{prefix}{resource_type}/{uuid.uuid4().hex}{ext}"

def strip_base_url(reference: str, base_url: str) -> str | None:
    base = base_url.rstrip("/") + "/"
    if not reference.startswith(base):
        return None
    key = reference[len(base):]
    if not key or ".." in key.split("/") or os.path.isabs(key):
        return None
    return key

@runtime_checkable
class ObjectStoragePort(Protocol):
    """Blob store consumed by the upload coordinator.

    Implementations are synchronous and raise ``TransportError`` on any
    storage failure.
    """

    def upload(self, data: bytes, *, resource_type: str, content_type: str, filename: str | None = None) -> StoredObject: ...

    def delete(self, reference: str) -> None: ...
