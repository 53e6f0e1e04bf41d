import os
import logging
from urllib.parse import quote, unquote
from app.core.exceptions import TransportError
from app.platform.ports.object_storage import ObjectStoragePort, StoredObject, build_object_key, strip_base_url
from app.core.config import settings

log = logging.getLogger("storage.local")

class LocalFilesystemStorage(ObjectStoragePort):
    def __init__(self, root: str | None = None, *, prefix: str | None = None, public_base_url: str | None = None):
        self.root = os.path.abspath(root or settings.LOCAL_STORAGE_ROOT)
        self.prefix = settings.OBJECT_KEY_PREFIX if prefix is None else prefix
        # Without a public base URL, references are file:// URLs under the root.
        self.base_url = (public_base_url or f"file://{quote(self.root)}").rstrip("/")
        os.makedirs(self.root, exist_ok=True)

    def _path(self, key: str) -> str:
        safe = key.strip("/").replace("..", "")
        return os.path.join(self.root, safe)

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{quote(key)}"

    def key_for(self, reference: str) -> str:
        key = strip_base_url(reference, self.base_url)
        if key is None:
            raise TransportError(f"Reference is not held by this store: {reference}")
        return unquote(key)

    def upload(self, data: bytes, *, resource_type: str, content_type: str, filename: str | None = None) -> StoredObject:
        key = build_object_key(self.prefix, resource_type, filename, content_type)
        path = self._path(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise TransportError(f"Local write failed for {key}: {e}") from e
        log.debug(f"Stored {len(data)} bytes at {path}")
        return StoredObject(key=key, url=self.url_for(key))

    def delete(self, reference: str) -> None:
        path = self._path(self.key_for(reference))
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            raise TransportError(f"Local delete failed for {reference}: {e}") from e
