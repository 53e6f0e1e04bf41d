from app.core.config import Settings, settings
from app.platform.ports.object_storage import ObjectStoragePort
from app.platform.adapters.storage_local import LocalFilesystemStorage
from app.platform.adapters.storage_s3 import S3Storage

class ProviderRegistry:
    """Builds infrastructure adapters on first use.

    One instance is created per application and kept on ``app.state``.
    """

    def __init__(self, config: Settings = settings):
        self.config = config
        self._object_storage: ObjectStoragePort | None = None

    def object_storage(self) -> ObjectStoragePort:
        if self._object_storage is None:
            if self.config.OBJECT_STORAGE_PROVIDER == "s3":
                self._object_storage = S3Storage(
                    bucket=self.config.S3_BUCKET,
                    prefix=self.config.OBJECT_KEY_PREFIX,
                    public_base_url=self.config.S3_PUBLIC_BASE_URL,
                )
            else:
                self._object_storage = LocalFilesystemStorage(
                    self.config.LOCAL_STORAGE_ROOT,
                    prefix=self.config.OBJECT_KEY_PREFIX,
                    public_base_url=self.config.LOCAL_PUBLIC_BASE_URL,
                )
        return self._object_storage
