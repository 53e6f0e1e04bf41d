import boto3
import logging
from urllib.parse import quote, unquote
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from app.core.exceptions import TransportError
from app.platform.ports.object_storage import ObjectStoragePort, StoredObject, build_object_key, strip_base_url
from app.core.config import settings

log = logging.getLogger("storage.s3")

def make_s3_client():
    session = boto3.session.Session(
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        region_name=settings.S3_REGION,
    )
    timeout = settings.BLOB_STORE_TIMEOUT_SECONDS
    return session.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL,
        config=Config(
            signature_version="s3v4",
            connect_timeout=timeout,
            read_timeout=timeout,
            # a failed call is surfaced, never retried
            retries={"mode": "standard", "max_attempts": 1},
        ),
    )

class S3Storage(ObjectStoragePort):
    def __init__(self, client=None, *, bucket: str | None = None, prefix: str | None = None, public_base_url: str | None = None):
        self.s3 = client or make_s3_client()
        self.bucket = bucket or settings.S3_BUCKET
        self.prefix = settings.OBJECT_KEY_PREFIX if prefix is None else prefix
        self.base_url = (public_base_url or settings.S3_PUBLIC_BASE_URL or self._default_base_url()).rstrip("/")

    def _default_base_url(self) -> str:
        if settings.S3_ENDPOINT_URL:
            return f"{settings.S3_ENDPOINT_URL.rstrip('/')}/{self.bucket}"
        return f"https://{self.bucket}.s3.{settings.S3_REGION}.amazonaws.com"

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{quote(key)}"

    def key_for(self, reference: str) -> str:
        key = strip_base_url(reference, self.base_url)
        if key is None:
            raise TransportError(f"Reference is not held by bucket {self.bucket}: {reference}")
        return unquote(key)

    def upload(self, data: bytes, *, resource_type: str, content_type: str, filename: str | None = None) -> StoredObject:
        key = build_object_key(self.prefix, resource_type, filename, content_type)
        try:
            self.s3.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            raise TransportError(f"S3 put_object failed for {key}: {e}") from e
        log.debug(f"PUT s3://{self.bucket}/{key} ({len(data)} bytes)")
        return StoredObject(key=key, url=self.url_for(key))

    def delete(self, reference: str) -> None:
        key = self.key_for(reference)
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise TransportError(f"S3 delete_object failed for {key}: {e}") from e
        log.debug(f"DELETE s3://{self.bucket}/{key}")
