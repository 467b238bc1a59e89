import asyncio
import logging
from pathlib import Path

from stowage.errors import DeleteError, StorageError, UploadError
from stowage.storage.base import Bucket, ResolvedContent, StorageBackend, StorageDriver, StoredObject
from stowage.storage.paths import resolve_local_path
from stowage.storage.urls import UrlConfig, public_url

logger = logging.getLogger(__name__)


class LocalStorage(StorageBackend):
    driver = StorageDriver.LOCAL

    def __init__(self, base_dir: str, urls: UrlConfig) -> None:
        self.base_dir = Path(base_dir)
        self.urls = urls

    def _ensure_dirs(self) -> None:
        for bucket in Bucket:
            (self.base_dir / bucket.value).mkdir(parents=True, exist_ok=True)

    def url(self, bucket: Bucket, key: str) -> str:
        return public_url(self.driver, bucket, key, self.urls)

    def path(self, bucket: Bucket, key: str) -> Path:
        return resolve_local_path(self.base_dir, bucket.value, key)

    def check_key(self, bucket: Bucket, key: str) -> None:
        self.path(bucket, key)

    def _write(self, path: Path, data: bytes) -> None:
        self._ensure_dirs()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def save(
        self, bucket: Bucket, key: str, content: ResolvedContent, headers: dict[str, str]
    ) -> str:
        # Headers only matter to the remote backend; the relay infers types from the extension.
        path = self.path(bucket, key)
        try:
            await asyncio.to_thread(self._write, path, content.data)
        except OSError as exc:
            logger.exception("Local upload failed for %s/%s", bucket.value, key)
            raise UploadError("Failed to upload file. Please try again later.") from exc
        logger.debug("Saved %s/%s (%d bytes) to %s", bucket.value, key, content.size, path)
        return self.url(bucket, key)

    async def remove(self, bucket: Bucket, key: str) -> None:
        path = self.path(bucket, key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            logger.exception("Local delete failed for %s/%s", bucket.value, key)
            raise DeleteError("Failed to delete file. Please try again later.") from exc
        logger.debug("Deleted %s/%s", bucket.value, key)

    async def sign(self, bucket: Bucket, key: str, method: str, expires_in: int) -> str:
        # No real signature locally: the relay route is trusted to do its own checks.
        return self.url(bucket, key)

    async def fetch(self, bucket: Bucket, key: str) -> StoredObject:
        path = self.path(bucket, key)
        logger.debug("Reading %s/%s from %s", bucket.value, key, path)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise StorageError(f"Object not readable: {bucket.value}/{key}") from exc
        return StoredObject(data=data)
