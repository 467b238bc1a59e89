from __future__ import annotations

import logging

from stowage.storage.base import (
    Bucket,
    StorageBackend,
    StorageDriver,
    StoredObject,
    UploadOptions,
    UploadResult,
)
from stowage.storage.content import ContentResolver, UploadInput
from stowage.storage.urls import UrlConfig, is_hosted, public_url

logger = logging.getLogger(__name__)

DEFAULT_SIGNED_URL_EXPIRY = 600  # seconds


class ObjectStore:
    """Upload, delete and sign objects on whichever driver was configured.

    The driver is fixed at construction; every call goes to the same backend.
    """

    def __init__(self, backend: StorageBackend, resolver: ContentResolver, urls: UrlConfig) -> None:
        self.backend = backend
        self.resolver = resolver
        self.urls = urls

    @property
    def driver(self) -> StorageDriver:
        return self.backend.driver

    async def upload(
        self,
        key: str,
        body: UploadInput,
        bucket: Bucket = Bucket.PUBLIC,
        opts: UploadOptions | None = None,
    ) -> UploadResult:
        opts = opts or UploadOptions()
        self.backend.check_key(bucket, key)
        content = await self.resolver.normalize(body, opts)

        computed = {"Content-Length": str(content.size)}
        if content.content_type:
            computed["Content-Type"] = content.content_type
        # Computed headers always win over caller-supplied ones, whatever their casing.
        overridden = {name.lower() for name in computed}
        headers = {k: v for k, v in opts.headers.items() if k.lower() not in overridden}
        headers.update(computed)

        url = await self.backend.save(bucket, key, content, headers)
        logger.info("Stored %s object %s (%d bytes)", bucket.value, key, content.size)
        return UploadResult(url=url)

    async def delete(self, key: str, bucket: Bucket = Bucket.PUBLIC) -> None:
        await self.backend.remove(bucket, key)

    async def get_signed_url(self, key: str, method: str, bucket: Bucket, expires_in: int) -> str:
        return await self.backend.sign(bucket, key, method, expires_in)

    async def get_signed_upload_url(
        self,
        key: str,
        bucket: Bucket = Bucket.PUBLIC,
        expires_in: int = DEFAULT_SIGNED_URL_EXPIRY,
    ) -> str:
        return await self.get_signed_url(key, "PUT", bucket, expires_in)

    async def get_signed_download_url(
        self,
        key: str,
        bucket: Bucket = Bucket.PRIVATE,
        expires_in: int = DEFAULT_SIGNED_URL_EXPIRY,
    ) -> str:
        return await self.get_signed_url(key, "GET", bucket, expires_in)

    async def download(self, key: str, bucket: Bucket) -> StoredObject:
        return await self.backend.fetch(bucket, key)

    def public_url(self, key: str, bucket: Bucket = Bucket.PUBLIC) -> str:
        return public_url(self.driver, bucket, key, self.urls)

    def is_hosted(self, url: str) -> bool:
        return is_hosted(url, self.urls)
