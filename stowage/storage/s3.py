from __future__ import annotations

import asyncio
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from stowage.errors import ConfigurationError, DeleteError, SigningError, StorageError, UploadError
from stowage.storage.base import Bucket, ResolvedContent, StorageBackend, StorageDriver, StoredObject
from stowage.storage.paths import normalize_key
from stowage.storage.urls import UrlConfig, object_url, public_url

logger = logging.getLogger(__name__)

# Caller-supplied HTTP headers that put_object understands.
HEADER_PARAMS = {
    "cache-control": "CacheControl",
    "content-disposition": "ContentDisposition",
    "content-encoding": "ContentEncoding",
    "content-language": "ContentLanguage",
    "content-type": "ContentType",
}
META_PREFIX = "x-amz-meta-"

SIGNABLE_METHODS = {"GET": "get_object", "PUT": "put_object"}


def put_object_params(headers: dict[str, str]) -> dict:
    params: dict = {}
    metadata: dict[str, str] = {}
    for name, value in headers.items():
        lowered = name.lower()
        if lowered == "content-length":
            params["ContentLength"] = int(value)
        elif lowered in HEADER_PARAMS:
            params[HEADER_PARAMS[lowered]] = value
        elif lowered.startswith(META_PREFIX):
            metadata[lowered[len(META_PREFIX) :]] = value
        else:
            logger.warning("Ignoring unsupported upload header %s", name)
    if metadata:
        params["Metadata"] = metadata
    return params


class S3Storage(StorageBackend):
    driver = StorageDriver.REMOTE

    def __init__(
        self,
        urls: UrlConfig,
        public_bucket: str = "",
        private_bucket: str = "",
        region: str = "auto",
        access_key_id: str = "",
        secret_access_key: str = "",
        timeout: float | None = None,
    ) -> None:
        self.urls = urls
        self.buckets = {Bucket.PUBLIC: public_bucket, Bucket.PRIVATE: private_bucket}
        self.has_credentials = bool(access_key_id and secret_access_key)

        config_kwargs: dict = {
            "signature_version": "s3v4",
            "s3": {"addressing_style": "path" if urls.force_path_style else "virtual"},
        }
        if timeout is not None:
            config_kwargs["connect_timeout"] = timeout
            config_kwargs["read_timeout"] = timeout

        client_kwargs: dict = {
            "service_name": "s3",
            "region_name": region,
            "aws_access_key_id": access_key_id or None,
            "aws_secret_access_key": secret_access_key or None,
            "config": Config(**config_kwargs),
        }
        if urls.endpoint:
            client_kwargs["endpoint_url"] = urls.endpoint.rstrip("/")

        self.client = boto3.client(**client_kwargs)

    def bucket_name(self, bucket: Bucket) -> str:
        name = self.buckets.get(bucket)
        if not name:
            raise ConfigurationError(f"Bucket name for {bucket.value} objects is not set")
        return name

    def _require_endpoint(self) -> None:
        if not self.urls.endpoint:
            raise ConfigurationError("Storage endpoint is not set")

    def object_url(self, bucket: Bucket, key: str) -> str:
        self._require_endpoint()
        return object_url(
            self.urls.endpoint, self.bucket_name(bucket), key, self.urls.force_path_style
        )

    async def save(
        self, bucket: Bucket, key: str, content: ResolvedContent, headers: dict[str, str]
    ) -> str:
        self._require_endpoint()
        name = self.bucket_name(bucket)
        safe_key = normalize_key(key)
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=name,
                Key=safe_key,
                Body=content.data,
                **put_object_params(headers),
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Upload to %s failed", self.object_url(bucket, key))
            raise UploadError("Failed to upload file. Please try again later.") from exc
        logger.info("Uploaded %s/%s (%d bytes)", name, safe_key, content.size)
        return public_url(self.driver, bucket, key, self.urls)

    async def remove(self, bucket: Bucket, key: str) -> None:
        self._require_endpoint()
        name = self.bucket_name(bucket)
        safe_key = normalize_key(key)
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=name, Key=safe_key)
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Delete of %s failed", self.object_url(bucket, key))
            raise DeleteError("Failed to delete file. Please try again later.") from exc
        logger.info("Deleted %s/%s", name, safe_key)

    async def sign(self, bucket: Bucket, key: str, method: str, expires_in: int) -> str:
        client_method = SIGNABLE_METHODS.get(method.upper())
        if client_method is None:
            raise SigningError(f"Cannot sign {method} requests")
        if not self.has_credentials:
            raise SigningError("Storage credentials are not set")
        try:
            self._require_endpoint()
            name = self.bucket_name(bucket)
        except ConfigurationError as exc:
            raise SigningError(str(exc)) from exc

        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                client_method,
                Params={"Bucket": name, "Key": normalize_key(key)},
                ExpiresIn=expires_in,
                HttpMethod=method.upper(),
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Signing %s %s/%s failed", method, name, key)
            raise SigningError("Failed to generate signed url. Please try again later.") from exc

    async def fetch(self, bucket: Bucket, key: str) -> StoredObject:
        self._require_endpoint()
        name = self.bucket_name(bucket)
        try:
            resp = await asyncio.to_thread(
                self.client.get_object, Bucket=name, Key=normalize_key(key)
            )
            data = await asyncio.to_thread(resp["Body"].read)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Object not readable: {name}/{key}") from exc
        return StoredObject(data=data, content_type=resp.get("ContentType"))
