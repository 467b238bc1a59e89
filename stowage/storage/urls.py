"""URL derivation for stored objects.

Two independent concerns live here: the *public* URL handed to clients, which
depends on driver and bucket visibility, and the *object* URL of the backend
itself, which is what gets signed.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import BaseModel

from stowage.storage.base import Bucket, StorageDriver
from stowage.storage.paths import normalize_key

RELAY_PATH = "/storage"


class UrlConfig(BaseModel):
    app_url: str = ""
    public_url: str = ""
    endpoint: str = ""
    force_path_style: bool = False
    cdn_url: str = ""
    avatar_url: str = ""


def _strip(base: str) -> str:
    return base.rstrip("/")


def local_base(config: UrlConfig) -> str:
    return config.public_url or f"{config.app_url}{RELAY_PATH}"


def relay_url(config: UrlConfig, bucket: Bucket, key: str) -> str:
    return f"{_strip(config.app_url)}{RELAY_PATH}/{bucket.value}/{normalize_key(key)}"


def public_url(driver: StorageDriver, bucket: Bucket, key: str, config: UrlConfig) -> str:
    safe_key = normalize_key(key)

    if driver == StorageDriver.LOCAL:
        return f"{_strip(local_base(config))}/{bucket.value}/{safe_key}"

    # Private objects always go through the relay so access checks can't be bypassed.
    if bucket == Bucket.PRIVATE:
        return relay_url(config, bucket, safe_key)

    if config.public_url and RELAY_PATH not in config.public_url:
        return f"{_strip(config.public_url)}/{safe_key}"

    return relay_url(config, Bucket.PUBLIC, safe_key)


def object_url(endpoint: str, bucket_name: str, key: str, force_path_style: bool = False) -> str:
    """Address of the object on the backend itself (the signing target)."""
    endpoint = _strip(endpoint)
    safe_key = normalize_key(key)

    if not force_path_style:
        parts = urlsplit(endpoint)
        if parts.scheme and parts.netloc:
            return f"{parts.scheme}://{bucket_name}.{parts.netloc}/{safe_key}"

    return f"{endpoint}/{bucket_name}/{safe_key}"


def is_hosted(url: str, config: UrlConfig) -> bool:
    bases = (config.cdn_url, config.avatar_url, local_base(config))
    return any(base and url.startswith(base) for base in bases)


def is_not_hosted_image(value: str) -> bool:
    return not value.startswith("https://")
