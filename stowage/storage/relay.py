"""Framework-agnostic pieces of the ``GET /storage/{bucket}/{...key}`` relay.

The web layer maps ``RelayResponse`` onto its own response type.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from pydantic import BaseModel

from stowage.errors import StowageError
from stowage.storage.base import Bucket
from stowage.storage.store import ObjectStore

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"

CACHE_CONTROL = {
    Bucket.PUBLIC: "public, max-age=31536000",
    Bucket.PRIVATE: "private, max-age=60",
}


class RelayResponse(BaseModel):
    status: int
    headers: dict[str, str] = {}
    body: bytes = b""


def guess_content_type(key: str) -> str:
    return CONTENT_TYPES.get(PurePosixPath(key).suffix.lower(), DEFAULT_CONTENT_TYPE)


def cache_control(bucket: Bucket) -> str:
    return CACHE_CONTROL[bucket]


async def serve_object(store: ObjectStore, bucket: str, key: str) -> RelayResponse:
    try:
        visibility = Bucket(bucket)
    except ValueError:
        return RelayResponse(status=400, body=b'{"error": "Invalid bucket"}')

    try:
        obj = await store.download(key, visibility)
    except StowageError as exc:
        logger.debug("Relay miss for %s/%s: %s", bucket, key, exc)
        return RelayResponse(status=404, body=b'{"error": "Not found"}')
    except Exception:
        logger.exception("Relay failed for %s/%s", bucket, key)
        return RelayResponse(status=404, body=b'{"error": "Not found"}')

    return RelayResponse(
        status=200,
        headers={
            "Content-Type": obj.content_type or guess_content_type(key),
            "Cache-Control": cache_control(visibility),
        },
        body=obj.data,
    )
