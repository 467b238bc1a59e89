from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel


class StorageDriver(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"

    @classmethod
    def from_setting(cls, value: str) -> StorageDriver:
        # Anything but "local" means the S3-compatible backend.
        return cls.LOCAL if (value or "").strip().lower() == "local" else cls.REMOTE


class Bucket(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class UploadOptions(BaseModel):
    content_type: str | None = None
    width: int | None = None
    height: int | None = None
    headers: dict[str, str] = {}


class ResolvedContent(BaseModel):
    data: bytes
    size: int
    content_type: str | None = None

    @classmethod
    def from_bytes(cls, data: bytes, content_type: str | None = None) -> ResolvedContent:
        return cls(data=data, size=len(data), content_type=content_type)


class UploadResult(BaseModel):
    url: str


class StoredObject(BaseModel):
    data: bytes
    content_type: str | None = None


class StorageBackend(ABC):
    driver: StorageDriver

    def check_key(self, bucket: Bucket, key: str) -> None:
        """Reject an unusable key before any content is fetched. No-op by default."""

    @abstractmethod
    async def save(
        self, bucket: Bucket, key: str, content: ResolvedContent, headers: dict[str, str]
    ) -> str:
        """Store the content and return its externally visible URL."""
        ...

    @abstractmethod
    async def remove(self, bucket: Bucket, key: str) -> None:
        """Delete the object. Deleting a missing object is not an error locally."""
        ...

    @abstractmethod
    async def sign(self, bucket: Bucket, key: str, method: str, expires_in: int) -> str:
        """Return a time-boxed URL (remote) or the relay URL (local)."""
        ...

    @abstractmethod
    async def fetch(self, bucket: Bucket, key: str) -> StoredObject:
        """Read the object back, for the relay route."""
        ...
