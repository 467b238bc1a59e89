from unittest.mock import AsyncMock, MagicMock

import pytest

from stowage.storage.base import Bucket, StoredObject
from stowage.storage.relay import cache_control, guess_content_type, serve_object


class TestGuessContentType:
    @pytest.mark.parametrize(
        "key,expected",
        [
            ("a.png", "image/png"),
            ("a/b.JPG", "image/jpeg"),
            ("a.jpeg", "image/jpeg"),
            ("a.gif", "image/gif"),
            ("logo.svg", "image/svg+xml"),
            ("a.webp", "image/webp"),
            ("a.pdf", "application/octet-stream"),
            ("noext", "application/octet-stream"),
        ],
    )
    def test_by_extension(self, key, expected):
        assert guess_content_type(key) == expected


class TestCacheControl:
    def test_public(self):
        assert cache_control(Bucket.PUBLIC) == "public, max-age=31536000"

    def test_private(self):
        assert cache_control(Bucket.PRIVATE) == "private, max-age=60"


class TestServeObject:
    async def test_invalid_bucket(self, local_store):
        response = await serve_object(local_store, "secret", "a.png")
        assert response.status == 400

    async def test_missing_object(self, local_store):
        response = await serve_object(local_store, "public", "missing.png")
        assert response.status == 404

    async def test_traversal_is_not_found(self, local_store):
        response = await serve_object(local_store, "public", "../private/a.png")
        assert response.status == 404

    async def test_serves_local_object(self, local_store):
        await local_store.upload("img/a.png", b"png-bytes")

        response = await serve_object(local_store, "public", "img/a.png")

        assert response.status == 200
        assert response.body == b"png-bytes"
        assert response.headers == {
            "Content-Type": "image/png",
            "Cache-Control": "public, max-age=31536000",
        }

    async def test_private_cache_policy(self, local_store):
        await local_store.upload("doc.bin", b"x", bucket=Bucket.PRIVATE)
        response = await serve_object(local_store, "private", "doc.bin")
        assert response.headers["Cache-Control"] == "private, max-age=60"
        assert response.headers["Content-Type"] == "application/octet-stream"

    async def test_stored_content_type_wins(self):
        store = MagicMock()
        store.download = AsyncMock(return_value=StoredObject(data=b"x", content_type="image/avif"))
        response = await serve_object(store, "public", "a.png")
        assert response.headers["Content-Type"] == "image/avif"

    async def test_unexpected_error_is_not_found(self):
        store = MagicMock()
        store.download = AsyncMock(side_effect=RuntimeError("boom"))
        response = await serve_object(store, "public", "a.png")
        assert response.status == 404
