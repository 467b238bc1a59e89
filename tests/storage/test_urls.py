import pytest

from stowage.storage.base import Bucket, StorageDriver
from stowage.storage.urls import (
    UrlConfig,
    is_hosted,
    is_not_hosted_image,
    local_base,
    object_url,
    public_url,
)

APP = "https://app.example.com"
ENDPOINT = "https://s3.us-east-1.amazonaws.com"


class TestPublicUrlLocal:
    def test_defaults_to_app_relay(self):
        config = UrlConfig(app_url=APP)
        url = public_url(StorageDriver.LOCAL, Bucket.PUBLIC, "a/b.png", config)
        assert url == f"{APP}/storage/public/a/b.png"

    def test_private_bucket_not_special(self):
        config = UrlConfig(app_url=APP)
        url = public_url(StorageDriver.LOCAL, Bucket.PRIVATE, "/a/b.png", config)
        assert url == f"{APP}/storage/private/a/b.png"

    def test_explicit_public_base(self):
        config = UrlConfig(app_url=APP, public_url="https://files.example.com/")
        url = public_url(StorageDriver.LOCAL, Bucket.PUBLIC, "a.png", config)
        assert url == "https://files.example.com/public/a.png"

    def test_no_app_url_gives_relative_link(self):
        url = public_url(StorageDriver.LOCAL, Bucket.PUBLIC, "a.png", UrlConfig())
        assert url == "/storage/public/a.png"


class TestPublicUrlRemote:
    def test_private_goes_through_relay(self):
        config = UrlConfig(app_url=APP, public_url="https://cdn.example.com", endpoint=ENDPOINT)
        url = public_url(StorageDriver.REMOTE, Bucket.PRIVATE, "/secret/doc.pdf", config)
        assert url == f"{APP}/storage/private/secret/doc.pdf"

    def test_public_with_cdn_base(self):
        config = UrlConfig(app_url=APP, public_url="https://cdn.example.com/")
        url = public_url(StorageDriver.REMOTE, Bucket.PUBLIC, "a/b.png", config)
        assert url == "https://cdn.example.com/a/b.png"

    def test_public_base_pointing_at_relay_is_ignored(self):
        config = UrlConfig(app_url=APP, public_url=f"{APP}/storage")
        url = public_url(StorageDriver.REMOTE, Bucket.PUBLIC, "a/b.png", config)
        assert url == f"{APP}/storage/public/a/b.png"

    def test_public_without_base(self):
        config = UrlConfig(app_url=APP)
        url = public_url(StorageDriver.REMOTE, Bucket.PUBLIC, "a/b.png", config)
        assert url == f"{APP}/storage/public/a/b.png"

    @pytest.mark.parametrize(
        "config",
        [
            UrlConfig(app_url=APP),
            UrlConfig(app_url=APP, public_url="https://cdn.example.com"),
            UrlConfig(app_url=APP, endpoint=ENDPOINT, force_path_style=True),
            UrlConfig(public_url=ENDPOINT, endpoint=ENDPOINT),
            UrlConfig(endpoint=ENDPOINT),
        ],
    )
    def test_private_never_returns_backend_url(self, config):
        key = "a/b.png"
        url = public_url(StorageDriver.REMOTE, Bucket.PRIVATE, key, config)
        for style in (True, False):
            assert url != object_url(ENDPOINT, "private-bucket", key, style)
        assert not url.startswith(ENDPOINT)
        assert "/storage/private/" in url


class TestObjectUrl:
    def test_virtual_hosted(self):
        assert object_url(ENDPOINT, "media", "a/b.png") == (
            "https://media.s3.us-east-1.amazonaws.com/a/b.png"
        )

    def test_virtual_hosted_keeps_port(self):
        assert object_url("http://minio:9000/", "media", "/x") == "http://media.minio:9000/x"

    def test_path_style(self):
        assert object_url("http://minio:9000/", "media", "a/b.png", force_path_style=True) == (
            "http://minio:9000/media/a/b.png"
        )

    def test_unparsable_endpoint_falls_back_to_path_style(self):
        assert object_url("minio", "media", "a.png") == "minio/media/a.png"


class TestIsHosted:
    def test_local_base(self):
        config = UrlConfig(app_url=APP)
        assert is_hosted(f"{APP}/storage/public/a.png", config)
        assert not is_hosted("https://elsewhere.example.com/a.png", config)

    def test_cdn_and_avatar(self):
        config = UrlConfig(
            app_url=APP,
            cdn_url="https://assets.example.com",
            avatar_url="https://api.example.com/og/avatar",
        )
        assert is_hosted("https://assets.example.com/logo.png", config)
        assert is_hosted("https://api.example.com/og/avatar/abc", config)
        assert not is_hosted("https://api.example.com/other", config)

    def test_explicit_public_base(self):
        config = UrlConfig(app_url=APP, public_url="https://files.example.com")
        assert is_hosted("https://files.example.com/public/a.png", config)
        assert local_base(config) == "https://files.example.com"

    def test_empty_bases_do_not_match_everything(self):
        config = UrlConfig(app_url="https://app.example.com")
        assert not is_hosted("", config)
        assert not is_hosted("https://x.example.com", config)


class TestIsNotHostedImage:
    def test_https(self):
        assert not is_not_hosted_image("https://example.com/a.png")

    def test_other(self):
        assert is_not_hosted_image("data:image/png;base64,AAAA")
        assert is_not_hosted_image("http://example.com/a.png")
