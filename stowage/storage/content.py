"""Turn an upload body into bytes, size and content type."""

from __future__ import annotations

import base64
import binascii
import logging
import re

import httpx

from stowage.errors import FetchError, UnsupportedInputError
from stowage.storage.base import ResolvedContent, UploadOptions

logger = logging.getLogger(__name__)

_B64 = r"(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?"
# Data URLs in the wild often drop the trailing padding.
_B64_UNPADDED = r"(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}(?:==)?|[A-Za-z0-9+/]{3}=?)?"
BASE64_RE = re.compile(rf"^{_B64}$")
DATA_URL_RE = re.compile(
    rf"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>{_B64_UNPADDED})$"
)

UploadInput = bytes | bytearray | memoryview | str


def is_base64(value: str) -> bool:
    return bool(BASE64_RE.match(value) or DATA_URL_RE.match(value))


def is_url(value: str) -> bool:
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL:
        return False
    return url.scheme in ("http", "https") and bool(url.host)


def decode_base64(value: str) -> tuple[bytes, str | None]:
    """Decode plain base64 or a ``data:<mime>;base64,`` URL.

    Returns the bytes and the mime declared by the data URL, if any.
    """
    mime = None
    match = DATA_URL_RE.match(value)
    if match:
        mime = match.group("mime")
        value = match.group("payload")
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.b64decode(padded, validate=True), mime
    except binascii.Error as exc:
        raise UnsupportedInputError("Malformed base64 payload") from exc


class ContentResolver:
    def __init__(
        self,
        proxy_url: str = "https://wsrv.nl",
        proxy_timeout: float = 1.0,
        fetch_timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.proxy_url = proxy_url
        self.proxy_timeout = proxy_timeout
        self.fetch_timeout = fetch_timeout
        self._client = client

    async def normalize(self, body: UploadInput, opts: UploadOptions | None = None) -> ResolvedContent:
        opts = opts or UploadOptions()

        if isinstance(body, (bytes, bytearray, memoryview)):
            return ResolvedContent.from_bytes(bytes(body), opts.content_type)

        if not isinstance(body, str):
            raise UnsupportedInputError(f"Unsupported upload body type: {type(body).__name__}")

        if is_base64(body):
            data, mime = decode_base64(body)
            return ResolvedContent.from_bytes(data, opts.content_type or mime)

        if is_url(body):
            return await self._from_url(body, opts)

        raise UnsupportedInputError("Invalid input: not a base64 string or a valid URL")

    def proxy_request_url(self, url: str, width: int | None, height: int | None) -> str:
        params: dict[str, str] = {"url": url}
        if width:
            params["w"] = str(width)
        if height:
            params["h"] = str(height)
        params["fit"] = "cover"
        return str(httpx.URL(self.proxy_url, params=params))

    async def _from_url(self, url: str, opts: UploadOptions) -> ResolvedContent:
        if self._client is not None:
            return await self._fetch(self._client, url, opts)
        async with httpx.AsyncClient(follow_redirects=True) as client:
            return await self._fetch(client, url, opts)

    async def _fetch(self, client: httpx.AsyncClient, url: str, opts: UploadOptions) -> ResolvedContent:
        response = None
        if opts.width or opts.height:
            response = await self._fetch_resized(client, url, opts)

        if response is None:
            try:
                response = await client.get(url, timeout=self.fetch_timeout)
            except httpx.HTTPError as exc:
                raise FetchError(f"Failed to fetch URL: {url}") from exc

        if not response.is_success:
            raise FetchError(f"Failed to fetch URL: {response.status_code} {response.reason_phrase}")

        data = response.content
        content_type = opts.content_type or response.headers.get("content-type")
        logger.debug("Fetched %s (%d bytes, %s)", url, len(data), content_type)
        return ResolvedContent.from_bytes(data, content_type)

    async def _fetch_resized(
        self, client: httpx.AsyncClient, url: str, opts: UploadOptions
    ) -> httpx.Response | None:
        proxied = self.proxy_request_url(url, opts.width, opts.height)
        try:
            response = await client.get(proxied, timeout=self.proxy_timeout)
        except httpx.HTTPError as exc:
            logger.warning("Image proxy failed for %s, fetching original: %s", url, exc)
            return None
        if not response.is_success:
            logger.warning(
                "Image proxy returned %d for %s, fetching original", response.status_code, url
            )
            return None
        return response
