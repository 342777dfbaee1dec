"""Asynchronous image loading for crop and mask operations.

Sources can be http(s) URLs, ``data:`` URLs, filesystem paths, or raw
encoded bytes. Fetching happens on the event loop via httpx; decoding is
CPU-bound and runs in a worker thread so a large render does not stall
other projects.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
from io import BytesIO
from pathlib import Path
from typing import Protocol

import httpx
from PIL import Image, UnidentifiedImageError

from renderflow.config import Settings, settings
from renderflow.imaging.exceptions import SourceUnavailableError

ImageSource = str | bytes | Path

_DATA_URL_PREFIX = "data:"
_HTTP_SCHEMES = ("http://", "https://")
_SOURCE_PREVIEW_CHARS = 80


def describe_source(source: ImageSource) -> str:
    """Return a short, log-safe description of a source."""
    if isinstance(source, bytes):
        return f"<{len(source)} bytes>"
    text = str(source)
    if text.startswith(_DATA_URL_PREFIX):
        header = text.split(",", 1)[0]
        return f"{header},<{len(text)} chars>"
    if len(text) > _SOURCE_PREVIEW_CHARS:
        return text[:_SOURCE_PREVIEW_CHARS] + "..."
    return text


def source_key(source: ImageSource) -> str:
    """Stable cache key for a source.

    URLs and paths key by their text; bytes and data URLs by content hash
    so large payloads are not kept alive as dictionary keys.
    """
    if isinstance(source, bytes):
        return "sha1:" + hashlib.sha1(source).hexdigest()  # noqa: S324
    text = str(source)
    if text.startswith(_DATA_URL_PREFIX):
        return "sha1:" + hashlib.sha1(text.encode()).hexdigest()  # noqa: S324
    return text


def decode_data_url(data_url: str) -> bytes:
    """Decode a base64 ``data:`` URL into raw bytes.

    Raises:
        SourceUnavailableError: If the URL is malformed or not base64.
    """
    header, sep, payload = data_url.partition(",")
    if not sep or ";base64" not in header:
        raise SourceUnavailableError(
            "Malformed data URL (expected base64 payload)",
            describe_source(data_url),
        )
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SourceUnavailableError(
            f"Invalid base64 in data URL: {e}",
            describe_source(data_url),
        ) from e


def _decode(data: bytes, description: str) -> Image.Image:
    try:
        with Image.open(BytesIO(data)) as opened:
            opened.load()
            image = opened.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise SourceUnavailableError(f"Failed to decode image: {e}", description) from e

    if image.width == 0 or image.height == 0:
        raise SourceUnavailableError("Decoded image has zero size", description)
    return image


class ImageLoaderProtocol(Protocol):
    """Protocol for loaders, for dependency injection in tests."""

    async def load(self, source: ImageSource) -> Image.Image:
        """Fetch and decode ``source`` into a PIL image."""
        ...


class ImageLoader:
    """Loads images from URLs, data URLs, paths, or bytes.

    Usage:
        loader = ImageLoader()
        image = await loader.load("https://cdn.example.com/render.png")
        print(image.size)  # natural dimensions
    """

    __slots__ = ("_client", "_settings")

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        settings: Settings = settings,
    ) -> None:
        """Initialize the loader.

        Args:
            client: Optional shared httpx client. When omitted, each remote
                fetch opens a short-lived client.
            settings: Settings providing the fetch timeout.
        """
        self._client = client
        self._settings = settings

    async def load(self, source: ImageSource) -> Image.Image:
        """Fetch and decode an image.

        Returns:
            The decoded image with its natural dimensions.

        Raises:
            SourceUnavailableError: If the source cannot be read or decoded.
        """
        description = describe_source(source)
        data = await self._read_bytes(source, description)
        return await asyncio.to_thread(_decode, data, description)

    async def _read_bytes(self, source: ImageSource, description: str) -> bytes:
        if isinstance(source, bytes):
            return source
        if isinstance(source, Path):
            return await self._read_path(source, description)

        if source.startswith(_DATA_URL_PREFIX):
            return decode_data_url(source)
        if source.startswith(_HTTP_SCHEMES):
            return await self._fetch(source, description)
        return await self._read_path(Path(source), description)

    async def _read_path(self, path: Path, description: str) -> bytes:
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise SourceUnavailableError(
                f"Failed to read image file: {e}", description
            ) from e

    async def _fetch(self, url: str, description: str) -> bytes:
        timeout = httpx.Timeout(self._settings.IMAGE_FETCH_TIMEOUT_SECONDS)
        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=timeout)
            else:
                async with httpx.AsyncClient(
                    timeout=timeout, follow_redirects=True
                ) as client:
                    response = await client.get(url)
        except httpx.HTTPError as e:
            raise SourceUnavailableError(
                f"Failed to fetch image: {e}", description
            ) from e

        if response.status_code >= 400:
            raise SourceUnavailableError(
                "Image fetch returned an error status",
                description,
                status_code=response.status_code,
            )
        return response.content
