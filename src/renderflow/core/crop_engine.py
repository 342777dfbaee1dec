"""Region cropping for renders and layouts.

This module extracts sub-images from a source image given a region in
percentage-of-image coordinates. Crops are computed against the source's
natural pixel dimensions, never its on-screen size, so the same region
always yields the same pixels regardless of zoom or container size.

Algorithm:
    Rectangle:
        1. Decode the source (async; fetch and decode are I/O bound).
        2. Map percentages to natural pixels (rounded to whole pixels).
        3. Raster-copy that box and encode as a JPEG data URL.
    Polygon:
        1. Decode the source.
        2. Map each vertex to natural pixel space.
        3. Trim to the polygon's pixel bounding box.
        4. Rasterize a clip mask from the polygon and apply it as alpha.
        5. Encode as a PNG data URL (transparency outside the polygon).

Failure Behavior:
    A region that maps to zero width or height in natural pixels raises
    InvalidRegionError; a source that cannot be decoded raises
    SourceUnavailableError. Neither is retried.
"""

from __future__ import annotations

import base64
import math
from collections import OrderedDict
from collections.abc import Sequence
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, ImageChops, ImageDraw

from renderflow.config import Settings, settings
from renderflow.geometry.primitives import Point
from renderflow.geometry.regions import (
    InvalidRegionError,
    PolygonRegion,
    RectRegion,
)
from renderflow.imaging.loader import (
    ImageLoader,
    ImageLoaderProtocol,
    ImageSource,
    source_key,
)
from renderflow.utils.logging import get_logger

logger = get_logger(__name__)

# JPEG quality bounds (PIL accepts 1-100)
_JPEG_QUALITY_MIN = 1
_JPEG_QUALITY_MAX = 100

PixelBox = tuple[int, int, int, int]


@dataclass(frozen=True)
class CroppedArtifact:
    """Result of cropping a region out of a source image.

    Owned by whoever requested it; typically a transient preview.

    Attributes:
        image: Cropped PIL image (RGB for rectangles, RGBA for polygons).
        data_url: Base64 data URL of the encoded crop.
        media_type: MIME type inside the data URL.
        pixel_box: (left, top, right, bottom) in the source's natural pixels.
        source_size: Natural (width, height) of the source image.
        region: The region that was requested.
    """

    image: Image.Image
    data_url: str
    media_type: str
    pixel_box: PixelBox
    source_size: tuple[int, int]
    region: RectRegion | PolygonRegion

    @property
    def size(self) -> tuple[int, int]:
        """Output (width, height) in pixels."""
        return self.image.size


def rect_to_pixel_box(region: RectRegion, natural_size: tuple[int, int]) -> PixelBox:
    """Map a percentage rectangle onto natural pixel edges.

    Edges are rounded independently so adjacent regions tile without gaps.
    """
    width, height = natural_size
    return (
        round(region.x_start / 100 * width),
        round(region.y_start / 100 * height),
        round(region.x_end / 100 * width),
        round(region.y_end / 100 * height),
    )


def polygon_to_pixels(
    points: Sequence[Point],
    natural_size: tuple[int, int],
) -> list[tuple[float, float]]:
    """Map percentage vertices onto natural pixel coordinates."""
    width, height = natural_size
    return [(p.x / 100 * width, p.y / 100 * height) for p in points]


def _pixel_bounding_box(
    pixels: Sequence[tuple[float, float]],
    natural_size: tuple[int, int],
) -> PixelBox:
    width, height = natural_size
    xs = [x for x, _ in pixels]
    ys = [y for _, y in pixels]
    return (
        max(0, math.floor(min(xs))),
        max(0, math.floor(min(ys))),
        min(width, math.ceil(max(xs))),
        min(height, math.ceil(max(ys))),
    )


def _require_area(box: PixelBox, region: RectRegion | PolygonRegion) -> None:
    left, top, right, bottom = box
    if right - left <= 0 or bottom - top <= 0:
        raise InvalidRegionError(
            f"Region maps to an empty pixel box {box} "
            f"({right - left}x{bottom - top} px)",
            region=region,
        )


class CropEngine:
    """Extracts rectangle and polygon crops from source images.

    Operations are side-effect free: the same (source, region) pair always
    yields an equivalent artifact. Results are memoized in a small LRU keyed
    by (source key, region); the cache is only written once a crop has fully
    completed, so abandoning an in-progress crop leaves no partial state.

    Example:
        >>> engine = CropEngine()
        >>> region = RectRegion(x_start=10, y_start=10, x_end=90, y_end=90)
        >>> result = await engine.crop_rect("layout.png", region)
        >>> result.size  # for a 1000x1000 source
        (800, 800)
    """

    __slots__ = ("_cache", "_cache_size", "_jpeg_quality", "_loader")

    def __init__(
        self,
        loader: ImageLoaderProtocol | None = None,
        *,
        cache_size: int | None = None,
        jpeg_quality: int | None = None,
        settings: Settings = settings,
    ) -> None:
        """Initialize the crop engine.

        Args:
            loader: Image loader. Defaults to ImageLoader().
            cache_size: Max memoized crops; 0 disables memoization.
                Defaults to settings.CROP_CACHE_SIZE.
            jpeg_quality: JPEG quality 1-100 for rectangle crops.
                Defaults to settings.CROP_JPEG_QUALITY.
            settings: Settings supplying defaults.

        Raises:
            ValueError: If jpeg_quality is not in range 1-100.
        """
        quality = settings.CROP_JPEG_QUALITY if jpeg_quality is None else jpeg_quality
        if not _JPEG_QUALITY_MIN <= quality <= _JPEG_QUALITY_MAX:
            raise ValueError(
                f"jpeg_quality must be {_JPEG_QUALITY_MIN}-{_JPEG_QUALITY_MAX}, "
                f"got {quality}"
            )
        self._loader = loader or ImageLoader(settings=settings)
        self._cache_size = settings.CROP_CACHE_SIZE if cache_size is None else cache_size
        self._jpeg_quality = quality
        self._cache: OrderedDict[tuple[str, RectRegion | PolygonRegion], CroppedArtifact] = (
            OrderedDict()
        )

    async def natural_size(self, source: ImageSource) -> tuple[int, int]:
        """Decode ``source`` and return its natural (width, height)."""
        image = await self._loader.load(source)
        return image.size

    async def crop_region(
        self,
        source: ImageSource,
        region: RectRegion | PolygonRegion,
    ) -> CroppedArtifact:
        """Crop either region variant."""
        if isinstance(region, PolygonRegion):
            return await self.crop_polygon(source, region.points)
        return await self.crop_rect(source, region)

    async def crop_rect(self, source: ImageSource, region: RectRegion) -> CroppedArtifact:
        """Crop an axis-aligned region.

        Args:
            source: Image to crop from.
            region: Percentage rectangle.

        Returns:
            CroppedArtifact whose size is the region's share of the natural
            image size.

        Raises:
            SourceUnavailableError: If the source cannot be decoded.
            InvalidRegionError: If the region has no area in natural pixels.
        """
        key = (source_key(source), region)
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        image = await self._loader.load(source)
        box = rect_to_pixel_box(region, image.size)
        _require_area(box, region)

        cropped = image.crop(box)
        if cropped.mode != "RGB":
            cropped = cropped.convert("RGB")

        result = CroppedArtifact(
            image=cropped,
            data_url=_encode_data_url(cropped, "JPEG", quality=self._jpeg_quality),
            media_type="image/jpeg",
            pixel_box=box,
            source_size=image.size,
            region=region,
        )
        logger.debug(
            "Cropped rectangle",
            pixel_box=box,
            size=cropped.size,
            source_size=image.size,
        )
        self._cache_put(key, result)
        return result

    async def crop_polygon(
        self,
        source: ImageSource,
        points: Sequence[Point],
    ) -> CroppedArtifact:
        """Crop a polygonal region, transparent outside the polygon.

        The output is trimmed to the polygon's pixel bounding box so there
        is no wasted transparent margin.

        Raises:
            SourceUnavailableError: If the source cannot be decoded.
            InvalidRegionError: If there are fewer than three points or the
                polygon has no area in natural pixels.
        """
        if len(points) < 3:
            raise InvalidRegionError(
                f"Polygon crop needs at least 3 points, got {len(points)}"
            )
        region = PolygonRegion(points=tuple(points))
        key = (source_key(source), region)
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        image = await self._loader.load(source)
        pixels = polygon_to_pixels(region.points, image.size)
        box = _pixel_bounding_box(pixels, image.size)
        _require_area(box, region)

        left, top, right, bottom = box
        clipped = image.convert("RGBA").crop(box)

        mask = Image.new("L", (right - left, bottom - top), 0)
        ImageDraw.Draw(mask).polygon(
            [(x - left, y - top) for x, y in pixels],
            fill=255,
        )
        clipped.putalpha(ImageChops.multiply(clipped.getchannel("A"), mask))

        result = CroppedArtifact(
            image=clipped,
            data_url=_encode_data_url(clipped, "PNG"),
            media_type="image/png",
            pixel_box=box,
            source_size=image.size,
            region=region,
        )
        logger.debug(
            "Cropped polygon",
            vertices=len(points),
            pixel_box=box,
            source_size=image.size,
        )
        self._cache_put(key, result)
        return result

    def clear_cache(self) -> None:
        """Drop all memoized crops."""
        self._cache.clear()

    def _cache_get(
        self, key: tuple[str, RectRegion | PolygonRegion]
    ) -> CroppedArtifact | None:
        if self._cache_size <= 0:
            return None
        result = self._cache.get(key)
        if result is not None:
            self._cache.move_to_end(key)
        return result

    def _cache_put(
        self,
        key: tuple[str, RectRegion | PolygonRegion],
        result: CroppedArtifact,
    ) -> None:
        if self._cache_size <= 0:
            return
        self._cache[key] = result
        self._cache.move_to_end(key)
        while len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)


def _encode_data_url(image: Image.Image, image_format: str, **save_kwargs: int) -> str:
    """Encode an image as a base64 data URL."""
    buffer = BytesIO()
    image.save(buffer, format=image_format, **save_kwargs)
    media_type = "image/jpeg" if image_format == "JPEG" else "image/png"
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:{media_type};base64,{encoded}"
