"""Selection masks and selection previews.

Masked (selective) edits send the generation service a raster that is
opaque where the edit should happen and transparent everywhere else.
Previews darken everything outside a selection so the user can confirm
what will be edited before any request is made.
"""

from __future__ import annotations

from io import BytesIO

from PIL import Image, ImageDraw

from renderflow.geometry.regions import PolygonRegion, RectRegion, as_polygon

_MASK_FILL = (255, 255, 255, 255)
_PREVIEW_SHADE = (0, 0, 0, 128)
_PREVIEW_OUTLINE = (59, 130, 246, 255)


def _scaled_vertices(
    region: RectRegion | PolygonRegion,
    width: int,
    height: int,
) -> list[tuple[float, float]]:
    return [(p.x / 100 * width, p.y / 100 * height) for p in as_polygon(region)]


def build_selection_mask(
    region: RectRegion | PolygonRegion,
    width: int,
    height: int,
) -> Image.Image:
    """Rasterize a region into an RGBA mask.

    Args:
        region: Region in percentage coordinates.
        width: Output width in pixels.
        height: Output height in pixels.

    Returns:
        RGBA image: opaque white inside the region, transparent outside.

    Raises:
        ValueError: If width or height is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Mask size must be positive, got {width}x{height}")

    mask = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    ImageDraw.Draw(mask).polygon(_scaled_vertices(region, width, height), fill=_MASK_FILL)
    return mask


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as PNG bytes."""
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def render_selection_preview(
    image: Image.Image,
    region: RectRegion | PolygonRegion,
    size: int = 200,
) -> Image.Image:
    """Render a thumbnail with everything outside ``region`` shaded.

    Args:
        image: Source render.
        region: Selection in percentage coordinates.
        size: Long side of the preview in pixels.

    Returns:
        RGBA preview, aspect ratio preserved.
    """
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")

    preview = image.convert("RGBA")
    preview.thumbnail((size, size), resample=Image.Resampling.LANCZOS)
    vertices = _scaled_vertices(region, preview.width, preview.height)

    shade = Image.new("RGBA", preview.size, _PREVIEW_SHADE)
    ImageDraw.Draw(shade).polygon(vertices, fill=(0, 0, 0, 0))
    preview = Image.alpha_composite(preview, shade)

    ImageDraw.Draw(preview).polygon(vertices, outline=_PREVIEW_OUTLINE, width=2)
    return preview
