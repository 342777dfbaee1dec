"""Core raster operations for renderflow.

This package turns regions into pixels: cropping sub-images from renders
and layouts, and rasterizing selection masks and previews.

Public API:
    - CropEngine: Rectangle and polygon crops against natural pixel sizes.
    - CroppedArtifact: Result container with image, data URL and metadata.
    - build_selection_mask: RGBA mask for masked edits.
    - render_selection_preview: Shaded thumbnail of a selection.
    - encode_png: PNG encoding helper.
"""

from renderflow.core.crop_engine import (
    CropEngine,
    CroppedArtifact,
    polygon_to_pixels,
    rect_to_pixel_box,
)
from renderflow.core.masks import (
    build_selection_mask,
    encode_png,
    render_selection_preview,
)

__all__ = [
    "CropEngine",
    "CroppedArtifact",
    "build_selection_mask",
    "encode_png",
    "polygon_to_pixels",
    "rect_to_pixel_box",
    "render_selection_preview",
]
