"""Geometry module for renderflow.

This package maps between on-screen pixels and percentage-of-image
coordinates for images displayed under contain fitting, and models the
regions and zones drawn on top of them.

Key Components:
    - Primitives: Point, PixelPoint, ImageBounds, ContainerRect
    - Containment: contain bounds and pixel <-> percentage conversion
    - Regions: RectRegion / PolygonRegion, normalization and validation
    - Zones: named, persisted regions with a derived bounding box
    - Aspect: snapping sizes to generation-supported aspect ratios

Example:
    from renderflow.geometry import (
        ContainerRect,
        compute_contain_bounds,
        normalize_rect,
        pixel_to_percentage,
    )

    bounds = compute_contain_bounds(800, 450, 1600, 750)
    rect = ContainerRect(left=0, top=0, width=800, height=450)
    start = pixel_to_percentage(100, 100, rect, bounds)
    end = pixel_to_percentage(500, 300, rect, bounds)
    if start is not None and end is not None:
        region = normalize_rect(start, end)
"""

from renderflow.geometry.aspect import (
    SUPPORTED_ASPECT_RATIOS,
    aspect_ratio_of,
    closest_supported_ratio,
)
from renderflow.geometry.containment import (
    ContainedImageView,
    GeometryUnavailableError,
    compute_contain_bounds,
    percentage_to_pixel,
    pixel_to_percentage,
)
from renderflow.geometry.primitives import ContainerRect, ImageBounds, PixelPoint, Point
from renderflow.geometry.regions import (
    MIN_REGION_EXTENT,
    InvalidRegionError,
    PolygonRegion,
    RectRegion,
    Region,
    as_polygon,
    bounding_box_of,
    describe_region,
    is_degenerate,
    normalize_rect,
    region_from_points,
    require_non_degenerate,
)
from renderflow.geometry.zones import Zone, ZoneCollection

__all__ = [
    "MIN_REGION_EXTENT",
    "SUPPORTED_ASPECT_RATIOS",
    "ContainedImageView",
    "ContainerRect",
    "GeometryUnavailableError",
    "ImageBounds",
    "InvalidRegionError",
    "PixelPoint",
    "Point",
    "PolygonRegion",
    "RectRegion",
    "Region",
    "Zone",
    "ZoneCollection",
    "as_polygon",
    "aspect_ratio_of",
    "bounding_box_of",
    "closest_supported_ratio",
    "compute_contain_bounds",
    "describe_region",
    "is_degenerate",
    "normalize_rect",
    "percentage_to_pixel",
    "pixel_to_percentage",
    "region_from_points",
    "require_non_degenerate",
]
