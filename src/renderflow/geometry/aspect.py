"""Aspect ratio snapping for generation requests.

The image generation service only produces a handful of aspect ratios, so
output sizes are snapped to the nearest supported one. Widescreen renders
are biased toward 16:9.
"""

from __future__ import annotations

from renderflow.config import settings

SUPPORTED_ASPECT_RATIOS = ("16:9", "4:3", "1:1", "3:4", "9:16")


def closest_supported_ratio(ratio: float) -> str:
    """Snap a width/height ratio to a supported aspect ratio label.

    Args:
        ratio: Width divided by height. Must be positive.

    Returns:
        One of SUPPORTED_ASPECT_RATIOS.

    Raises:
        ValueError: If ratio is not positive.
    """
    if ratio <= 0:
        raise ValueError(f"ratio must be positive, got {ratio}")
    if ratio >= 1.5:
        return "16:9"
    if ratio >= 1.15:
        return "4:3"
    if ratio >= 0.85:
        return "1:1"
    if ratio >= 0.65:
        return "3:4"
    return "9:16"


def aspect_ratio_of(width: float, height: float, default: str | None = None) -> str:
    """Return the supported aspect ratio closest to ``width x height``.

    Falls back to ``default`` (or the configured default) for degenerate
    sizes, e.g. an image whose dimensions are not known yet.
    """
    if width <= 0 or height <= 0:
        return default or settings.DEFAULT_ASPECT_RATIO
    return closest_supported_ratio(width / height)
