"""Geometry primitives for renderflow.

This module provides immutable Pydantic models for the two coordinate
spaces the editor works in:

- Percentage-of-image space (``Point``): resolution independent, each axis
  in [0, 100], with (0, 0) at the top-left corner of the image itself.
- Container pixel space (``PixelPoint``, ``ImageBounds``, ``ContainerRect``):
  on-screen pixels, where the image may be letterboxed or pillarboxed.
"""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, Field


class Point(BaseModel, frozen=True):
    """A 2D point in percentage-of-image coordinates.

    Attributes:
        x: Horizontal position, 0 at the left edge and 100 at the right edge.
        y: Vertical position, 0 at the top edge and 100 at the bottom edge.
    """

    x: float = Field(..., ge=0.0, le=100.0, description="X as % of image width")
    y: float = Field(..., ge=0.0, le=100.0, description="Y as % of image height")

    def to_tuple(self) -> tuple[float, float]:
        """Convert to (x, y) tuple."""
        return (self.x, self.y)

    @classmethod
    def from_tuple(cls, coord: tuple[float, float]) -> Self:
        """Create Point from (x, y) tuple."""
        return cls(x=coord[0], y=coord[1])


class PixelPoint(BaseModel, frozen=True):
    """A 2D point in container pixel coordinates.

    Unlike ``Point`` this is unconstrained: overlay positions are relative
    to the container and may sit anywhere inside it.
    """

    x: float
    y: float

    def to_tuple(self) -> tuple[float, float]:
        """Convert to (x, y) tuple."""
        return (self.x, self.y)


class ImageBounds(BaseModel, frozen=True):
    """Pixel rectangle, within a container, that a contain-fit image occupies.

    Derived from container and natural image sizes and never persisted.
    ``width / height`` equals the image's natural aspect ratio and the
    rectangle is centered on whichever axis has slack.

    Attributes:
        x: Left offset in pixels (pillarbox padding).
        y: Top offset in pixels (letterbox padding).
        width: Rendered image width in pixels.
        height: Rendered image height in pixels.
    """

    x: float = Field(..., ge=0.0)
    y: float = Field(..., ge=0.0)
    width: float = Field(..., gt=0.0)
    height: float = Field(..., gt=0.0)

    @property
    def right(self) -> float:
        """Return the X coordinate of the right edge."""
        return self.x + self.width

    @property
    def bottom(self) -> float:
        """Return the Y coordinate of the bottom edge."""
        return self.y + self.height

    @property
    def aspect_ratio(self) -> float:
        """Return width / height."""
        return self.width / self.height


class ContainerRect(BaseModel, frozen=True):
    """On-screen rectangle of the element hosting the image.

    Mirrors what a browser reports for an element's bounding client rect:
    ``left``/``top`` are in client (viewport) coordinates.
    """

    left: float
    top: float
    width: float = Field(..., ge=0.0)
    height: float = Field(..., ge=0.0)
