"""Region value types and normalization.

A region is an area of an image in percentage-of-image coordinates. It is
either axis-aligned (``RectRegion``) or polygonal (``PolygonRegion``).
Consumers that do not care about the difference call ``as_polygon`` and
treat every region as "a polygon, possibly rectangular".
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Annotated, Literal, Self

from pydantic import BaseModel, Field, model_validator

from renderflow.geometry.primitives import Point

# Regions thinner than this (in percentage units) are accidental clicks
MIN_REGION_EXTENT = 2.0

_PERCENT_MIN = 0.0
_PERCENT_MAX = 100.0


class InvalidRegionError(Exception):
    """Raised when a region is degenerate or cannot be mapped onto an image.

    Attributes:
        region: The offending region, when one was constructed.
    """

    def __init__(self, message: str, *, region: Region | None = None) -> None:
        self.region = region
        super().__init__(message)


class RectRegion(BaseModel, frozen=True):
    """An axis-aligned region.

    Invariant: ``x_start <= x_end`` and ``y_start <= y_end``, all coordinates
    in [0, 100]. Use ``normalize_rect`` to build one from two drag points.
    """

    kind: Literal["rect"] = "rect"
    x_start: float = Field(..., ge=_PERCENT_MIN, le=_PERCENT_MAX)
    y_start: float = Field(..., ge=_PERCENT_MIN, le=_PERCENT_MAX)
    x_end: float = Field(..., ge=_PERCENT_MIN, le=_PERCENT_MAX)
    y_end: float = Field(..., ge=_PERCENT_MIN, le=_PERCENT_MAX)

    @model_validator(mode="after")
    def _validate_order(self) -> Self:
        if self.x_start > self.x_end or self.y_start > self.y_end:
            raise ValueError(
                "RectRegion requires x_start <= x_end and y_start <= y_end, got "
                f"({self.x_start}, {self.y_start}) -> ({self.x_end}, {self.y_end})"
            )
        return self

    @property
    def width(self) -> float:
        """Horizontal extent in percentage units."""
        return self.x_end - self.x_start

    @property
    def height(self) -> float:
        """Vertical extent in percentage units."""
        return self.y_end - self.y_start

    @property
    def bounding_box(self) -> RectRegion:
        """A rectangle is its own bounding box."""
        return self

    def corners(self) -> tuple[Point, Point, Point, Point]:
        """Corners clockwise from top-left."""
        return (
            Point(x=self.x_start, y=self.y_start),
            Point(x=self.x_end, y=self.y_start),
            Point(x=self.x_end, y=self.y_end),
            Point(x=self.x_start, y=self.y_end),
        )

    def contains_point(self, point: Point) -> bool:
        """Check if a point is inside this region (edges inclusive)."""
        return (
            self.x_start <= point.x <= self.x_end
            and self.y_start <= point.y <= self.y_end
        )


class PolygonRegion(BaseModel, frozen=True):
    """A polygonal region with at least three vertices.

    The bounding box is derived on access and never stored, so it cannot
    fall out of sync with the points.
    """

    kind: Literal["polygon"] = "polygon"
    points: tuple[Point, ...] = Field(..., min_length=3)

    @property
    def bounding_box(self) -> RectRegion:
        """Axis-aligned bounding box of the vertices."""
        return bounding_box_of(self.points)

    @property
    def width(self) -> float:
        """Width of the bounding box in percentage units."""
        return self.bounding_box.width

    @property
    def height(self) -> float:
        """Height of the bounding box in percentage units."""
        return self.bounding_box.height


Region = Annotated[RectRegion | PolygonRegion, Field(discriminator="kind")]


def _clamp(value: float) -> float:
    return max(_PERCENT_MIN, min(_PERCENT_MAX, value))


def _coords(point: Point | tuple[float, float]) -> tuple[float, float]:
    if isinstance(point, Point):
        return point.to_tuple()
    return (float(point[0]), float(point[1]))


def normalize_rect(
    p1: Point | tuple[float, float],
    p2: Point | tuple[float, float],
) -> RectRegion:
    """Build a rectangle from two drag points.

    Swaps coordinates so start <= end on each axis, then clamps every
    coordinate into [0, 100]. The result does not depend on argument order.

    Args:
        p1: First corner (percentage coordinates, may be out of range).
        p2: Opposite corner.

    Returns:
        A valid RectRegion.
    """
    x1, y1 = _coords(p1)
    x2, y2 = _coords(p2)
    return RectRegion(
        x_start=_clamp(min(x1, x2)),
        y_start=_clamp(min(y1, y2)),
        x_end=_clamp(max(x1, x2)),
        y_end=_clamp(max(y1, y2)),
    )


def bounding_box_of(points: Iterable[Point]) -> RectRegion:
    """Min/max reduction over a set of points.

    Raises:
        ValueError: If ``points`` is empty.
    """
    pts = list(points)
    if not pts:
        raise ValueError("Cannot compute the bounding box of zero points")
    xs = [p.x for p in pts]
    ys = [p.y for p in pts]
    return RectRegion(x_start=min(xs), y_start=min(ys), x_end=max(xs), y_end=max(ys))


def is_degenerate(region: RectRegion | PolygonRegion) -> bool:
    """True when the region is too thin to be a deliberate selection."""
    box = region.bounding_box
    return box.width < MIN_REGION_EXTENT or box.height < MIN_REGION_EXTENT


def require_non_degenerate(region: RectRegion | PolygonRegion) -> None:
    """Raise InvalidRegionError for regions that fail ``is_degenerate``."""
    if is_degenerate(region):
        box = region.bounding_box
        raise InvalidRegionError(
            f"Region is degenerate: {box.width:.2f}% x {box.height:.2f}% "
            f"(minimum {MIN_REGION_EXTENT}% on each axis)",
            region=region,
        )


def as_polygon(region: RectRegion | PolygonRegion) -> tuple[Point, ...]:
    """Return the region as polygon vertices.

    Polygons with three or more points are returned as-is; anything else
    degrades to the four corners of its bounding rectangle.
    """
    if isinstance(region, PolygonRegion) and len(region.points) >= 3:
        return region.points
    return region.bounding_box.corners()


def region_from_points(points: Sequence[Point]) -> RectRegion | PolygonRegion:
    """Build the most specific region for a list of vertices.

    Three or more points make a polygon; one or two points make the
    rectangle they span.

    Raises:
        ValueError: If ``points`` is empty.
    """
    if len(points) >= 3:
        return PolygonRegion(points=tuple(points))
    if not points:
        raise ValueError("Cannot build a region from zero points")
    return normalize_rect(points[0], points[-1])


def describe_region(region: RectRegion | PolygonRegion) -> str:
    """Short human-readable description used in prompts and logs."""
    box = region.bounding_box
    shape = "polygon" if isinstance(region, PolygonRegion) else "rectangle"
    return (
        f"{shape} spanning x {box.x_start:.1f}%-{box.x_end:.1f}%, "
        f"y {box.y_start:.1f}%-{box.y_end:.1f}%"
    )
