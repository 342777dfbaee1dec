"""Contain-fit geometry for images displayed inside a container.

Every drawing and cropping interaction goes through these functions. An
image shown with "contain" fitting is scaled to the largest size that fits
inside its container while keeping its aspect ratio, leaving empty margins
on one axis. Pointer input has to be mapped relative to the image itself,
not the container, and input landing in those margins must be ignored.

Contract:
    ``pixel_to_percentage`` returns ``None`` for letterbox input. Callers
    treat ``None`` as "ignore this event", never as a 0% or 100% edge.
"""

from __future__ import annotations

from renderflow.geometry.primitives import (
    ContainerRect,
    ImageBounds,
    PixelPoint,
    Point,
)


class GeometryUnavailableError(Exception):
    """Raised when image bounds are needed but have not been computed.

    This happens before the image has loaded (natural size unknown), before
    the container has been measured, or when either size is degenerate.
    """


def compute_contain_bounds(
    container_width: float,
    container_height: float,
    natural_width: float,
    natural_height: float,
) -> ImageBounds | None:
    """Compute where a contain-fit image sits inside its container.

    Args:
        container_width: Container width in pixels.
        container_height: Container height in pixels.
        natural_width: Natural (intrinsic) image width in pixels.
        natural_height: Natural (intrinsic) image height in pixels.

    Returns:
        The occupied pixel rectangle, or None when any size is degenerate.
        Callers must not run conversions without bounds.

    Example:
        >>> compute_contain_bounds(800, 450, 1600, 750)
        ImageBounds(x=0.0, y=37.5, width=800.0, height=375.0)
    """
    if natural_width <= 0 or natural_height <= 0:
        return None
    if container_width <= 0 or container_height <= 0:
        return None

    scale = min(container_width / natural_width, container_height / natural_height)
    width = natural_width * scale
    height = natural_height * scale

    # max(): width can exceed the container by float noise on the tight axis
    return ImageBounds(
        x=max(0.0, (container_width - width) / 2),
        y=max(0.0, (container_height - height) / 2),
        width=width,
        height=height,
    )


def pixel_to_percentage(
    client_x: float,
    client_y: float,
    container_rect: ContainerRect,
    bounds: ImageBounds,
) -> Point | None:
    """Convert a client pixel position into percentage-of-image coordinates.

    Args:
        client_x: Pointer X in client coordinates.
        client_y: Pointer Y in client coordinates.
        container_rect: Bounding rect of the container element.
        bounds: Contain bounds of the image inside that container.

    Returns:
        The percentage point, or None when the pointer is in the letterbox
        or pillarbox margin. Image edges are inclusive.
    """
    image_x = (client_x - container_rect.left) - bounds.x
    image_y = (client_y - container_rect.top) - bounds.y

    if image_x < 0 or image_x > bounds.width:
        return None
    if image_y < 0 or image_y > bounds.height:
        return None

    # Float noise at the far edge can land a hair above 100
    return Point(
        x=min(100.0, max(0.0, image_x / bounds.width * 100)),
        y=min(100.0, max(0.0, image_y / bounds.height * 100)),
    )


def percentage_to_pixel(x: float, y: float, bounds: ImageBounds) -> PixelPoint:
    """Convert percentage-of-image coordinates into container pixels.

    Used to position overlays. Never returns None: a stored region is always
    valid once it exists.
    """
    return PixelPoint(
        x=bounds.x + (x / 100) * bounds.width,
        y=bounds.y + (y / 100) * bounds.height,
    )


class ContainedImageView:
    """Tracks contain bounds for one displayed image.

    Bounds go stale whenever the container resizes or the image finishes
    loading, so both events feed this object and it recomputes eagerly.
    Conversions before both sizes are known raise GeometryUnavailableError.

    Usage:
        view = ContainedImageView()
        view.resize(800, 450)
        view.image_loaded(1600, 1000)
        point = view.to_percentage(client_x, client_y, container_rect)
        if point is None:
            return  # click landed in the letterbox
    """

    __slots__ = ("_bounds", "_container_size", "_natural_size")

    def __init__(self) -> None:
        self._container_size: tuple[float, float] | None = None
        self._natural_size: tuple[float, float] | None = None
        self._bounds: ImageBounds | None = None

    @property
    def bounds(self) -> ImageBounds:
        """Current contain bounds.

        Raises:
            GeometryUnavailableError: If bounds have not been computed.
        """
        if self._bounds is None:
            raise GeometryUnavailableError(
                "Image bounds unavailable: "
                f"container={self._container_size}, natural={self._natural_size}"
            )
        return self._bounds

    @property
    def is_ready(self) -> bool:
        """Whether conversions can run."""
        return self._bounds is not None

    def resize(self, container_width: float, container_height: float) -> None:
        """Record a new container size and recompute bounds."""
        self._container_size = (container_width, container_height)
        self._recompute()

    def image_loaded(self, natural_width: float, natural_height: float) -> None:
        """Record the image's natural size and recompute bounds."""
        self._natural_size = (natural_width, natural_height)
        self._recompute()

    def to_percentage(
        self,
        client_x: float,
        client_y: float,
        container_rect: ContainerRect,
    ) -> Point | None:
        """Map a pointer position to the image; None for letterbox input."""
        return pixel_to_percentage(client_x, client_y, container_rect, self.bounds)

    def to_pixel(self, point: Point) -> PixelPoint:
        """Map a percentage point back to container pixels."""
        return percentage_to_pixel(point.x, point.y, self.bounds)

    def _recompute(self) -> None:
        if self._container_size is None or self._natural_size is None:
            self._bounds = None
            return
        self._bounds = compute_contain_bounds(
            *self._container_size,
            *self._natural_size,
        )
