"""Tests for renderflow.geometry.containment.

Covers contain-fit bounds, client pixel -> percentage conversion (with
letterbox rejection), the inverse mapping, and ContainedImageView.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from renderflow.geometry import (
    ContainedImageView,
    ContainerRect,
    GeometryUnavailableError,
    ImageBounds,
    Point,
    compute_contain_bounds,
    percentage_to_pixel,
    pixel_to_percentage,
)

sizes = st.floats(min_value=1.0, max_value=10_000.0, allow_nan=False, allow_infinity=False)


class TestComputeContainBounds:
    """Tests for compute_contain_bounds."""

    def test_letterboxed_landscape(self) -> None:
        """800x450 container, 1600x750 image: scale 0.5, 37.5 px bars."""
        bounds = compute_contain_bounds(800, 450, 1600, 750)
        assert bounds == ImageBounds(x=0, y=37.5, width=800, height=375)

    def test_pillarboxed_when_height_limits(self) -> None:
        """800x450 container, 1600x1000 image: scale 0.45, pillarbox of 40 px."""
        bounds = compute_contain_bounds(800, 450, 1600, 1000)
        assert bounds is not None
        assert bounds.x == pytest.approx(40)
        assert bounds.y == pytest.approx(0)
        assert bounds.width == pytest.approx(720)
        assert bounds.height == pytest.approx(450)

    def test_exact_fit_has_no_margins(self) -> None:
        bounds = compute_contain_bounds(1000, 500, 2000, 1000)
        assert bounds == ImageBounds(x=0, y=0, width=1000, height=500)

    @pytest.mark.parametrize(
        ("natural_w", "natural_h"),
        [(0, 100), (100, 0), (0, 0)],
    )
    def test_zero_natural_size_returns_none(self, natural_w: float, natural_h: float) -> None:
        assert compute_contain_bounds(800, 450, natural_w, natural_h) is None

    def test_zero_container_returns_none(self) -> None:
        assert compute_contain_bounds(0, 450, 1600, 900) is None

    @given(cw=sizes, ch=sizes, nw=sizes, nh=sizes)
    @settings(max_examples=200)
    def test_bounds_fit_container_and_keep_aspect(
        self, cw: float, ch: float, nw: float, nh: float
    ) -> None:
        """Bounds stay inside the container and keep the natural aspect ratio."""
        bounds = compute_contain_bounds(cw, ch, nw, nh)
        assert bounds is not None
        assert bounds.width == pytest.approx(nw / nh * bounds.height, rel=1e-9)
        assert bounds.right <= cw * (1 + 1e-9)
        assert bounds.bottom <= ch * (1 + 1e-9)
        # Touches the container on at least one axis
        assert bounds.width == pytest.approx(cw) or bounds.height == pytest.approx(ch)


class TestPixelToPercentage:
    """Tests for pixel_to_percentage."""

    @pytest.fixture
    def container(self) -> ContainerRect:
        return ContainerRect(left=0, top=0, width=800, height=450)

    @pytest.fixture
    def bounds(self) -> ImageBounds:
        result = compute_contain_bounds(800, 450, 1600, 750)
        assert result is not None
        return result

    def test_click_in_top_letterbox_is_none(
        self, container: ContainerRect, bounds: ImageBounds
    ) -> None:
        assert pixel_to_percentage(400, 20, container, bounds) is None

    def test_click_in_center_is_fifty_percent(
        self, container: ContainerRect, bounds: ImageBounds
    ) -> None:
        assert pixel_to_percentage(400, 225, container, bounds) == Point(x=50, y=50)

    def test_edges_are_inclusive(self, container: ContainerRect, bounds: ImageBounds) -> None:
        assert pixel_to_percentage(0, 37.5, container, bounds) == Point(x=0, y=0)
        assert pixel_to_percentage(800, 412.5, container, bounds) == Point(x=100, y=100)

    def test_just_outside_edge_is_none(
        self, container: ContainerRect, bounds: ImageBounds
    ) -> None:
        assert pixel_to_percentage(400, 412.6, container, bounds) is None
        assert pixel_to_percentage(-0.1, 200, container, bounds) is None

    def test_container_offset_is_subtracted(self, bounds: ImageBounds) -> None:
        """Client coordinates are translated by the container's position."""
        container = ContainerRect(left=100, top=50, width=800, height=450)
        assert pixel_to_percentage(500, 275, container, bounds) == Point(x=50, y=50)
        assert pixel_to_percentage(500, 70, container, bounds) is None

    def test_pillarbox_is_rejected(self, container: ContainerRect) -> None:
        bounds = compute_contain_bounds(800, 450, 1000, 1000)
        assert bounds is not None
        assert pixel_to_percentage(100, 225, container, bounds) is None
        assert pixel_to_percentage(400, 225, container, bounds) == Point(x=50, y=50)

    @given(
        cw=st.floats(min_value=10, max_value=4000),
        ch=st.floats(min_value=10, max_value=4000),
        nw=st.floats(min_value=10, max_value=8000),
        nh=st.floats(min_value=10, max_value=8000),
        px=st.floats(min_value=0, max_value=100),
        py=st.floats(min_value=0, max_value=100),
    )
    @settings(max_examples=200)
    def test_round_trip(
        self, cw: float, ch: float, nw: float, nh: float, px: float, py: float
    ) -> None:
        """percentage -> pixel -> percentage is the identity (within float error)."""
        bounds = compute_contain_bounds(cw, ch, nw, nh)
        assert bounds is not None
        container = ContainerRect(left=0, top=0, width=cw, height=ch)

        pixel = percentage_to_pixel(px, py, bounds)
        point = pixel_to_percentage(pixel.x, pixel.y, container, bounds)

        # Far edges can round a hair outside and be rejected; interior cannot
        if point is None:
            assert px > 99.999 or py > 99.999 or px < 1e-9 or py < 1e-9
            return
        assert point.x == pytest.approx(px, abs=1e-6)
        assert point.y == pytest.approx(py, abs=1e-6)


class TestPercentageToPixel:
    """Tests for percentage_to_pixel."""

    def test_maps_into_container_space(self) -> None:
        bounds = ImageBounds(x=0, y=37.5, width=800, height=375)
        pixel = percentage_to_pixel(50, 50, bounds)
        assert pixel.to_tuple() == (400, 225)

    def test_corners(self) -> None:
        bounds = ImageBounds(x=40, y=0, width=720, height=450)
        assert percentage_to_pixel(0, 0, bounds).to_tuple() == (40, 0)
        assert percentage_to_pixel(100, 100, bounds).to_tuple() == (760, 450)


class TestContainedImageView:
    """Tests for ContainedImageView."""

    def test_bounds_unavailable_until_both_sizes_known(self) -> None:
        view = ContainedImageView()
        assert not view.is_ready
        with pytest.raises(GeometryUnavailableError):
            _ = view.bounds

        view.resize(800, 450)
        with pytest.raises(GeometryUnavailableError):
            view.to_pixel(Point(x=10, y=10))

        view.image_loaded(1600, 750)
        assert view.is_ready
        assert view.bounds == ImageBounds(x=0, y=37.5, width=800, height=375)

    def test_resize_recomputes(self) -> None:
        view = ContainedImageView()
        view.image_loaded(1600, 750)
        view.resize(800, 450)
        view.resize(1600, 900)
        assert view.bounds == ImageBounds(x=0, y=75, width=1600, height=750)

    def test_degenerate_image_makes_bounds_unavailable(self) -> None:
        view = ContainedImageView()
        view.resize(800, 450)
        view.image_loaded(0, 0)
        assert not view.is_ready
        with pytest.raises(GeometryUnavailableError):
            view.to_percentage(10, 10, ContainerRect(left=0, top=0, width=800, height=450))

    def test_to_percentage_rejects_letterbox(self) -> None:
        view = ContainedImageView()
        view.resize(800, 450)
        view.image_loaded(1600, 750)
        container = ContainerRect(left=0, top=0, width=800, height=450)
        assert view.to_percentage(400, 20, container) is None
        assert view.to_percentage(400, 225, container) == Point(x=50, y=50)
        assert view.to_pixel(Point(x=50, y=50)).to_tuple() == (400, 225)
