"""Tests for renderflow.orchestrator.directives."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from renderflow.geometry import PolygonRegion, RectRegion
from renderflow.history import NodeKind
from renderflow.orchestrator import (
    CompositePlacement,
    GlobalEdit,
    MultiViewGrid,
    SelectiveEdit,
    ZoneView,
    parse_directive,
)


class TestParseDirective:
    """Parsing directives from plain dicts."""

    def test_global(self) -> None:
        directive = parse_directive({"shape": "global", "text": "Add plants"})
        assert isinstance(directive, GlobalEdit)
        assert directive.node_kind is NodeKind.GLOBAL_EDIT

    def test_selective_with_polygon(self) -> None:
        directive = parse_directive(
            {
                "shape": "selective",
                "text": "Swap the rug",
                "region": {
                    "kind": "polygon",
                    "points": [{"x": 10, "y": 60}, {"x": 50, "y": 60}, {"x": 30, "y": 95}]
                },
            }
        )
        assert isinstance(directive, SelectiveEdit)
        assert isinstance(directive.region, PolygonRegion)

    def test_zone_view(self) -> None:
        directive = parse_directive(
            {
                "shape": "zone-view",
                "zone_region": {"kind": "rect", "x_start": 0, "y_start": 0, "x_end": 40, "y_end": 50},
                "zone_name": "Kitchen",
                "style_references": ["https://cdn.test/s.png"],
            }
        )
        assert isinstance(directive, ZoneView)
        assert isinstance(directive.zone_region, RectRegion)
        assert directive.analyze is True
        assert directive.node_kind is NodeKind.ZONE_VIEW

    def test_composite_requires_placements(self) -> None:
        with pytest.raises(ValidationError):
            parse_directive({"shape": "composite", "placements": []})

    def test_composite(self) -> None:
        directive = parse_directive(
            {
                "shape": "composite",
                "placements": [
                    {"reference_artifact": "https://cdn.test/a.png", "position": {"x": 5, "y": 5}}
                ],
            }
        )
        assert isinstance(directive, CompositePlacement)
        assert directive.placements[0].scale == 1.0

    def test_unknown_shape(self) -> None:
        with pytest.raises(ValidationError):
            parse_directive({"shape": "sketch", "text": "x"})

    def test_global_requires_text(self) -> None:
        with pytest.raises(ValidationError):
            parse_directive({"shape": "global", "text": ""})

    def test_directives_are_frozen(self) -> None:
        directive = GlobalEdit(text="x")
        with pytest.raises(ValidationError):
            directive.text = "y"  # type: ignore[misc]


class TestMultiViewGrid:
    """Preset expansion and view validation."""

    def test_default_preset(self) -> None:
        grid = MultiViewGrid()
        assert grid.views == ("eye-level", "top-down", "wide", "macro")

    def test_named_preset(self) -> None:
        grid = parse_directive({"shape": "multi-view", "preset": "editorial"})
        assert isinstance(grid, MultiViewGrid)
        assert grid.views[0] == "photographer"

    def test_explicit_views_win(self) -> None:
        grid = MultiViewGrid(preset="overview", views=("low", "fisheye", "corner"))
        assert grid.views == ("low", "fisheye", "corner")

    def test_unknown_preset(self) -> None:
        with pytest.raises(ValidationError, match="preset"):
            MultiViewGrid(preset="cinematic")

    def test_unknown_view(self) -> None:
        with pytest.raises(ValidationError, match="Unknown camera views"):
            MultiViewGrid(views=("eye-level", "drone"))

    @pytest.mark.parametrize("count", [1, 10])
    def test_view_count_bounds(self, count: int) -> None:
        views = ("wide",) * count
        with pytest.raises(ValidationError, match="views"):
            MultiViewGrid(views=views)
