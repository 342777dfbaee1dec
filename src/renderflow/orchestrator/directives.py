"""Edit directives accepted by the orchestrator.

A directive is what the user asked for: a shape (global, selective,
zone view, composite, multi-view grid) plus the data that shape needs.
The ``shape`` field is the discriminator, so directives can be parsed
from JSON with ``parse_directive``.
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from renderflow.generation.protocol import Placement
from renderflow.geometry.regions import Region
from renderflow.history.nodes import NodeKind
from renderflow.prompts.templates import CAMERA_INSTRUCTIONS, MULTICAM_PRESETS

MIN_GRID_VIEWS = 2
MAX_GRID_VIEWS = 9


class _DirectiveBase(BaseModel, frozen=True):
    """Fields shared by every directive."""

    node_kind: ClassVar[NodeKind]

    text: str = ""
    aspect_ratio: str | None = Field(
        default=None, description="Output aspect ratio; defaults per directive"
    )


class GlobalEdit(_DirectiveBase, frozen=True):
    """Whole-image edit; the text is sent unmodified."""

    node_kind: ClassVar[NodeKind] = NodeKind.GLOBAL_EDIT

    shape: Literal["global"] = "global"
    text: str = Field(..., min_length=1)


class SelectiveEdit(_DirectiveBase, frozen=True):
    """Masked edit confined to a region of the current render.

    Attributes:
        region: The selection; must not be degenerate.
        reference_artifact: Optional product image to place in the region.
        mask_size: (width, height) of the mask raster; defaults to settings.
    """

    node_kind: ClassVar[NodeKind] = NodeKind.SELECTIVE_EDIT

    shape: Literal["selective"] = "selective"
    text: str = Field(..., min_length=1)
    region: Region
    reference_artifact: str | None = None
    mask_size: tuple[Annotated[int, Field(gt=0)], Annotated[int, Field(gt=0)]] | None = None


class ZoneView(_DirectiveBase, frozen=True):
    """Eye-level render of one zone of a floor plan.

    Attributes:
        zone_region: Zone region on the layout (or current render).
        zone_name: Zone name, used as an analysis hint.
        layout_artifact: Floor plan to crop; defaults to the current render.
        style_references: Style images; only the first few are sent.
        product_references: Furniture or product images.
        analyze: Run best-effort analysis of the zone crop first.
    """

    node_kind: ClassVar[NodeKind] = NodeKind.ZONE_VIEW

    shape: Literal["zone-view"] = "zone-view"
    zone_region: Region
    zone_name: str | None = None
    layout_artifact: str | None = None
    style_references: tuple[str, ...] = ()
    product_references: tuple[str, ...] = ()
    analyze: bool = True


class CompositePlacement(_DirectiveBase, frozen=True):
    """Place one or more reference objects into the current render."""

    node_kind: ClassVar[NodeKind] = NodeKind.COMPOSITE

    shape: Literal["composite"] = "composite"
    placements: tuple[Placement, ...] = Field(..., min_length=1)


class MultiViewGrid(_DirectiveBase, frozen=True):
    """Presentation grid of the current render from several camera angles.

    Either ``preset`` or ``views`` selects the camera labels; an explicit
    ``views`` list wins over the preset.
    """

    node_kind: ClassVar[NodeKind] = NodeKind.MULTICAM_GRID

    shape: Literal["multi-view"] = "multi-view"
    preset: str | None = None
    views: tuple[str, ...] = ()
    focus_region: Region | None = None

    @model_validator(mode="before")
    @classmethod
    def _expand_preset(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if data.get("views"):
            return data
        preset = data.get("preset") or "default"
        if preset not in MULTICAM_PRESETS:
            raise ValueError(
                f"Unknown multi-view preset {preset!r}; "
                f"expected one of {sorted(MULTICAM_PRESETS)}"
            )
        return {**data, "views": MULTICAM_PRESETS[preset]}

    @field_validator("views")
    @classmethod
    def _check_views(cls, views: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [v for v in views if v not in CAMERA_INSTRUCTIONS]
        if unknown:
            raise ValueError(f"Unknown camera views: {unknown}")
        if not MIN_GRID_VIEWS <= len(views) <= MAX_GRID_VIEWS:
            raise ValueError(
                f"A grid needs {MIN_GRID_VIEWS}-{MAX_GRID_VIEWS} views, got {len(views)}"
            )
        return views


Directive = Annotated[
    GlobalEdit | SelectiveEdit | ZoneView | CompositePlacement | MultiViewGrid,
    Field(discriminator="shape"),
]

_directive_adapter: TypeAdapter[Directive] = TypeAdapter(Directive)


def parse_directive(data: dict[str, Any]) -> Directive:
    """Validate a directive from a plain dict (e.g. decoded JSON).

    Raises:
        pydantic.ValidationError: If the shape is unknown or fields are invalid.
    """
    return _directive_adapter.validate_python(data)
