"""Prompt builder for generation requests.

Turns a GenerationRequest into the text sent alongside its images.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from renderflow.geometry.regions import describe_region
from renderflow.history.nodes import NodeKind
from renderflow.prompts.templates import (
    CAMERA_INSTRUCTIONS,
    COMPOSITE_TEMPLATE,
    GRID_POSITIONS,
    MULTICAM_FOCUS_NOTE,
    MULTICAM_TEMPLATE,
    PHOTOREAL_GUARD,
    SELECTIVE_EDIT_TEMPLATE,
    SELECTIVE_REFERENCE_NOTE,
    ZONE_VIEW_TEMPLATE,
)

if TYPE_CHECKING:
    from renderflow.generation.protocol import GenerationRequest


def grid_shape(count: int) -> tuple[int, int]:
    """Return (columns, rows) for a grid of ``count`` panels."""
    if count <= 0:
        raise ValueError(f"count must be positive, got {count}")
    columns = math.ceil(math.sqrt(count))
    rows = math.ceil(count / columns)
    return columns, rows


def panel_labels(count: int) -> list[str]:
    """Human-readable panel positions, in reading order."""
    columns, rows = grid_shape(count)
    named = GRID_POSITIONS.get((columns, rows))
    if named is not None:
        return list(named[:count])
    return [f"Row {i // columns + 1}, column {i % columns + 1}" for i in range(count)]


class PromptBuilder:
    """Builds provider prompts from generation requests.

    Usage:
        builder = PromptBuilder()
        text = builder.build(request)
    """

    def build(self, request: GenerationRequest) -> str:
        """Build the prompt text for ``request``.

        Global edits pass the directive through unmodified.

        Raises:
            ValueError: If the request is missing data its kind requires.
        """
        if request.kind is NodeKind.SELECTIVE_EDIT:
            return self._selective(request)
        if request.kind is NodeKind.COMPOSITE:
            return self._composite(request)
        if request.kind is NodeKind.MULTICAM_GRID:
            return self._multicam(request)
        if request.kind is NodeKind.ZONE_VIEW:
            return self._zone_view(request)
        return request.directive

    def _selective(self, request: GenerationRequest) -> str:
        if request.region is None:
            raise ValueError("Selective edits need a region")
        return SELECTIVE_EDIT_TEMPLATE.format(
            region=describe_region(request.region),
            directive=request.directive,
            reference_note=SELECTIVE_REFERENCE_NOTE if request.reference_artifacts else "",
            guard=PHOTOREAL_GUARD,
        ).strip()

    def _composite(self, request: GenerationRequest) -> str:
        if not request.placements:
            raise ValueError("Composite edits need at least one placement")
        lines = []
        for index, placement in enumerate(request.placements, start=1):
            name = placement.label or f"object {index}"
            lines.append(
                f"{index}. {name}: centered at x={placement.position.x:.0f}%, "
                f"y={placement.position.y:.0f}% of the room image, "
                f"scale {placement.scale:g}"
            )
        return COMPOSITE_TEMPLATE.format(
            placements="\n".join(lines),
            directive=request.directive,
            guard=PHOTOREAL_GUARD,
        ).strip()

    def _multicam(self, request: GenerationRequest) -> str:
        if not request.views:
            raise ValueError("Multi-view grids need at least one view")
        columns, rows = grid_shape(len(request.views))
        panels = [
            f"{i}. {position}: {CAMERA_INSTRUCTIONS[view]}"
            for i, (position, view) in enumerate(
                zip(panel_labels(len(request.views)), request.views, strict=True),
                start=1,
            )
        ]
        focus = ""
        if request.region is not None:
            focus = MULTICAM_FOCUS_NOTE.format(region=describe_region(request.region))
        return MULTICAM_TEMPLATE.format(
            count=len(request.views),
            rows=rows,
            columns=columns,
            panels="\n".join(panels),
            focus=focus,
            directive=request.directive,
            guard=PHOTOREAL_GUARD,
        ).strip()

    def _zone_view(self, request: GenerationRequest) -> str:
        count = len(request.reference_artifacts)
        inputs = [f"{i}. style or product reference" for i in range(1, count + 1)]
        inputs.append(f"{count + 1}. zone floor-plan crop")
        region = describe_region(request.region) if request.region is not None else "full plan"
        return ZONE_VIEW_TEMPLATE.format(
            inputs="\n".join(inputs),
            region=region,
            directive=request.directive,
            guard=PHOTOREAL_GUARD,
        ).strip()
