"""Render node models.

Every generated or edited image becomes one immutable node with a pointer
to the node it was derived from. Nodes are never mutated in place: an
edit always produces a new node.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class NodeKind(str, Enum):
    """How a render node was produced."""

    ORIGINAL = "original"
    GLOBAL_EDIT = "global-edit"
    SELECTIVE_EDIT = "selective-edit"
    ZONE_VIEW = "zone-view"
    MULTICAM_GRID = "multicam-grid"
    COMPOSITE = "composite"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RenderNode(BaseModel, frozen=True):
    """One immutable render plus its lineage pointer.

    Attributes:
        id: Stable node identifier, preserved across save/load.
        artifact_ref: Address of the image (URL, data URL, or storage key).
        directive: The user's intent text that produced this render.
        kind: How the render was produced.
        parent_id: Node this render was derived from (None for roots).
        created_at: Creation time (UTC).
    """

    id: str = Field(..., min_length=1)
    artifact_ref: str = Field(..., min_length=1)
    directive: str = ""
    kind: NodeKind
    parent_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_root(self) -> bool:
        """Whether this node has no parent."""
        return self.parent_id is None
