"""Render version history for renderflow.

This package keeps the branching history of generated and edited renders
for a project. It is the only stateful data structure in the core.

Public API:
    - VersionGraph: forest of RenderNodes plus the current pointer.
    - VersionGraphSnapshot: serializable form (nodes + current id).
    - RenderNode / NodeKind: immutable node model.
    - Exceptions: VersionGraphError and its subclasses.

Usage:
    from renderflow.history import NodeKind, VersionGraph

    graph = VersionGraph("project-1")
    root = graph.create_root(render_url, "Mid-century lounge")
    child = graph.create_child(root.id, new_url, "Add a rug", NodeKind.GLOBAL_EDIT)
    graph.undo()
"""

from renderflow.history.exceptions import (
    AlreadyHasRootError,
    CannotDeleteCurrentRootError,
    CorruptSnapshotError,
    HasDescendantsError,
    NoCurrentRenderError,
    NodeNotFoundError,
    NoPreviousVersionError,
    ParentNotFoundError,
    VersionGraphError,
)
from renderflow.history.graph import VersionGraph, VersionGraphSnapshot
from renderflow.history.nodes import NodeKind, RenderNode

__all__ = [
    "AlreadyHasRootError",
    "CannotDeleteCurrentRootError",
    "CorruptSnapshotError",
    "HasDescendantsError",
    "NoCurrentRenderError",
    "NoPreviousVersionError",
    "NodeKind",
    "NodeNotFoundError",
    "ParentNotFoundError",
    "RenderNode",
    "VersionGraph",
    "VersionGraphError",
    "VersionGraphSnapshot",
]
