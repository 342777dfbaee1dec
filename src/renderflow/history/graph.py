"""Branching render history for a project.

The version graph is a forest of immutable render nodes plus a pointer to
the node the user is currently looking at. "Undo" and "pick an older
version" only move that pointer; they never delete anything. Creating a
child always moves the pointer to the new node, so editing after picking
an older version starts a new branch instead of continuing the old line.

Deletion policy:
    Only leaves can be deleted (HasDescendantsError otherwise). Deleting
    the current node moves the pointer to its parent in the same step;
    deleting the current node when it is a root raises
    CannotDeleteCurrentRootError.

All operations are synchronous, so each one is atomic with respect to the
event loop. The graph also carries the project's edit lock: orchestrators
take it for the duration of an apply and refuse mutations while it is held.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator

from pydantic import BaseModel, Field

from renderflow.history.exceptions import (
    AlreadyHasRootError,
    CannotDeleteCurrentRootError,
    CorruptSnapshotError,
    HasDescendantsError,
    NodeNotFoundError,
    NoPreviousVersionError,
    ParentNotFoundError,
)
from renderflow.history.nodes import NodeKind, RenderNode
from renderflow.utils.logging import get_logger

logger = get_logger(__name__)


class VersionGraphSnapshot(BaseModel):
    """Serializable form of a version graph.

    Attributes:
        project_id: Owning project.
        nodes: All nodes, in creation order.
        current_id: The current node, or None before the first render.
    """

    project_id: str = Field(..., min_length=1)
    nodes: list[RenderNode] = Field(default_factory=list)
    current_id: str | None = None


class VersionGraph:
    """Per-project forest of render nodes with a current pointer.

    Usage:
        graph = VersionGraph("project-1")
        root = graph.create_root("https://cdn/r0.png", "Scandinavian living room")
        edit = graph.create_child(root.id, "https://cdn/r1.png", "Warmer light",
                                  NodeKind.GLOBAL_EDIT)
        graph.undo()                 # current -> root
        graph.select_existing(edit.id)  # current -> edit (redo)
    """

    __slots__ = ("_children", "_current_id", "_edit_owner", "_nodes", "project_id")

    def __init__(self, project_id: str) -> None:
        if not project_id:
            raise ValueError("project_id must be non-empty")
        self.project_id = project_id
        self._nodes: dict[str, RenderNode] = {}
        self._children: dict[str, list[str]] = {}
        self._current_id: str | None = None
        self._edit_owner: object | None = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[RenderNode]:
        return iter(self._nodes.values())

    @property
    def current_id(self) -> str | None:
        """Id of the current node, or None before the first render."""
        return self._current_id

    @property
    def current(self) -> RenderNode | None:
        """The current node, or None before the first render."""
        if self._current_id is None:
            return None
        return self._nodes[self._current_id]

    @property
    def nodes(self) -> list[RenderNode]:
        """All nodes in creation order."""
        return list(self._nodes.values())

    @property
    def roots(self) -> list[RenderNode]:
        """Nodes without a parent, in creation order."""
        return [node for node in self._nodes.values() if node.parent_id is None]

    @property
    def can_undo(self) -> bool:
        """Whether undo() would succeed right now."""
        current = self.current
        return current is not None and current.parent_id is not None

    def get(self, node_id: str) -> RenderNode:
        """Look up a node.

        Raises:
            NodeNotFoundError: If the node is unknown.
        """
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(
                f"Unknown render node: {node_id}", node_id=node_id
            ) from None

    def children_of(self, node_id: str) -> list[RenderNode]:
        """Direct children of a node, in creation order."""
        self.get(node_id)
        return [self._nodes[child] for child in self._children.get(node_id, [])]

    def path_to(self, node_id: str) -> list[RenderNode]:
        """Nodes from the root down to ``node_id`` (inclusive)."""
        path = [self.get(node_id)]
        while path[-1].parent_id is not None:
            path.append(self._nodes[path[-1].parent_id])
        path.reverse()
        return path

    def history_path(self) -> list[RenderNode]:
        """Path from the root to the current node.

        This is the linear view of a branching history: siblings created by
        editing an older version are not on it.
        """
        if self._current_id is None:
            return []
        return self.path_to(self._current_id)

    # ------------------------------------------------------------------
    # Edit lock
    # ------------------------------------------------------------------

    @property
    def edit_in_progress(self) -> bool:
        """Whether some orchestrator holds this project's edit lock."""
        return self._edit_owner is not None

    def begin_edit(self, owner: object) -> bool:
        """Take the project's edit lock for ``owner``.

        Returns:
            False if another edit already holds it.
        """
        if self._edit_owner is not None:
            return False
        self._edit_owner = owner
        return True

    def end_edit(self, owner: object) -> None:
        """Release the edit lock if ``owner`` holds it."""
        if self._edit_owner is owner:
            self._edit_owner = None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_root(self, artifact_ref: str, directive: str = "") -> RenderNode:
        """Create the project's original render and make it current.

        Raises:
            AlreadyHasRootError: If the graph already has a root.
        """
        existing = self.roots
        if existing:
            raise AlreadyHasRootError(
                f"Project {self.project_id} already has root {existing[0].id}",
                node_id=existing[0].id,
            )
        node = self._add(
            artifact_ref=artifact_ref,
            directive=directive,
            kind=NodeKind.ORIGINAL,
            parent_id=None,
        )
        logger.info("Created root render", render_node=node.id)
        return node

    def create_child(
        self,
        parent_id: str,
        artifact_ref: str,
        directive: str,
        kind: NodeKind,
    ) -> RenderNode:
        """Create a render derived from ``parent_id`` and make it current.

        The pointer moves unconditionally, even when ``parent_id`` is not
        the current node: that is how branches are created.

        Raises:
            ParentNotFoundError: If the parent is unknown.
            ValueError: If kind is ORIGINAL (only roots are originals).
        """
        if parent_id not in self._nodes:
            raise ParentNotFoundError(
                f"Unknown parent render node: {parent_id}", node_id=parent_id
            )
        if kind is NodeKind.ORIGINAL:
            raise ValueError("Child nodes cannot have kind 'original'")

        node = self._add(
            artifact_ref=artifact_ref,
            directive=directive,
            kind=kind,
            parent_id=parent_id,
        )
        logger.info(
            "Created child render",
            render_node=node.id,
            parent=parent_id,
            kind=kind.value,
            branched=len(self._children[parent_id]) > 1,
        )
        return node

    def undo(self, node_id: str | None = None) -> RenderNode:
        """Move the current pointer to the parent of ``node_id``.

        Args:
            node_id: Node to step back from. Defaults to the current node.

        Returns:
            The new current node.

        Raises:
            NoPreviousVersionError: If there is no current node or the node
                has no parent.
            NodeNotFoundError: If ``node_id`` is unknown.
        """
        start_id = node_id if node_id is not None else self._current_id
        if start_id is None:
            raise NoPreviousVersionError("Nothing to undo: no current render")

        node = self.get(start_id)
        if node.parent_id is None:
            raise NoPreviousVersionError(
                f"Render {node.id} has no previous version", node_id=node.id
            )
        self._current_id = node.parent_id
        return self._nodes[node.parent_id]

    def select_existing(self, node_id: str) -> RenderNode:
        """Make an existing node current without creating or deleting anything.

        Raises:
            NodeNotFoundError: If the node is unknown.
        """
        node = self.get(node_id)
        self._current_id = node.id
        return node

    def delete_node(self, node_id: str) -> RenderNode:
        """Remove a leaf node.

        Returns:
            The deleted node.

        Raises:
            NodeNotFoundError: If the node is unknown.
            HasDescendantsError: If the node has children.
            CannotDeleteCurrentRootError: If the node is the current node
                and has no parent to fall back to.
        """
        node = self.get(node_id)
        children = self._children.get(node_id, [])
        if children:
            raise HasDescendantsError(
                f"Render {node_id} has {len(children)} child render(s); "
                "delete them first",
                node_id=node_id,
                child_ids=list(children),
            )
        if node_id == self._current_id and node.parent_id is None:
            raise CannotDeleteCurrentRootError(
                f"Render {node_id} is the current root and cannot be deleted",
                node_id=node_id,
            )

        del self._nodes[node_id]
        self._children.pop(node_id, None)
        if node.parent_id is not None:
            self._children[node.parent_id].remove(node_id)
        if node_id == self._current_id:
            self._current_id = node.parent_id

        logger.info("Deleted render", render_node=node_id, current=self._current_id)
        return node

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_snapshot(self) -> VersionGraphSnapshot:
        """Serialize nodes (creation order) and the current pointer."""
        return VersionGraphSnapshot(
            project_id=self.project_id,
            nodes=list(self._nodes.values()),
            current_id=self._current_id,
        )

    @classmethod
    def from_snapshot(cls, snapshot: VersionGraphSnapshot) -> VersionGraph:
        """Rebuild a graph, preserving node identity.

        Raises:
            CorruptSnapshotError: If ids repeat, a parent does not resolve
                within the snapshot, the parent links form a cycle, or the
                current id is unknown.
        """
        graph = cls(snapshot.project_id)
        by_id: dict[str, RenderNode] = {}
        for node in snapshot.nodes:
            if node.id in by_id:
                raise CorruptSnapshotError(
                    f"Duplicate render node id: {node.id}", node_id=node.id
                )
            by_id[node.id] = node

        for node in snapshot.nodes:
            if node.parent_id is not None and node.parent_id not in by_id:
                raise CorruptSnapshotError(
                    f"Render {node.id} references missing parent {node.parent_id}",
                    node_id=node.id,
                )
        _check_acyclic(by_id)

        for node in snapshot.nodes:
            graph._nodes[node.id] = node
            graph._children.setdefault(node.id, [])
        for node in snapshot.nodes:
            if node.parent_id is not None:
                graph._children[node.parent_id].append(node.id)

        if snapshot.current_id is not None and snapshot.current_id not in by_id:
            raise CorruptSnapshotError(
                f"Current render {snapshot.current_id} is not in the snapshot",
                node_id=snapshot.current_id,
            )
        graph._current_id = snapshot.current_id
        return graph

    def _add(
        self,
        *,
        artifact_ref: str,
        directive: str,
        kind: NodeKind,
        parent_id: str | None,
    ) -> RenderNode:
        node = RenderNode(
            id=str(uuid.uuid4()),
            artifact_ref=artifact_ref,
            directive=directive,
            kind=kind,
            parent_id=parent_id,
        )
        self._nodes[node.id] = node
        self._children[node.id] = []
        if parent_id is not None:
            self._children[parent_id].append(node.id)
        self._current_id = node.id
        return node


def _check_acyclic(by_id: dict[str, RenderNode]) -> None:
    """Raise CorruptSnapshotError if parent links loop."""
    resolved: set[str] = set()
    for start in by_id:
        seen: list[str] = []
        node_id: str | None = start
        while node_id is not None and node_id not in resolved:
            if node_id in seen:
                raise CorruptSnapshotError(
                    f"Parent links form a cycle through render {node_id}",
                    node_id=node_id,
                )
            seen.append(node_id)
            node_id = by_id[node_id].parent_id
        resolved.update(seen)
