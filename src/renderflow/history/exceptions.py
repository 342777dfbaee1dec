"""Exceptions raised by the render version graph.

All of them signal graph misuse (an unknown id, an undo past the root, a
second root). They are raised before any state changes, so a failed call
never leaves the graph half-updated.
"""


class VersionGraphError(Exception):
    """Base exception for version graph errors."""

    def __init__(self, message: str, *, node_id: str | None = None) -> None:
        """Initialize with the node id the operation was about, if any."""
        self.node_id = node_id
        super().__init__(message)


class ParentNotFoundError(VersionGraphError):
    """Raised when create_child names a parent that is not in the graph."""


class NodeNotFoundError(VersionGraphError):
    """Raised when an operation names a node that is not in the graph."""


class NoPreviousVersionError(VersionGraphError):
    """Raised when undo is requested on a node without a parent."""


class AlreadyHasRootError(VersionGraphError):
    """Raised when create_root is called on a graph that has a root."""


class CannotDeleteCurrentRootError(VersionGraphError):
    """Raised when deleting the current node would leave nothing to point at."""


class HasDescendantsError(VersionGraphError):
    """Raised when deleting a node that still has children.

    Deletion is only allowed for leaves so that no node is ever left with
    a dangling parent reference.
    """

    def __init__(self, message: str, *, node_id: str, child_ids: list[str]) -> None:
        self.child_ids = child_ids
        super().__init__(message, node_id=node_id)


class NoCurrentRenderError(VersionGraphError):
    """Raised when an operation needs a current node but none is set."""


class CorruptSnapshotError(VersionGraphError):
    """Raised when a serialized graph does not describe a valid forest."""
