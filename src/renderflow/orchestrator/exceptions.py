"""Exceptions raised by the edit orchestrator."""


class OperationInProgressError(Exception):
    """Raised when an edit or graph mutation is attempted while an edit is in flight.

    Each project accepts one apply at a time; undo, select and delete are
    also refused until the pending edit settles.
    """

    def __init__(self, message: str, *, project_id: str | None = None) -> None:
        self.project_id = project_id
        super().__init__(message)


class ApplyCancelledError(Exception):
    """Raised by apply() when the edit was cancelled before it could commit.

    No node is created for a cancelled edit, even if the generation service
    answered after the cancellation.
    """

    def __init__(self, message: str, *, request_id: str | None = None) -> None:
        self.request_id = request_id
        super().__init__(message)
