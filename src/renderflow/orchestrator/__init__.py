"""Edit orchestration for renderflow.

Public API:
    - EditOrchestrator: applies directives to a project's version graph.
    - Directives: GlobalEdit, SelectiveEdit, ZoneView, CompositePlacement,
      MultiViewGrid, and parse_directive for plain dicts.
    - Exceptions: OperationInProgressError, ApplyCancelledError.
"""

from renderflow.orchestrator.directives import (
    CompositePlacement,
    Directive,
    GlobalEdit,
    MultiViewGrid,
    SelectiveEdit,
    ZoneView,
    parse_directive,
)
from renderflow.orchestrator.exceptions import (
    ApplyCancelledError,
    OperationInProgressError,
)
from renderflow.orchestrator.orchestrator import EditOrchestrator

__all__ = [
    "ApplyCancelledError",
    "CompositePlacement",
    "Directive",
    "EditOrchestrator",
    "GlobalEdit",
    "MultiViewGrid",
    "OperationInProgressError",
    "SelectiveEdit",
    "ZoneView",
    "parse_directive",
]
