"""Project persistence: one JSON file per project.

A project file holds the version graph (nodes plus current pointer) and
the project's zones. Writes go to a temporary file that replaces the
target, so a crash mid-write never leaves a truncated project.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from renderflow.geometry.zones import Zone, ZoneCollection
from renderflow.history.exceptions import CorruptSnapshotError
from renderflow.history.graph import VersionGraph, VersionGraphSnapshot
from renderflow.utils.logging import get_logger

logger = get_logger(__name__)


class ProjectSnapshot(BaseModel):
    """Serialized project: version graph plus zones."""

    project_id: str = Field(..., min_length=1)
    graph: VersionGraphSnapshot
    zones: list[Zone] = Field(default_factory=list)


@dataclass(frozen=True)
class ProjectStore:
    """Saves and loads projects under ``root_dir``.

    Usage:
        store = ProjectStore(Path("projects"))
        store.save(graph, zones)
        graph, zones = store.load(graph.project_id)
    """

    root_dir: Path

    @staticmethod
    def validate_project_id(project_id: str) -> None:
        project_path = Path(project_id)
        if (
            not project_id
            or project_path.is_absolute()
            or ".." in project_path.parts
            or project_path.name != project_id
        ):
            raise ValueError(
                f"Invalid project_id {project_id!r}: must be a simple filename "
                "(no path traversal)."
            )

    def path_for(self, project_id: str) -> Path:
        """Return the file a project is stored in."""
        self.validate_project_id(project_id)
        return self.root_dir / f"{project_id}.json"

    def exists(self, project_id: str) -> bool:
        return self.path_for(project_id).is_file()

    def save(self, graph: VersionGraph, zones: ZoneCollection | None = None) -> Path:
        """Write the project and return its path."""
        path = self.path_for(graph.project_id)
        snapshot = ProjectSnapshot(
            project_id=graph.project_id,
            graph=graph.to_snapshot(),
            zones=list(zones) if zones is not None else [],
        )
        self.root_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.info("Project saved", path=str(path), nodes=len(graph))
        return path

    def load(self, project_id: str) -> tuple[VersionGraph, ZoneCollection]:
        """Read a project.

        Raises:
            FileNotFoundError: If the project was never saved.
            CorruptSnapshotError: If the file is not a valid project.
        """
        return self.load_file(self.path_for(project_id))

    @staticmethod
    def load_file(path: Path) -> tuple[VersionGraph, ZoneCollection]:
        """Read a project from an explicit file path."""
        text = path.read_text(encoding="utf-8")
        try:
            snapshot = ProjectSnapshot.model_validate_json(text)
        except ValidationError as e:
            raise CorruptSnapshotError(f"Invalid project file {path}: {e}") from e

        if snapshot.graph.project_id != snapshot.project_id:
            raise CorruptSnapshotError(
                f"Project file {path} mixes projects "
                f"{snapshot.project_id!r} and {snapshot.graph.project_id!r}"
            )
        graph = VersionGraph.from_snapshot(snapshot.graph)
        try:
            zones = ZoneCollection(snapshot.zones)
        except ValueError as e:
            raise CorruptSnapshotError(f"Invalid zones in {path}: {e}") from e
        return graph, zones
