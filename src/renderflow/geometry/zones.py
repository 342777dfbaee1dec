"""Named, persisted regions of interest ("zones").

A zone's region is the source of truth. Its bounding box is exposed as
computed fields so thumbnail consumers can read ``x_start``..``y_end``
without touching the polygon, but those fields cannot be set and are
ignored when a zone is loaded. There is no API that updates one without
the other.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field

from renderflow.geometry.primitives import Point
from renderflow.geometry.regions import (
    PolygonRegion,
    RectRegion,
    Region,
    normalize_rect,
)


class Zone(BaseModel):
    """A named region on a layout or render image.

    Attributes:
        id: Stable identifier, preserved across save/load.
        name: Display name.
        order: Creation order within the owning project (0-based).
        region: Authoritative geometry.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    order: int = Field(..., ge=0)
    region: Region

    @computed_field  # type: ignore[prop-decorator]
    @property
    def x_start(self) -> float:
        return self.region.bounding_box.x_start

    @computed_field  # type: ignore[prop-decorator]
    @property
    def y_start(self) -> float:
        return self.region.bounding_box.y_start

    @computed_field  # type: ignore[prop-decorator]
    @property
    def x_end(self) -> float:
        return self.region.bounding_box.x_end

    @computed_field  # type: ignore[prop-decorator]
    @property
    def y_end(self) -> float:
        return self.region.bounding_box.y_end

    @property
    def bounding_box(self) -> RectRegion:
        """Bounding rectangle of the zone's region."""
        return self.region.bounding_box

    def with_region(self, region: RectRegion | PolygonRegion) -> Self:
        """Return a copy with new geometry; the bounding box follows."""
        return self.model_copy(update={"region": region})

    def renamed(self, name: str) -> Self:
        """Return a copy with a new display name."""
        return type(self).model_validate({**self.model_dump(), "name": name})

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Self:
        """Build a zone from a flat storage record.

        Records carry ``polygon_points`` alongside a stored rectangle
        (``x_start``..``y_end``). Three or more points make a polygon zone;
        otherwise the stored rectangle is used.

        Raises:
            pydantic.ValidationError: If neither shape can be recovered.
        """
        raw_points = record.get("polygon_points") or []
        points = [Point.model_validate(p) for p in raw_points]
        region: RectRegion | PolygonRegion
        if len(points) >= 3:
            region = PolygonRegion(points=tuple(points))
        else:
            region = normalize_rect(
                (record["x_start"], record["y_start"]),
                (record["x_end"], record["y_end"]),
            )
        return cls(
            id=str(record["id"]),
            name=record["name"],
            order=int(record.get("order", 0)),
            region=region,
        )


class ZoneCollection:
    """Ordered zones belonging to one project.

    Ids are random and stable. Creation order only grows while a
    collection is alive, so removals never free an order for reuse. A
    collection rebuilt from stored zones continues after the highest
    stored order, which can reuse the order of a zone removed last.
    """

    __slots__ = ("_next_order", "_zones")

    def __init__(self, zones: Sequence[Zone] = ()) -> None:
        self._zones: dict[str, Zone] = {}
        self._next_order = 0
        for zone in sorted(zones, key=lambda z: z.order):
            if zone.id in self._zones:
                raise ValueError(f"Duplicate zone id: {zone.id}")
            self._zones[zone.id] = zone
            self._next_order = max(self._next_order, zone.order + 1)

    def __len__(self) -> int:
        return len(self._zones)

    def __iter__(self) -> Iterator[Zone]:
        return iter(sorted(self._zones.values(), key=lambda z: z.order))

    def __contains__(self, zone_id: object) -> bool:
        return zone_id in self._zones

    def get(self, zone_id: str) -> Zone:
        """Look up a zone by id.

        Raises:
            KeyError: If the zone does not exist.
        """
        try:
            return self._zones[zone_id]
        except KeyError:
            raise KeyError(f"Unknown zone: {zone_id}") from None

    def add(self, name: str, region: RectRegion | PolygonRegion) -> Zone:
        """Create a zone at the end of the creation order."""
        zone = Zone(
            id=str(uuid.uuid4()),
            name=name,
            order=self._next_order,
            region=region,
        )
        self._zones[zone.id] = zone
        self._next_order += 1
        return zone

    def rename(self, zone_id: str, name: str) -> Zone:
        zone = self.get(zone_id).renamed(name)
        self._zones[zone_id] = zone
        return zone

    def update_region(self, zone_id: str, region: RectRegion | PolygonRegion) -> Zone:
        """Replace a zone's geometry; its bounding box is recomputed with it."""
        zone = self.get(zone_id).with_region(region)
        self._zones[zone_id] = zone
        return zone

    def remove(self, zone_id: str) -> Zone:
        zone = self.get(zone_id)
        del self._zones[zone_id]
        return zone

    def to_list(self) -> list[dict[str, Any]]:
        """Serialize zones in creation order."""
        return [zone.model_dump(mode="json") for zone in self]

    @classmethod
    def from_list(cls, data: Sequence[Mapping[str, Any]]) -> ZoneCollection:
        """Load zones serialized by ``to_list``."""
        return cls([Zone.model_validate(item) for item in data])
