"""Tests for renderflow.geometry.zones."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from renderflow.geometry import Point, PolygonRegion, RectRegion, Zone, ZoneCollection


@pytest.fixture
def kitchen_polygon() -> PolygonRegion:
    return PolygonRegion(
        points=(Point(x=10, y=20), Point(x=60, y=20), Point(x=60, y=70), Point(x=30, y=80))
    )


class TestZone:
    """Tests for the Zone model."""

    def test_bounding_box_fields_follow_region(self, kitchen_polygon: PolygonRegion) -> None:
        zone = Zone(id="z1", name="Kitchen", order=0, region=kitchen_polygon)
        assert (zone.x_start, zone.y_start, zone.x_end, zone.y_end) == (10, 20, 60, 80)

    def test_with_region_recomputes_bounding_box(self, kitchen_polygon: PolygonRegion) -> None:
        zone = Zone(id="z1", name="Kitchen", order=0, region=kitchen_polygon)
        moved = zone.with_region(RectRegion(x_start=0, y_start=0, x_end=25, y_end=25))
        assert moved.id == "z1"
        assert moved.x_end == 25
        assert zone.x_end == 60

    def test_bounding_box_is_serialized_but_ignored_on_load(
        self, kitchen_polygon: PolygonRegion
    ) -> None:
        zone = Zone(id="z1", name="Kitchen", order=0, region=kitchen_polygon)
        data = zone.model_dump(mode="json")
        assert data["x_start"] == 10

        data["x_start"] = 99  # stale stored box must not win
        loaded = Zone.model_validate(data)
        assert loaded.x_start == 10
        assert loaded == zone

    def test_bounding_box_cannot_be_set(self, kitchen_polygon: PolygonRegion) -> None:
        zone = Zone(id="z1", name="Kitchen", order=0, region=kitchen_polygon)
        with pytest.raises((ValidationError, AttributeError)):
            zone.x_start = 5  # type: ignore[misc]

    def test_renamed_validates(self, kitchen_polygon: PolygonRegion) -> None:
        zone = Zone(id="z1", name="Kitchen", order=0, region=kitchen_polygon)
        assert zone.renamed("Dining").name == "Dining"
        with pytest.raises(ValidationError):
            zone.renamed("")


class TestZoneFromRecord:
    """Tests for Zone.from_record (flat storage records)."""

    def test_polygon_record(self) -> None:
        record = {
            "id": "abc",
            "name": "Lounge",
            "order": 2,
            "polygon_points": [{"x": 5, "y": 5}, {"x": 40, "y": 5}, {"x": 20, "y": 30}],
            "x_start": 0,
            "y_start": 0,
            "x_end": 1,
            "y_end": 1,
        }
        zone = Zone.from_record(record)
        assert isinstance(zone.region, PolygonRegion)
        assert (zone.x_start, zone.y_end) == (5, 30)

    def test_too_few_points_falls_back_to_stored_rect(self) -> None:
        record = {
            "id": "abc",
            "name": "Lounge",
            "polygon_points": [{"x": 5, "y": 5}],
            "x_start": 40,
            "y_start": 30,
            "x_end": 10,
            "y_end": 60,
        }
        zone = Zone.from_record(record)
        assert zone.region == RectRegion(x_start=10, y_start=30, x_end=40, y_end=60)
        assert zone.order == 0


class TestZoneCollection:
    """Tests for ZoneCollection."""

    def test_add_assigns_ids_and_monotonic_order(self, kitchen_polygon: PolygonRegion) -> None:
        zones = ZoneCollection()
        a = zones.add("Kitchen", kitchen_polygon)
        b = zones.add("Hall", RectRegion(x_start=0, y_start=0, x_end=10, y_end=10))
        zones.remove(a.id)
        c = zones.add("Study", RectRegion(x_start=0, y_start=0, x_end=20, y_end=20))

        assert a.id != b.id != c.id
        assert [z.order for z in zones] == [1, 2]
        assert [z.name for z in zones] == ["Hall", "Study"]

    def test_rename_and_update_region_keep_id(self, kitchen_polygon: PolygonRegion) -> None:
        zones = ZoneCollection()
        zone = zones.add("Kitchen", kitchen_polygon)
        zones.rename(zone.id, "Galley")
        updated = zones.update_region(
            zone.id, RectRegion(x_start=1, y_start=2, x_end=3, y_end=4)
        )
        assert updated.id == zone.id
        assert zones.get(zone.id).name == "Galley"
        assert zones.get(zone.id).x_end == 3

    def test_get_unknown_raises_key_error(self) -> None:
        with pytest.raises(KeyError, match="Unknown zone"):
            ZoneCollection().get("missing")

    def test_duplicate_ids_rejected(self, kitchen_polygon: PolygonRegion) -> None:
        zone = Zone(id="z1", name="Kitchen", order=0, region=kitchen_polygon)
        with pytest.raises(ValueError, match="Duplicate zone id"):
            ZoneCollection([zone, zone])

    def test_round_trip_preserves_ids_and_order(self, kitchen_polygon: PolygonRegion) -> None:
        zones = ZoneCollection()
        zones.add("Kitchen", kitchen_polygon)
        zones.add("Hall", RectRegion(x_start=0, y_start=0, x_end=10, y_end=10))

        restored = ZoneCollection.from_list(zones.to_list())
        assert list(restored) == list(zones)
        new = restored.add("Study", RectRegion(x_start=0, y_start=0, x_end=5, y_end=5))
        assert new.order == 2

    def test_rebuilt_collection_continues_after_highest_stored_order(
        self, kitchen_polygon: PolygonRegion
    ) -> None:
        zones = ZoneCollection()
        zones.add("Kitchen", kitchen_polygon)
        last = zones.add("Hall", RectRegion(x_start=0, y_start=0, x_end=10, y_end=10))
        zones.remove(last.id)

        study = zones.add("Study", kitchen_polygon)
        assert study.order == 2
        zones.remove(study.id)
        restored = ZoneCollection.from_list(zones.to_list())
        assert restored.add("Study", kitchen_polygon).order == 1
