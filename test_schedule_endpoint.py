"""
Model and Geometry Tests
========================

Schedule windows, endpoints, locations, commute records and the geofence
primitives (haversine regions, crossing detection, region tracker).
"""

import time
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from commutelog_core import (
    CircularRegion,
    Commute,
    CrossingKind,
    Endpoint,
    Location,
    RegionDetector,
    RegionTracker,
    Schedule,
)
from commutelog_core.geometry.region import haversine_m
from conftest import HOME_COORD, MONDAY, SATURDAY, WORK_COORD, at


# ─────────────────────────────────────────────────────────────────────────────
# Schedule
# ─────────────────────────────────────────────────────────────────────────────

class TestSchedule:

    @pytest.fixture
    def pacific_time(self, monkeypatch):
        if not hasattr(time, "tzset"):
            pytest.skip("time.tzset() not available on this platform")
        monkeypatch.setenv("TZ", "America/Los_Angeles")
        time.tzset()
        yield
        monkeypatch.undo()
        time.tzset()

    def test_start_inclusive_end_exclusive(self):
        window = Schedule(6, 10)
        assert window.contains(at(6, 0))
        assert window.contains(at(9, 59))
        assert not window.contains(at(10, 0))
        assert not window.contains(at(5, 59))

    def test_weekdays_only(self):
        window = Schedule(0, 24)
        friday = MONDAY + timedelta(days=4)
        sunday = MONDAY + timedelta(days=6)
        assert window.contains(at(12, 0, day=friday))
        assert not window.contains(at(12, 0, day=SATURDAY))
        assert not window.contains(at(12, 0, day=sunday))

    @pytest.mark.parametrize("start, end", [(-1, 5), (24, 24), (5, 25), (10, 10), (18, 6)])
    def test_invalid_windows_rejected(self, start, end):
        with pytest.raises(ValueError):
            Schedule(start, end)

    def test_full_day_window(self):
        window = Schedule(0, 24)
        assert window.contains(at(0, 0))
        assert window.contains(at(23, 59))

    @pytest.mark.parametrize("hour, minute, expected", [
        (8, 0, 0.0),     # inside
        (10, 0, 0.0),    # exactly on end edge
        (6, 0, 0.0),     # exactly on start edge
        (11, 30, 1.5),
        (4, 0, 2.0),
        (23, 0, 7.0),    # circular: 23:00 -> 06:00
    ])
    def test_distance_hours(self, hour, minute, expected):
        assert Schedule(6, 10).distance_hours(at(hour, minute)) == pytest.approx(expected)

    def test_is_active_with_explicit_now(self):
        assert Schedule(6, 10).is_active(at(7, 0))
        assert not Schedule(6, 10).is_active(at(7, 0, day=SATURDAY))

    def test_aware_timestamp_checked_in_local_time(self, pacific_time):
        # 16:00 UTC is 09:00 in Portland (PDT, UTC-7)
        utc_afternoon = datetime(2026, 10, 19, 16, 0, tzinfo=timezone.utc)
        assert Schedule(6, 10).contains(utc_afternoon)
        assert Schedule(6, 10).distance_hours(utc_afternoon) == 0.0
        assert not Schedule(15, 19).contains(utc_afternoon)

    def test_aware_timestamp_weekday_in_local_time(self, pacific_time):
        # Saturday 03:00 UTC is still Friday 20:00 locally
        friday_evening = datetime(2026, 10, 24, 3, 0, tzinfo=timezone.utc)
        assert Schedule(16, 21).contains(friday_evening)

    def test_hours(self):
        assert list(Schedule(6, 10).hours) == [6, 7, 8, 9]

    def test_from_dict_accepts_pair_and_mapping(self):
        assert Schedule.from_dict([6, 10]) == Schedule(6, 10)
        assert Schedule.from_dict({'start_hour': 6, 'end_hour': 10}) == Schedule(6, 10)
        assert Schedule(6, 10).to_dict() == [6, 10]

    def test_from_dict_rejects_garbage(self):
        with pytest.raises(ValueError):
            Schedule.from_dict({'start_hour': 6})
        with pytest.raises(ValueError):
            Schedule.from_dict([6])


# ─────────────────────────────────────────────────────────────────────────────
# Endpoint
# ─────────────────────────────────────────────────────────────────────────────

class TestEndpoint:

    def test_counterpart(self, home, work):
        assert home.counterpart == "work"
        assert work.counterpart == "home"

    def test_is_active_in_either_window(self, home):
        assert home.is_active(at(7, 0))     # exit window
        assert home.is_active(at(18, 0))    # entry window
        assert not home.is_active(at(13, 0))

    def test_contains_location(self, home):
        assert home.contains(Location(*HOME_COORD, timestamp=at(8, 0)))
        assert not home.contains(Location(*WORK_COORD, timestamp=at(8, 0)))

    def test_region_mirrors_endpoint(self, home):
        assert home.region.identifier == "home"
        assert home.region.center == HOME_COORD
        assert home.region.radius == 100.0

    def test_invalid_identifier(self):
        with pytest.raises(ValueError):
            Endpoint("gym", 45.5, -122.6, 50.0, Schedule(6, 10), Schedule(16, 20))

    def test_radius_must_be_positive(self):
        with pytest.raises(ValueError):
            Endpoint("home", 45.5, -122.6, 0.0, Schedule(6, 10), Schedule(16, 20))

    def test_coordinates_validated(self):
        with pytest.raises(ValueError):
            Endpoint("home", 95.0, -122.6, 50.0, Schedule(6, 10), Schedule(16, 20))

    def test_dict_form(self, home):
        data = home.to_dict()
        assert data['entry_hours'] == [16, 21]
        assert data['exit_hours'] == [6, 10]
        assert Endpoint.from_dict(data) == home

    def test_from_dict_missing_field(self, home):
        data = home.to_dict()
        del data['radius']
        with pytest.raises(ValueError, match="radius"):
            Endpoint.from_dict(data)


# ─────────────────────────────────────────────────────────────────────────────
# Location and Commute
# ─────────────────────────────────────────────────────────────────────────────

class TestLocation:

    def test_validates_ranges(self):
        with pytest.raises(ValueError):
            Location(latitude=91.0, longitude=0.0)
        with pytest.raises(ValueError):
            Location(latitude=0.0, longitude=-181.0)

    def test_stamped_when_timestamp_missing(self):
        before = datetime.now()
        location = Location(latitude=45.5, longitude=-122.6)
        assert location.timestamp >= before

    def test_from_dict_requires_timestamp(self):
        with pytest.raises(ValueError):
            Location.from_dict({'latitude': 45.5, 'longitude': -122.6})


class TestCommute:

    def test_active_until_end_set(self):
        commute = Commute(start=at(9, 0), start_point="home", end_point="work")
        assert commute.is_active
        assert commute.store_key == "active"

        commute.end = at(9, 30)
        assert not commute.is_active
        assert commute.store_key == "home -> work 2026-10-19T09:00:00"

    def test_duration(self):
        commute = Commute(start=at(9, 0), start_point="home", end_point="work")
        assert commute.duration(now=at(9, 10)) == timedelta(minutes=10)
        commute.end = at(9, 30)
        assert commute.duration(now=at(23, 0)) == timedelta(minutes=30)

    def test_snapshot_is_independent(self):
        commute = Commute(start=at(9, 0), start_point="home", end_point="work")
        commute.append(Location(*HOME_COORD, timestamp=at(9, 1)))

        snapshot = commute.snapshot()
        commute.append(Location(*WORK_COORD, timestamp=at(9, 20)))
        commute.end = at(9, 30)

        assert len(snapshot.locations) == 1
        assert snapshot.is_active

    def test_dict_form_preserves_identifier_and_locations(self):
        commute = Commute(start=at(17, 0), start_point="work", end_point="home",
                          description="rain")
        commute.append(Location(*WORK_COORD, accuracy=12.0, timestamp=at(17, 1)))
        commute.end = at(17, 40)

        restored = Commute.from_dict(commute.to_dict())

        assert restored.identifier == commute.identifier
        assert restored.end == at(17, 40)
        assert restored.description == "rain"
        assert restored.locations == commute.locations

    def test_from_dict_rejects_missing_start(self):
        with pytest.raises(ValueError, match="start"):
            Commute.from_dict({'start_point': 'home', 'end_point': 'work'})


# ─────────────────────────────────────────────────────────────────────────────
# Geometry
# ─────────────────────────────────────────────────────────────────────────────

class TestGeometry:

    def test_haversine_one_degree_latitude(self):
        assert float(haversine_m(45.0, -122.0, 46.0, -122.0)) == pytest.approx(111_195, rel=1e-3)

    def test_haversine_vectorized(self):
        distances = haversine_m(45.0, -122.0, np.array([45.0, 46.0]), np.array([-122.0, -122.0]))
        assert distances.shape == (2,)
        assert distances[0] == pytest.approx(0.0)

    def test_region_contains_boundary(self):
        region = CircularRegion("home", center=(45.0, -122.0), radius=1000.0)
        inside = (45.0 + 0.0089, -122.0)    # ~990 m north
        outside = (45.0 + 0.0091, -122.0)   # ~1012 m north
        assert region.contains(inside)
        assert not region.contains(outside)

    def test_invalid_region(self):
        with pytest.raises(ValueError):
            CircularRegion("home", center=(45.0, -122.0), radius=-1.0)

    def test_first_observation_reports_no_crossing(self, home, work):
        crossings, state = RegionDetector.detect_crossings([home.region, work.region], HOME_COORD, {})
        assert crossings == []
        assert state == {"home": True, "work": False}

    def test_crossings_between_endpoints(self, home, work):
        regions = [home.region, work.region]
        state = {"home": True, "work": False}

        crossings, new_state = RegionDetector.detect_crossings(regions, WORK_COORD, state)

        assert crossings == [("home", CrossingKind.EXIT), ("work", CrossingKind.ENTER)]
        assert new_state == {"home": False, "work": True}
        assert state == {"home": True, "work": False}

    def test_tracker(self, home):
        tracker = RegionTracker()
        assert tracker.is_inside("home") is None

        _, tracker.state = RegionDetector.detect_crossings([home.region], HOME_COORD, tracker.state)
        tracker.state["gym"] = False

        assert tracker.is_inside("home") is True
        assert len(tracker) == 2

        tracker.prune({"home"})
        assert len(tracker) == 1

        tracker.reset()
        assert len(tracker) == 0
