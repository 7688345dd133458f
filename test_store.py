"""
Commute Store Tests
===================

Store contract (active key, finalize, delete) on both adapters, JSON
document persistence, corruption handling, and the accuracy filter.
"""

import json
from datetime import timedelta

import pytest

from commutelog_core import (
    Commute,
    CommuteEngine,
    EngineState,
    InMemoryCommuteStore,
    JSONCommuteStore,
    LocationFilter,
    StoreError,
)
from conftest import HOME_COORD, at, sample


@pytest.fixture(params=["memory", "json"])
def any_store(request, tmp_path, home, work):
    if request.param == "memory":
        store = InMemoryCommuteStore()
    else:
        store = JSONCommuteStore(tmp_path / "data" / "commutes.json")
    store.save_endpoint(home)
    store.save_endpoint(work)
    return store


def open_commute(hour=9):
    return Commute(start=at(hour, 0), start_point="home", end_point="work")


# ─────────────────────────────────────────────────────────────────────────────
# Contract (both adapters)
# ─────────────────────────────────────────────────────────────────────────────

def test_open_commute_saved_under_active_key(any_store):
    commute = open_commute()
    any_store.save(commute)

    assert set(any_store.load_commutes()) == {"active"}
    assert any_store.active_commute().identifier == commute.identifier


def test_finalize_rekeys_to_identifier(any_store):
    commute = open_commute()
    any_store.save(commute)

    commute.end = at(9, 30)
    any_store.finalize(commute)

    assert set(any_store.load_commutes()) == {commute.identifier}
    assert any_store.active_commute() is None


def test_finalize_without_keep_drops_record(any_store):
    commute = open_commute()
    any_store.save(commute)
    commute.end = at(9, 30)

    any_store.finalize(commute, keep=False)

    assert any_store.load_commutes() == {}


def test_finalize_requires_end(any_store):
    with pytest.raises(ValueError):
        any_store.finalize(open_commute())


def test_loaded_commutes_are_independent(any_store):
    commute = open_commute()
    any_store.save(commute)

    loaded = any_store.active_commute()
    loaded.append(sample(HOME_COORD, at(9, 1)))

    assert any_store.active_commute().locations == []


def test_delete_identifier(any_store):
    commute = open_commute()
    commute.end = at(9, 30)
    any_store.save(commute)

    assert any_store.delete_identifier("nope") is False
    assert any_store.delete(commute) is True
    assert any_store.commute(commute.identifier) is None


def test_delete_stale_open_copy_removes_historical_record(any_store):
    first = open_commute(9)
    stale = first.snapshot()
    first.end = at(9, 30)
    any_store.save(first)
    current = open_commute(10)
    any_store.save(current)

    assert any_store.delete(stale) is True
    assert set(any_store.load_commutes()) == {"active"}

    assert any_store.delete(current) is True
    assert any_store.load_commutes() == {}


def test_location_log(any_store):
    for minute in (50, 70, 100):
        any_store.save_location(sample(HOME_COORD, at(8, 0) + timedelta(minutes=minute)))
    commute = open_commute(9)

    during_open = any_store.locations_for(commute, now=at(9, 45))
    commute.end = at(9, 30)
    during_ended = any_store.locations_for(commute, now=at(23, 0))

    assert [loc.timestamp for loc in during_open] == [at(9, 10), at(9, 40)]
    assert [loc.timestamp for loc in during_ended] == [at(9, 10)]
    assert len(any_store.load_locations()) == 3


def test_endpoints_round_trip(any_store, home, work):
    assert any_store.load_endpoint("home") == home
    assert any_store.load_endpoint("work") == work


# ─────────────────────────────────────────────────────────────────────────────
# JSON document
# ─────────────────────────────────────────────────────────────────────────────

def test_missing_document_is_empty(tmp_path):
    store = JSONCommuteStore(tmp_path / "absent.json")
    assert store.load_commutes() == {}
    assert store.load_endpoint("home") is None


def test_document_layout(tmp_path, home):
    path = tmp_path / "commutes.json"
    store = JSONCommuteStore(path)
    store.save_endpoint(home)
    store.save(open_commute())

    document = json.loads(path.read_text())

    assert set(document) == {"commutes", "endpoints", "locations"}
    assert document["endpoints"]["home"]["exit_hours"] == [6, 10]
    assert document["commutes"]["active"]["start_point"] == "home"


def test_no_temporary_files_left(tmp_path, home):
    store = JSONCommuteStore(tmp_path / "commutes.json")
    store.save_endpoint(home)
    store.save(open_commute())

    assert [p.name for p in tmp_path.iterdir()] == ["commutes.json"]


def test_corrupt_document_raises_store_error(tmp_path):
    path = tmp_path / "commutes.json"
    path.write_text("{not json")

    with pytest.raises(StoreError):
        JSONCommuteStore(path).load_commutes()


def test_non_object_document_raises_store_error(tmp_path):
    path = tmp_path / "commutes.json"
    path.write_text("[]")

    with pytest.raises(StoreError):
        JSONCommuteStore(path).load_commutes()


def test_corrupt_location_raises_store_error(tmp_path):
    path = tmp_path / "commutes.json"
    path.write_text(json.dumps({"commutes": {}, "endpoints": {}, "locations": [{"latitude": 1.0}]}))

    with pytest.raises(StoreError):
        JSONCommuteStore(path).load_locations()


def test_corrupt_record_raises_store_error(tmp_path):
    path = tmp_path / "commutes.json"
    path.write_text(json.dumps({"commutes": {"active": {"start": "yesterday"}}, "endpoints": {}}))

    with pytest.raises(StoreError):
        JSONCommuteStore(path).load_commutes()


def test_engine_recovers_from_json_document(tmp_path, home, work):
    path = tmp_path / "commutes.json"
    store = JSONCommuteStore(path)
    store.save_endpoint(home)
    store.save_endpoint(work)

    engine = CommuteEngine(store)
    engine.exited_region("home", at=at(9, 0))
    engine.process_location(sample(HOME_COORD, at(9, 5)))
    ended = engine.entered_region("work", at=at(9, 30))

    reopened = CommuteEngine(JSONCommuteStore(path))

    assert reopened.state == EngineState.IDLE
    history = reopened.fetch_commutes()
    assert [c.identifier for c in history] == [ended.identifier]
    assert history[0].end == at(9, 30)
    assert len(history[0].locations) == 1


# ─────────────────────────────────────────────────────────────────────────────
# Location filter
# ─────────────────────────────────────────────────────────────────────────────

class TestLocationFilter:

    def test_threshold_inclusive(self):
        location_filter = LocationFilter(accuracy_filter=75.0)
        assert location_filter.admits(sample(HOME_COORD, at(9, 0), accuracy=75.0))
        assert not location_filter.admits(sample(HOME_COORD, at(9, 0), accuracy=75.01))

    def test_sink_receives_admitted_only(self):
        received = []
        location_filter = LocationFilter(accuracy_filter=50.0, sink=received.append)

        good = sample(HOME_COORD, at(9, 0), accuracy=10.0)
        bad = sample(HOME_COORD, at(9, 1), accuracy=300.0)
        assert location_filter.process(good) is True
        assert location_filter.process(bad) is False

        assert received == [good]
        assert (location_filter.admitted_count, location_filter.rejected_count) == (1, 1)

    def test_admits_has_no_side_effects(self):
        location_filter = LocationFilter()
        location_filter.admits(sample(HOME_COORD, at(9, 0), accuracy=500.0))
        assert location_filter.rejected_count == 0

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError):
            LocationFilter(accuracy_filter=-1.0)
