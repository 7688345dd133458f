"""
Geofence Replay Tests
=====================

End-to-end morning commute driven by ReplayLocationProvider: region
crossings and sample delivery wired straight into the engine.
"""

import json

import pytest

from commutelog_core import CommuteEngine, EngineState, ReplayLocationProvider
from conftest import HOME_COORD, RecordingObserver, WORK_COORD, at, sample

# ~200 m north of home, outside the 100 m fence
LEAVING_HOME = (HOME_COORD[0] + 0.0018, HOME_COORD[1])
MIDWAY = (45.5126, -122.6665)
# ~120 m from work, still outside the fence
NEAR_WORK = (45.5160, -122.6780)


def morning_track():
    return [
        sample(HOME_COORD, at(5, 30)),
        sample(HOME_COORD, at(7, 50)),
        sample(LEAVING_HOME, at(8, 0)),
        sample(MIDWAY, at(8, 10)),
        sample(NEAR_WORK, at(8, 20)),
        sample(WORK_COORD, at(8, 30)),
    ]


@pytest.fixture
def provider():
    return ReplayLocationProvider(significant_distance=500.0)


@pytest.fixture
def wired(store, provider):
    recorder = RecordingObserver()
    engine = CommuteEngine(store, provider=provider)
    engine.add_observer(recorder)
    provider.bind(
        on_location=engine.process_location,
        on_enter=engine.entered_region,
        on_exit=engine.exited_region,
    )
    return engine, recorder


def test_engine_registers_both_regions(wired, provider):
    assert sorted(provider.monitored_regions) == ["home", "work"]
    assert not provider.is_updating


def test_morning_commute_from_track(wired, provider):
    engine, recorder = wired

    assert provider.replay(morning_track()) == 6

    assert engine.state == EngineState.IDLE
    assert not provider.is_updating

    history = engine.fetch_commutes()
    assert len(history) == 1
    commute = history[0]
    assert (commute.start_point, commute.end_point) == ("home", "work")
    assert commute.start == at(8, 0)
    assert commute.end == at(8, 30)
    assert [loc.timestamp for loc in commute.locations] == [
        at(8, 0), at(8, 10), at(8, 20), at(8, 30),
    ]
    assert recorder.kinds == ["started"] + ["updated"] * 4 + ["ended"]


def test_updates_follow_commute(wired, provider):
    engine, _ = wired
    track = morning_track()

    for location in track[:3]:
        provider.feed(location)
    assert provider.is_updating
    assert engine.state == EngineState.ACTIVE

    for location in track[3:]:
        provider.feed(location)
    assert not provider.is_updating


def test_first_sample_delivered_then_throttled(provider):
    delivered = []
    provider.bind(on_location=delivered.append, on_enter=lambda *a, **k: None,
                  on_exit=lambda *a, **k: None)

    provider.feed(sample(HOME_COORD, at(5, 30)))
    provider.feed(sample(HOME_COORD, at(5, 40)))
    provider.feed(sample(MIDWAY, at(5, 50)))

    assert [loc.timestamp for loc in delivered] == [at(5, 30), at(5, 50)]


def test_exit_outside_window_ignored(wired, provider):
    engine, recorder = wired

    provider.feed(sample(HOME_COORD, at(12, 0)))
    provider.feed(sample(LEAVING_HOME, at(12, 5)))

    assert engine.state == EngineState.IDLE
    assert recorder.notifications == []


def test_unbound_provider_rejects_samples(provider):
    with pytest.raises(RuntimeError):
        provider.feed(sample(HOME_COORD, at(8, 0)))


def test_load_track(tmp_path):
    path = tmp_path / "track.json"
    path.write_text(json.dumps([location.to_dict() for location in morning_track()]))

    track = ReplayLocationProvider.load_track(path)

    assert len(track) == 6
    assert track[2].timestamp == at(8, 0)
    assert track[2].coordinate == LEAVING_HOME


def test_load_track_rejects_non_list(tmp_path):
    path = tmp_path / "track.json"
    path.write_text(json.dumps({"latitude": 1.0}))

    with pytest.raises(ValueError):
        ReplayLocationProvider.load_track(path)
