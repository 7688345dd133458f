"""
Service Configuration Tests
===========================

YAML loading, validation, endpoint seeding and a local (no MQTT) service
replaying a track end to end.
"""

import json
from pathlib import Path

import pytest
import yaml

from commutelog_core import Endpoint, InMemoryCommuteStore, JSONCommuteStore, Schedule
from commutelog_service import CommuteService, EndpointConfig, MQTTConfig, ServiceConfig
from conftest import HOME_COORD, WORK_COORD, FixedClock, RecordingObserver, at, sample

EXAMPLE_CONFIG = Path(__file__).parent / "config" / "commutelog" / "service_config.yaml"


def config_data(tmp_path):
    return {
        "service_id": "test",
        "store_path": str(tmp_path / "commutes.json"),
        "accuracy_filter": 50.0,
        "endpoints": {
            "home": {
                "latitude": HOME_COORD[0],
                "longitude": HOME_COORD[1],
                "radius": 100.0,
                "entry_hours": [16, 21],
                "exit_hours": [6, 10],
            },
            "work": {
                "latitude": WORK_COORD[0],
                "longitude": WORK_COORD[1],
                "radius": 100.0,
                "entry_hours": [7, 12],
                "exit_hours": [15, 19],
            },
        },
    }


def write_yaml(tmp_path, data):
    path = tmp_path / "service_config.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


def test_from_yaml(tmp_path):
    config = ServiceConfig.from_yaml(write_yaml(tmp_path, config_data(tmp_path)))

    assert config.service_id == "test"
    assert config.accuracy_filter == 50.0
    assert config.significant_distance == 500.0
    assert config.store_path == tmp_path / "commutes.json"
    assert config.mqtt_config is None
    assert config.endpoints["home"].to_endpoint().exit_window == Schedule(6, 10)


def test_example_config_loads():
    config = ServiceConfig.from_yaml(EXAMPLE_CONFIG)

    assert set(config.endpoints) == {"home", "work"}
    assert config.mqtt_config.topics(config.service_id) == {
        "events": "commutelog/data/commutes/commutelog",
        "commands": "commutelog/control/commutelog/commands",
        "status": "commutelog/control/commutelog/status",
    }


def test_missing_service_id(tmp_path):
    data = config_data(tmp_path)
    del data["service_id"]

    with pytest.raises(ValueError, match="service_id"):
        ServiceConfig.from_yaml(write_yaml(tmp_path, data))


def test_missing_endpoint_field(tmp_path):
    data = config_data(tmp_path)
    del data["endpoints"]["work"]["radius"]

    with pytest.raises(ValueError, match="radius"):
        ServiceConfig.from_dict(data)


@pytest.mark.parametrize("field, value", [
    ("service_id", ""),
    ("accuracy_filter", 0),
    ("significant_distance", -5),
])
def test_invalid_values(tmp_path, field, value):
    data = config_data(tmp_path)
    data[field] = value

    with pytest.raises(ValueError):
        ServiceConfig.from_dict(data)


def test_store_path_must_not_be_directory(tmp_path):
    with pytest.raises(ValueError):
        ServiceConfig(service_id="test", store_path=tmp_path)


def test_endpoint_config_validation():
    with pytest.raises(ValueError):
        EndpointConfig("gym", 45.5, -122.6, 50.0, (6, 10), (16, 20))
    with pytest.raises(ValueError):
        EndpointConfig("home", 45.5, -122.6, 50.0, (6,), (16, 20))


@pytest.mark.parametrize("kwargs", [
    {"broker": ""},
    {"broker": "localhost", "port": 0},
    {"broker": "localhost", "qos": 3},
])
def test_mqtt_config_validation(kwargs):
    with pytest.raises(ValueError):
        MQTTConfig(**kwargs)


def test_seeding_only_fills_missing_endpoints(tmp_path, home):
    moved_home = home.to_dict()
    moved_home["radius"] = 250.0

    store = InMemoryCommuteStore()
    store.save_endpoint(Endpoint.from_dict(moved_home))

    config = ServiceConfig.from_dict(config_data(tmp_path))
    seeded = config.seed_endpoints(store)

    assert list(seeded) == ["work"]
    assert store.load_endpoint("home").radius == 250.0
    assert config.seed_endpoints(store) == {}


def test_local_service_replays_track(tmp_path):
    config = ServiceConfig.from_dict(config_data(tmp_path))
    service = CommuteService(config, clock=FixedClock(at(9, 0)), asynchronous=True)
    service.setup()
    recorder = RecordingObserver()
    service.engine.add_observer(recorder)

    service.dispatcher.start()
    track_path = tmp_path / "track.json"
    track_path.write_text(json.dumps([
        sample(HOME_COORD, at(5, 30)).to_dict(),
        sample((HOME_COORD[0] + 0.0018, HOME_COORD[1]), at(8, 0)).to_dict(),
        sample(WORK_COORD, at(8, 25)).to_dict(),
    ]))
    assert service.replay_file(track_path) == 3
    service.dispatcher.stop()

    assert recorder.kinds == ["started", "updated", "updated", "ended"]
    reopened = JSONCommuteStore(config.store_path)
    [commute] = reopened.load_commutes().values()
    assert commute.end == at(8, 25)
    assert service.status()["state"] == "idle"
