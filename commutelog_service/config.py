"""
Configuration schema for CommuteService.

This module defines the configuration structure for the commute service:
store location, accuracy filter, endpoint seeds and MQTT settings.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml

from commutelog_core.filter import DEFAULT_ACCURACY_FILTER
from commutelog_core.model import ENDPOINT_IDS, Endpoint, Schedule
from commutelog_core.store import CommuteStore


@dataclass(frozen=True)
class EndpointConfig:
    """Endpoint seed (used only when the store has no endpoint yet)."""

    identifier: str
    latitude: float
    longitude: float
    radius: float
    entry_hours: Tuple[int, int]
    exit_hours: Tuple[int, int]

    def __post_init__(self):
        if self.identifier not in ENDPOINT_IDS:
            raise ValueError(
                f"Invalid endpoint identifier: {self.identifier}. "
                f"Must be one of {ENDPOINT_IDS}"
            )
        if len(self.entry_hours) != 2 or len(self.exit_hours) != 2:
            raise ValueError(
                f"Endpoint '{self.identifier}' hours must be [start, end] pairs"
            )

    def to_endpoint(self) -> Endpoint:
        return Endpoint(
            identifier=self.identifier,
            latitude=self.latitude,
            longitude=self.longitude,
            radius=self.radius,
            entry_window=Schedule(*self.entry_hours),
            exit_window=Schedule(*self.exit_hours),
        )


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 1

    event_topic: str = "commutelog/data/commutes/{service_id}"
    command_topic: str = "commutelog/control/{service_id}/commands"
    status_topic: str = "commutelog/control/{service_id}/status"

    def __post_init__(self):
        if not self.broker:
            raise ValueError("MQTT broker cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

    def topics(self, service_id: str) -> Dict[str, str]:
        """Topic templates resolved for a service."""
        return {
            "events": self.event_topic.format(service_id=service_id),
            "commands": self.command_topic.format(service_id=service_id),
            "status": self.status_topic.format(service_id=service_id),
        }


@dataclass(frozen=True)
class ServiceConfig:
    """
    Main configuration for CommuteService.

    Loaded from YAML and validated at startup. Immutable after construction.
    """

    service_id: str
    store_path: Path = Path("./commutes.json")
    accuracy_filter: float = DEFAULT_ACCURACY_FILTER
    significant_distance: float = 500.0

    endpoints: Dict[str, EndpointConfig] = field(default_factory=dict)

    # None disables MQTT (local-only service)
    mqtt_config: Optional[MQTTConfig] = None

    def __post_init__(self):
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

        if self.accuracy_filter <= 0:
            raise ValueError(
                f"accuracy_filter must be > 0, got {self.accuracy_filter}"
            )

        if self.significant_distance <= 0:
            raise ValueError(
                f"significant_distance must be > 0, got {self.significant_distance}"
            )

        for key, endpoint in self.endpoints.items():
            if key != endpoint.identifier:
                raise ValueError(
                    f"Endpoint key '{key}' does not match identifier '{endpoint.identifier}'"
                )

        if self.store_path.exists() and self.store_path.is_dir():
            raise ValueError(
                f"store_path must be a file, got directory: {self.store_path}"
            )

    def seed_endpoints(self, store: CommuteStore) -> Dict[str, Endpoint]:
        """
        Save configured endpoints the store does not have yet.

        Returns:
            Endpoints that were written
        """
        seeded = {}
        for identifier, endpoint_config in self.endpoints.items():
            if store.load_endpoint(identifier) is None:
                endpoint = endpoint_config.to_endpoint()
                store.save_endpoint(endpoint)
                seeded[identifier] = endpoint
        return seeded

    @classmethod
    def from_dict(cls, data: dict) -> "ServiceConfig":
        """Build from a parsed YAML mapping.

        Raises:
            ValueError: If required keys are missing or values are invalid
        """
        try:
            return cls._from_dict(data)
        except KeyError as e:
            raise ValueError(f"Missing required config field: {e}")
        except TypeError as e:
            raise ValueError(f"Invalid config data: {e}")

    @classmethod
    def _from_dict(cls, data: dict) -> "ServiceConfig":
        endpoints = {
            identifier: EndpointConfig(
                identifier=identifier,
                latitude=float(e["latitude"]),
                longitude=float(e["longitude"]),
                radius=float(e["radius"]),
                entry_hours=tuple(e["entry_hours"]),
                exit_hours=tuple(e["exit_hours"]),
            )
            for identifier, e in (data.get("endpoints") or {}).items()
        }

        mqtt_config_data = data.get("mqtt_config")
        mqtt_config = MQTTConfig(**mqtt_config_data) if mqtt_config_data else None

        return cls(
            service_id=data["service_id"],
            store_path=Path(data.get("store_path", "./commutes.json")),
            accuracy_filter=float(data.get("accuracy_filter", DEFAULT_ACCURACY_FILTER)),
            significant_distance=float(data.get("significant_distance", 500.0)),
            endpoints=endpoints,
            mqtt_config=mqtt_config,
        )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "ServiceConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            service_id: "commutelog"
            store_path: "./data/commutes.json"
            accuracy_filter: 75.0

            endpoints:
              home:
                latitude: 45.5085
                longitude: -122.6538
                radius: 50.0
                entry_hours: [17, 22]
                exit_hours: [5, 10]
              work:
                latitude: 45.5167
                longitude: -122.6792
                radius: 50.0
                entry_hours: [6, 11]
                exit_hours: [16, 21]

            mqtt_config:
              broker: "localhost"
              port: 1883
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)
