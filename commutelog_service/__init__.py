"""
commutelog_service - Commute Tracking Service

This package provides the service that wires the commute engine to its
store, location provider, notification dispatcher and (optionally) MQTT.

Architecture:
- CommuteService: Main orchestrator
- ServiceConfig: Configuration management (YAML)

Threading Model:
- Caller thread (track replay, provider callbacks)
- Notification Thread (ordered observer delivery)
- Control Plane Thread (paho-mqtt internal for commands)
"""

from commutelog_service.config import EndpointConfig, MQTTConfig, ServiceConfig
from commutelog_service.service import CommuteService

__all__ = [
    "EndpointConfig",
    "MQTTConfig",
    "ServiceConfig",
    "CommuteService",
]
