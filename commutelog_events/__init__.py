"""
CommuteLog MQTT Events Package
==============================

Bounded Context: Communication Protocol for Commute Tracking

MQTT-based messaging for CommuteLog, decoupling the commute engine from the
consumers of its lifecycle events (UI, history views, dashboards).

Architecture:
- schemas/: Immutable message structures
- publishers/: Message producers (CommuteEventPublisher)
- logging/: Structured JSON logging for observability

Public API
----------
Schemas:
    Timestamp, LocationPayload
    CommuteSummary, CommuteEventMessage

Publishers:
    CommuteEventPublisher
    BasePublisher (for custom publishers)

Logging:
    LogEvent, StructuredLogger, create_logger

Example:
    >>> from commutelog_events import CommuteEventPublisher, create_logger
    >>>
    >>> publisher = CommuteEventPublisher(
    ...     broker_host="localhost",
    ...     topic="commutelog/events",
    ...     service_id="commutelog",
    ...     logger=create_logger("publisher"),
    ... )
    >>> publisher.connect()
    >>> engine.add_observer(publisher)
"""

__version__ = "1.0.0"

from .schemas import (
    SCHEMA_VERSION,
    Timestamp,
    LocationPayload,
    CommuteSummary,
    CommuteEventMessage,
)

from .publishers import (
    BasePublisher,
    CommuteEventPublisher,
)

from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    '__version__',
    # Schemas
    'SCHEMA_VERSION',
    'Timestamp',
    'LocationPayload',
    'CommuteSummary',
    'CommuteEventMessage',
    # Publishers
    'BasePublisher',
    'CommuteEventPublisher',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
