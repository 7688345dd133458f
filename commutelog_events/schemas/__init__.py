"""
CommuteLog Event Schemas
========================

Bounded Context: Data Structures

Immutable, typed data structures for MQTT messages.

Public API
----------
Common Types:
    Timestamp: ISO 8601 timestamp wrapper
    LocationPayload: Wire form of a location sample

Commute Event Types:
    CommuteSummary: Immutable commute digest
    CommuteEventMessage: Complete commute event message
"""

from .common import LocationPayload, Timestamp
from .commute_event import SCHEMA_VERSION, CommuteEventMessage, CommuteSummary

__all__ = [
    'SCHEMA_VERSION',
    'Timestamp',
    'LocationPayload',
    'CommuteSummary',
    'CommuteEventMessage',
]
