"""
Commute Event Message Schema
============================

Bounded Context: Commute Event Data Structures

Schema for commute lifecycle events published via MQTT.

Design:
- CommuteSummary: Immutable digest of a Commute (no full location history,
  only the count and the most recent sample)
- CommuteEventMessage: Envelope with schema version, source and sequence

Message Flow:
    CommuteEngine → NotificationDispatcher → CommuteEventPublisher → MQTT → UI
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from commutelog_core.dispatch import CommuteEventType, CommuteNotification
from commutelog_core.model import Commute

from .common import LocationPayload, Timestamp

SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class CommuteSummary:
    """
    Immutable commute digest.

    Attributes:
        identifier: Permanent commute identifier
        start_point: Origin endpoint ("home" / "work")
        end_point: Destination endpoint
        start: ISO 8601 start time
        end: ISO 8601 end time (None while active)
        duration_seconds: Elapsed seconds (None while active)
        location_count: Number of recorded samples
        last_location: Most recent sample (None when no samples yet)
        description: Free text

    Example:
        >>> summary = CommuteSummary.from_commute(commute)
        >>> summary.location_count
        12
    """
    identifier: str
    start_point: str
    end_point: str
    start: str
    end: Optional[str] = None
    duration_seconds: Optional[float] = None
    location_count: int = 0
    last_location: Optional[LocationPayload] = None
    description: str = ""

    def __post_init__(self):
        if self.location_count < 0:
            raise ValueError(f"location_count must be >= 0, got {self.location_count}")

    @classmethod
    def from_commute(cls, commute: Commute) -> 'CommuteSummary':
        last = commute.locations[-1] if commute.locations else None
        return cls(
            identifier=commute.identifier,
            start_point=commute.start_point,
            end_point=commute.end_point,
            start=commute.start.isoformat(),
            end=commute.end.isoformat() if commute.end is not None else None,
            duration_seconds=commute.duration().total_seconds() if commute.end is not None else None,
            location_count=len(commute.locations),
            last_location=LocationPayload.from_location(last) if last is not None else None,
            description=commute.description,
        )

    @property
    def is_active(self) -> bool:
        return self.end is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'identifier': self.identifier,
            'start_point': self.start_point,
            'end_point': self.end_point,
            'start': self.start,
            'end': self.end,
            'duration_seconds': self.duration_seconds,
            'location_count': self.location_count,
            'last_location': self.last_location.to_dict() if self.last_location else None,
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CommuteSummary':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            duration = data.get('duration_seconds')
            return cls(
                identifier=str(data['identifier']),
                start_point=str(data['start_point']),
                end_point=str(data['end_point']),
                start=str(data['start']),
                end=data.get('end'),
                duration_seconds=float(duration) if duration is not None else None,
                location_count=int(data.get('location_count', 0)),
                last_location=LocationPayload.from_dict(data.get('last_location')),
                description=str(data.get('description', '')),
            )
        except KeyError as e:
            raise ValueError(f"Missing required CommuteSummary field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid CommuteSummary data: {e}")


@dataclass(frozen=True)
class CommuteEventMessage:
    """
    Complete commute event message for MQTT publication.

    Attributes:
        schema_version: Message schema version (for evolution)
        timestamp: ISO 8601 timestamp of emission
        service_id: Publishing service identifier
        sequence: Per-service emission counter (ordering on the consumer side)
        event_type: started / updated / ended
        commute: Commute digest

    Example:
        >>> msg = CommuteEventMessage.from_notification(notification, service_id="commutelog")
        >>> msg.to_dict()['event_type']
        'ended'
    """
    schema_version: str
    timestamp: Timestamp
    service_id: str
    sequence: int
    event_type: CommuteEventType
    commute: CommuteSummary

    def __post_init__(self):
        if self.sequence < 0:
            raise ValueError(f"Sequence must be >= 0, got {self.sequence}")
        if not self.service_id:
            raise ValueError("service_id must not be empty")

    @classmethod
    def from_notification(
        cls,
        notification: CommuteNotification,
        service_id: str,
        schema_version: str = SCHEMA_VERSION,
    ) -> 'CommuteEventMessage':
        return cls(
            schema_version=schema_version,
            timestamp=Timestamp.from_datetime(notification.emitted_at),
            service_id=service_id,
            sequence=notification.sequence,
            event_type=notification.event_type,
            commute=CommuteSummary.from_commute(notification.commute),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'service_id': self.service_id,
            'sequence': self.sequence,
            'event_type': self.event_type.value,
            'commute': self.commute.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CommuteEventMessage':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            return cls(
                schema_version=str(data['schema_version']),
                timestamp=Timestamp(value=data['timestamp']),
                service_id=str(data['service_id']),
                sequence=int(data['sequence']),
                event_type=CommuteEventType(data['event_type']),
                commute=CommuteSummary.from_dict(data['commute']),
            )
        except KeyError as e:
            raise ValueError(f"Missing required CommuteEventMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid CommuteEventMessage data: {e}")
