"""
Common Schema Types
==================

Bounded Context: Shared Data Structures

Types shared by commute event messages.

Design Principles:
- Immutability: frozen=True prevents accidental mutation
- Serialization: to_dict() for JSON export
- Validation: Constructor validates invariants

Types:
- Timestamp: ISO 8601 timestamp wrapper
- LocationPayload: Wire form of a single location sample
"""

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from commutelog_core.model import Location


@dataclass(frozen=True)
class Timestamp:
    """
    Immutable ISO 8601 timestamp wrapper.

    Attributes:
        value: ISO 8601 formatted timestamp string

    Example:
        >>> ts = Timestamp.from_datetime(datetime(2026, 10, 19, 9, 30))
        >>> ts.value
        '2026-10-19T09:30:00'
    """
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value:
            raise ValueError(f"Timestamp must be a non-empty string, got {self.value!r}")

    @classmethod
    def now(cls) -> 'Timestamp':
        """Create timestamp from current UTC time."""
        return cls(value=datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_datetime(cls, dt: datetime) -> 'Timestamp':
        return cls(value=dt.isoformat())

    def to_datetime(self) -> datetime:
        """Parse to datetime object.

        Raises:
            ValueError: If timestamp format invalid
        """
        try:
            return datetime.fromisoformat(self.value)
        except ValueError as e:
            raise ValueError(f"Invalid ISO timestamp: {self.value}") from e

    def to_dict(self) -> str:
        """Serialize to JSON (as string)."""
        return self.value


@dataclass(frozen=True)
class LocationPayload:
    """
    Wire form of a location sample.

    Attributes:
        latitude: Degrees
        longitude: Degrees
        accuracy: Horizontal accuracy in meters
        timestamp: ISO 8601 capture time
    """
    latitude: float
    longitude: float
    accuracy: float
    timestamp: str

    @classmethod
    def from_location(cls, location: Location) -> 'LocationPayload':
        return cls(
            latitude=location.latitude,
            longitude=location.longitude,
            accuracy=location.accuracy,
            timestamp=location.timestamp.isoformat(),
        )

    def to_location(self) -> Location:
        return Location(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy=self.accuracy,
            timestamp=datetime.fromisoformat(self.timestamp),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['LocationPayload']:
        """Deserialize from dict (None passes through).

        Raises:
            ValueError: If required keys missing or invalid values
        """
        if data is None:
            return None
        try:
            return cls(
                latitude=float(data['latitude']),
                longitude=float(data['longitude']),
                accuracy=float(data.get('accuracy', 0.0)),
                timestamp=str(data['timestamp']),
            )
        except KeyError as e:
            raise ValueError(f"Missing required location field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid location data: {e}")
