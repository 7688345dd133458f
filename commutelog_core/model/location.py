"""
Location Sample Module
======================

Immutable location samples as delivered by the location subsystem.

Design:
- Frozen dataclass (value object, no identity beyond its fields)
- Fail-fast validation of coordinate ranges
- to_dict()/from_dict() for persistence
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Location:
    """
    Immutable location sample.

    Attributes:
        latitude: Degrees, [-90, 90]
        longitude: Degrees, [-180, 180]
        accuracy: Horizontal accuracy radius in meters (lower is better)
        timestamp: When the sample was taken

    Example:
        >>> loc = Location(latitude=45.5085, longitude=-122.6538,
        ...                accuracy=10.0, timestamp=datetime(2026, 10, 19, 9, 0))
        >>> loc.to_dict()['accuracy']
        10.0
    """

    latitude: float
    longitude: float
    accuracy: float = 0.0
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        """Validate invariants."""
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude must be in [-90, 90], got {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude must be in [-180, 180], got {self.longitude}")

        # Samples without a timestamp are stamped on construction
        if self.timestamp is None:
            object.__setattr__(self, 'timestamp', datetime.now())

    @property
    def coordinate(self) -> tuple[float, float]:
        """(latitude, longitude) pair."""
        return (self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'latitude': self.latitude,
            'longitude': self.longitude,
            'accuracy': self.accuracy,
            'timestamp': self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Location':
        """Deserialize from dict.

        Raises:
            ValueError: If required keys missing or invalid values
        """
        try:
            return cls(
                latitude=float(data['latitude']),
                longitude=float(data['longitude']),
                accuracy=float(data.get('accuracy', 0.0)),
                timestamp=datetime.fromisoformat(data['timestamp']),
            )
        except KeyError as e:
            raise ValueError(f"Missing required Location field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid Location data: {e}")

    def __str__(self) -> str:
        return (
            f"({self.latitude:.6f}, {self.longitude:.6f}) "
            f"±{self.accuracy:.0f}m @ {self.timestamp.isoformat(timespec='seconds')}"
        )
