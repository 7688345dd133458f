"""
Commute Endpoint Module
=======================

Named physical places (home, work) with their geofence and schedules.

Design:
- Immutable (frozen dataclass), read-mostly for the engine lifetime
- Owns two Schedules: entry_window (arriving ends a commute) and
  exit_window (leaving starts a commute toward the counterpart)
- Exposes a CircularRegion to the external geofencing subsystem
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Tuple

from commutelog_core.geometry.region import CircularRegion
from commutelog_core.model.location import Location
from commutelog_core.model.schedule import Schedule

HOME = "home"
WORK = "work"
ENDPOINT_IDS = (HOME, WORK)


def counterpart_id(identifier: str) -> str:
    """home <-> work."""
    return WORK if identifier == HOME else HOME


@dataclass(frozen=True)
class Endpoint:
    """
    A named commute endpoint.

    Attributes:
        identifier: "home" or "work"
        latitude: Center latitude (degrees)
        longitude: Center longitude (degrees)
        radius: Geofence radius in meters
        entry_window: Window during which arriving here ends a commute
        exit_window: Window during which leaving here starts a commute

    Example:
        >>> home = Endpoint(
        ...     identifier="home",
        ...     latitude=45.5085, longitude=-122.6538, radius=50.0,
        ...     entry_window=Schedule(17, 22),
        ...     exit_window=Schedule(5, 10),
        ... )
        >>> home.is_active(datetime(2026, 10, 19, 8, 0))
        True
    """

    identifier: str
    latitude: float
    longitude: float
    radius: float
    entry_window: Schedule
    exit_window: Schedule

    def __post_init__(self):
        """Validate invariants."""
        if self.identifier not in ENDPOINT_IDS:
            raise ValueError(
                f"Invalid endpoint identifier: {self.identifier!r}. "
                f"Must be one of {ENDPOINT_IDS}"
            )
        if self.radius <= 0:
            raise ValueError(f"Endpoint radius must be > 0, got {self.radius}")

        # Fails fast on out-of-range coordinates
        object.__setattr__(
            self, '_region',
            CircularRegion(
                identifier=self.identifier,
                center=(self.latitude, self.longitude),
                radius=self.radius,
            ),
        )

    @property
    def region(self) -> CircularRegion:
        """Geofence region for the external location subsystem."""
        return self._region

    @property
    def coordinate(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    @property
    def counterpart(self) -> str:
        """Identifier of the implied destination/origin."""
        return counterpart_id(self.identifier)

    def is_active(self, date: datetime) -> bool:
        """True if either window contains date."""
        return self.entry_window.contains(date) or self.exit_window.contains(date)

    def contains(self, location: Location) -> bool:
        """True if location lies inside this endpoint's geofence."""
        return self.region.contains(location.coordinate)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'identifier': self.identifier,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'radius': self.radius,
            'entry_hours': self.entry_window.to_dict(),
            'exit_hours': self.exit_window.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Endpoint':
        """Deserialize from dict.

        Raises:
            ValueError: If required keys missing or invalid values
        """
        try:
            return cls(
                identifier=str(data['identifier']),
                latitude=float(data['latitude']),
                longitude=float(data['longitude']),
                radius=float(data['radius']),
                entry_window=Schedule.from_dict(data['entry_hours']),
                exit_window=Schedule.from_dict(data['exit_hours']),
            )
        except KeyError as e:
            raise ValueError(f"Missing required Endpoint field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid Endpoint data: {e}")

    def __str__(self) -> str:
        return (
            f"{self.identifier} ({self.latitude:.5f}, {self.longitude:.5f}) r={self.radius:.0f}m "
            f"entry={self.entry_window} exit={self.exit_window}"
        )
