"""
Commute Record Module
=====================

The mutable aggregate root for one journey between two endpoints.

Design:
- Mutable state (end, locations, description) owned by the engine
- end is None <=> commute is active
- Locations are append-only, insertion order == arrival order
- snapshot() gives an independent copy for asynchronous observers
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from commutelog_core.model.location import Location

ACTIVE_KEY = "active"


def commute_identifier(origin: str, destination: str, start: datetime) -> str:
    """Permanent identifier derived from origin, destination and start time."""
    return f"{origin} -> {destination} {start.isoformat(timespec='seconds')}"


@dataclass(eq=False)
class Commute:
    """
    One journey record.

    Attributes:
        start: When the commute started
        start_point: Origin endpoint identifier ("home" or "work")
        end_point: Destination endpoint identifier
        end: When the commute ended (None while active)
        locations: Ordered location samples recorded during the commute
        description: Free text
        identifier: Permanent identifier (derived when not given)

    Example:
        >>> commute = Commute(start=datetime(2026, 10, 19, 9, 0),
        ...                   start_point="home", end_point="work")
        >>> commute.identifier
        'home -> work 2026-10-19T09:00:00'
        >>> commute.is_active
        True
    """

    start: datetime
    start_point: str
    end_point: str
    end: Optional[datetime] = None
    locations: List[Location] = field(default_factory=list)
    description: str = ""
    identifier: Optional[str] = None

    def __post_init__(self):
        if self.identifier is None:
            self.identifier = commute_identifier(self.start_point, self.end_point, self.start)

    @property
    def is_active(self) -> bool:
        return self.end is None

    @property
    def store_key(self) -> str:
        """Key under which the store holds this record."""
        return ACTIVE_KEY if self.is_active else self.identifier

    def duration(self, now: Optional[datetime] = None):
        """Elapsed time; open commutes are measured up to now."""
        end = self.end or now or datetime.now()
        return end - self.start

    def append(self, location: Location) -> None:
        self.locations.append(location)

    def snapshot(self) -> 'Commute':
        """Independent copy (locations list copied, samples shared)."""
        clone = copy.copy(self)
        clone.locations = list(self.locations)
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'identifier': self.identifier,
            'start': self.start.isoformat(),
            'end': self.end.isoformat() if self.end is not None else None,
            'start_point': self.start_point,
            'end_point': self.end_point,
            'description': self.description,
            'locations': [loc.to_dict() for loc in self.locations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Commute':
        """Deserialize from dict.

        Raises:
            ValueError: If required keys missing or invalid values
        """
        try:
            end = data.get('end')
            return cls(
                identifier=data.get('identifier'),
                start=datetime.fromisoformat(data['start']),
                end=datetime.fromisoformat(end) if end else None,
                start_point=str(data['start_point']),
                end_point=str(data['end_point']),
                description=str(data.get('description', '')),
                locations=[Location.from_dict(loc) for loc in data.get('locations', [])],
            )
        except KeyError as e:
            raise ValueError(f"Missing required Commute field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid Commute data: {e}")

    def __repr__(self) -> str:
        state = "active" if self.is_active else f"ended {self.end.isoformat(timespec='seconds')}"
        return f"Commute({self.identifier!r}, {state}, locations={len(self.locations)})"
