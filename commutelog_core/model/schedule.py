"""
Commute Schedule Module
=======================

Weekday-only hour windows used to gate commute transitions.

Design:
- Immutable value object (frozen dataclass)
- Half-open hour range [start_hour, end_hour)
- Windows never wrap midnight (start_hour < end_hour enforced)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

# datetime.weekday(): Monday == 0 ... Sunday == 6
SATURDAY = 5


@dataclass(frozen=True)
class Schedule:
    """
    Time-of-day + day-of-week window predicate.

    A date is inside the schedule iff it falls on a weekday and its local
    hour lies in [start_hour, end_hour). Aware datetimes are converted to
    the local timezone first; naive datetimes are taken as local time.

    Attributes:
        start_hour: First hour inside the window (0-23)
        end_hour: First hour after the window (1-24)

    Example:
        >>> morning = Schedule(start_hour=6, end_hour=10)
        >>> morning.contains(datetime(2026, 10, 19, 9, 30))   # Monday
        True
        >>> morning.contains(datetime(2026, 10, 19, 10, 0))
        False
    """

    start_hour: int
    end_hour: int

    def __post_init__(self):
        """Validate invariants."""
        if not 0 <= self.start_hour <= 23:
            raise ValueError(f"start_hour must be in [0, 23], got {self.start_hour}")
        if not 1 <= self.end_hour <= 24:
            raise ValueError(f"end_hour must be in [1, 24], got {self.end_hour}")
        if self.start_hour >= self.end_hour:
            raise ValueError(
                f"Schedule windows cannot wrap midnight: "
                f"start_hour={self.start_hour} >= end_hour={self.end_hour}"
            )

    def contains(self, date: datetime) -> bool:
        """Check if date falls on a weekday inside the hour window."""
        date = local_time(date)
        if date.weekday() >= SATURDAY:
            return False
        return self.start_hour <= date.hour < self.end_hour

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Check if the window is open right now."""
        return self.contains(now or datetime.now())

    def distance_hours(self, date: datetime) -> float:
        """
        Circular time-of-day distance (hours) from date to this window.

        Zero inside the window or exactly on one of its edges. Ignores the
        weekday rule: this is used to rank windows, not to gate events.
        """
        date = local_time(date)
        t = date.hour + date.minute / 60.0
        if self.start_hour <= t <= self.end_hour:
            return 0.0
        return min(_circular(t, self.start_hour), _circular(t, self.end_hour))

    @property
    def hours(self) -> range:
        """Hours inside the window."""
        return range(self.start_hour, self.end_hour)

    def to_dict(self) -> List[int]:
        """Serialize as [start_hour, end_hour]."""
        return [self.start_hour, self.end_hour]

    @classmethod
    def from_dict(cls, data) -> 'Schedule':
        """Deserialize from [start, end] list or {'start_hour', 'end_hour'} dict."""
        try:
            if isinstance(data, dict):
                return cls(start_hour=int(data['start_hour']), end_hour=int(data['end_hour']))
            start, end = data
            return cls(start_hour=int(start), end_hour=int(end))
        except KeyError as e:
            raise ValueError(f"Missing required Schedule field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid Schedule data: {e}")

    def __str__(self) -> str:
        return f"{self.start_hour:02d}:00-{self.end_hour:02d}:00 (weekdays)"


def local_time(date: datetime) -> datetime:
    """Naive local time for date (aware datetimes are converted first)."""
    if date.tzinfo is not None:
        return date.astimezone().replace(tzinfo=None)
    return date


def _circular(a: float, b: float) -> float:
    d = abs(a - b) % 24.0
    return min(d, 24.0 - d)

