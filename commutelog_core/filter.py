"""
Location Filter Module
======================

Accuracy-based admission control for raw location samples.

Design:
- Applied once per sample, before any engine transition is considered
- Rejected samples are dropped silently (DEBUG log only)
- Admitted samples are optionally forwarded to a sink (location history)
"""

import logging
from typing import Callable, Optional

from commutelog_core.model.location import Location

logger = logging.getLogger(__name__)

DEFAULT_ACCURACY_FILTER = 75.0


class LocationFilter:
    """
    Admits a Location iff accuracy <= accuracy_filter.

    Example:
        >>> location_filter = LocationFilter(accuracy_filter=75.0)
        >>> location_filter.admits(Location(45.5, -122.6, accuracy=75.0))
        True
        >>> location_filter.admits(Location(45.5, -122.6, accuracy=76.0))
        False
    """

    def __init__(
        self,
        accuracy_filter: float = DEFAULT_ACCURACY_FILTER,
        sink: Optional[Callable[[Location], None]] = None,
    ):
        """
        Args:
            accuracy_filter: Worst acceptable horizontal accuracy in meters
            sink: Optional callable receiving every admitted sample
        """
        if accuracy_filter < 0:
            raise ValueError(f"accuracy_filter must be >= 0, got {accuracy_filter}")

        self.accuracy_filter = accuracy_filter
        self.sink = sink
        self.admitted_count = 0
        self.rejected_count = 0

    def admits(self, location: Location) -> bool:
        """Pure admission check (no counters, no sink)."""
        return location.accuracy <= self.accuracy_filter

    def process(self, location: Location) -> bool:
        """
        Apply the filter to an incoming sample.

        Returns:
            True if the sample was admitted
        """
        if not self.admits(location):
            self.rejected_count += 1
            logger.debug(
                f"Ignoring location {location} due to accuracy filter "
                f"{self.accuracy_filter}m"
            )
            return False

        self.admitted_count += 1
        if self.sink is not None:
            self.sink(location)
        return True

    def __repr__(self) -> str:
        return (
            f"LocationFilter(accuracy_filter={self.accuracy_filter}, "
            f"admitted={self.admitted_count}, rejected={self.rejected_count})"
        )
