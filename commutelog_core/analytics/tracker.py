"""
Region Tracker Module
=====================

Stateful tracker for geofence crossing detection.

Design:
- Encapsulates region state (region_id -> last known inside flag)
- Works with RegionDetector.detect_crossings()
- Thread-safe via encapsulation (caller must synchronize)
"""

from typing import Dict


class RegionTracker:
    """
    Tracks which side of each monitored region the device was last seen on.

    State:
        {region_id: inside} where inside is True (inside the geofence)
        or False (outside).

    Usage:
        tracker = RegionTracker()

        # Each sample
        crossings, tracker.state = RegionDetector.detect_crossings(
            regions, location.coordinate, tracker.state
        )
    """

    def __init__(self):
        """Initialize empty tracker state."""
        self._state: Dict[str, bool] = {}

    @property
    def state(self) -> Dict[str, bool]:
        """Current region state."""
        return self._state

    @state.setter
    def state(self, new_state: Dict[str, bool]) -> None:
        self._state = new_state

    def is_inside(self, region_id: str) -> bool | None:
        """Last known side, or None if the region was never observed."""
        return self._state.get(region_id)

    def reset(self) -> None:
        """Forget all regions."""
        self._state.clear()

    def prune(self, monitored_ids: set[str]) -> None:
        """
        Remove state for regions that are no longer monitored.

        Args:
            monitored_ids: Set of currently monitored region IDs
        """
        stale_ids = set(self._state.keys()) - monitored_ids
        for region_id in stale_ids:
            del self._state[region_id]

    def __len__(self) -> int:
        return len(self._state)

    def __repr__(self) -> str:
        return f"RegionTracker(tracked={len(self._state)})"
