"""
Location Provider Module
========================

Bounded Context: The external location-sensing capability.

The engine commands a provider (register regions, start/stop the location
stream); it never implements sensing itself. ReplayLocationProvider satisfies
the contract from a recorded track, which makes the whole pipeline runnable
without platform services.

Design:
- LocationProvider: minimal Protocol (monitor / start_updating / stop_updating)
- ReplayLocationProvider: geofence crossings via RegionDetector + RegionTracker,
  significant-change mode while not updating (only samples that moved far
  enough from the last delivered one are forwarded)
"""

import json
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from commutelog_core.analytics.tracker import RegionTracker
from commutelog_core.geometry.detector import CrossingKind, RegionDetector
from commutelog_core.geometry.region import CircularRegion
from commutelog_core.model import Endpoint, Location

logger = logging.getLogger(__name__)

DEFAULT_SIGNIFICANT_DISTANCE_M = 500.0


class LocationProvider(Protocol):
    """Capability interface the engine calls into."""

    def monitor(self, endpoint: Endpoint) -> None:
        """Register the endpoint's region for enter/exit signals."""
        ...

    def start_updating(self) -> None:
        """Request the continuous location stream."""
        ...

    def stop_updating(self) -> None:
        """Stop the continuous location stream."""
        ...


class ReplayLocationProvider:
    """
    Replays a recorded track as location samples and region crossings.

    Per sample, signals are delivered in this order: region exits, the
    location sample, region entries. A commute started by an exit therefore
    records the exit sample, and the arrival sample is recorded before an
    entry ends the commute.

    Usage:
        provider = ReplayLocationProvider()
        engine = CommuteEngine(store, provider=provider)
        provider.bind(
            on_location=engine.process_location,
            on_enter=engine.entered_region,
            on_exit=engine.exited_region,
        )
        provider.replay(ReplayLocationProvider.load_track("track.json"))
    """

    def __init__(self, significant_distance: float = DEFAULT_SIGNIFICANT_DISTANCE_M):
        self.significant_distance = significant_distance

        self._regions: Dict[str, CircularRegion] = {}
        self._tracker = RegionTracker()
        self._updating = False
        self._last_delivered: Optional[Location] = None

        self._on_location: Optional[Callable[[Location], None]] = None
        self._on_enter: Optional[Callable] = None
        self._on_exit: Optional[Callable] = None

    # ===== LocationProvider contract =====

    def monitor(self, endpoint: Endpoint) -> None:
        self._regions[endpoint.identifier] = endpoint.region
        self._tracker.prune(set(self._regions))
        logger.info(f"Monitoring region '{endpoint.identifier}' (r={endpoint.radius:.0f}m)")

    def start_updating(self) -> None:
        if not self._updating:
            logger.debug("Starting location updates")
        self._updating = True

    def stop_updating(self) -> None:
        if self._updating:
            logger.debug("Stopping location updates")
        self._updating = False

    # ===== Replay =====

    def bind(
        self,
        on_location: Callable[[Location], None],
        on_enter: Callable,
        on_exit: Callable,
    ) -> None:
        """Connect signal consumers (usually the engine's entry points)."""
        self._on_location = on_location
        self._on_enter = on_enter
        self._on_exit = on_exit

    @property
    def is_updating(self) -> bool:
        return self._updating

    @property
    def monitored_regions(self) -> List[str]:
        return list(self._regions)

    def feed(self, location: Location) -> None:
        """Process one raw sample from the track."""
        if self._on_location is None:
            raise RuntimeError("ReplayLocationProvider is not bound (call bind() first)")

        crossings, self._tracker.state = RegionDetector.detect_crossings(
            self._regions.values(), location.coordinate, self._tracker.state
        )

        for region_id, kind in crossings:
            if kind == CrossingKind.EXIT:
                logger.debug(f"Exited region '{region_id}' at {location.timestamp}")
                self._on_exit(region_id, at=location.timestamp)

        if self._should_deliver(location):
            self._last_delivered = location
            self._on_location(location)

        for region_id, kind in crossings:
            if kind == CrossingKind.ENTER:
                logger.debug(f"Entered region '{region_id}' at {location.timestamp}")
                self._on_enter(region_id, at=location.timestamp)

    def replay(self, track: Iterable[Location]) -> int:
        """
        Feed a whole track in order.

        Returns:
            Number of samples fed
        """
        count = 0
        for location in track:
            self.feed(location)
            count += 1
        logger.info(f"Replayed {count} samples")
        return count

    def _should_deliver(self, location: Location) -> bool:
        if self._updating or self._last_delivered is None:
            return True
        moved = CircularRegion(
            identifier="last",
            center=self._last_delivered.coordinate,
            radius=self.significant_distance,
        ).distance_to(location.coordinate)
        return moved >= self.significant_distance

    @staticmethod
    def load_track(path: Path | str) -> List[Location]:
        """
        Load a recorded track: a JSON list of
        {"latitude", "longitude", "accuracy", "timestamp"} objects.
        """
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Track {path} must be a JSON list of samples")
        return [Location.from_dict(item) for item in data]
