"""
CommuteLog Core
===============

Bounded Context: Commute detection from location samples and geofence crossings.

Architecture:

    commutelog_core/
    ├── model/             # Location, Schedule, Endpoint (immutable), Commute (mutable)
    ├── geometry/          # CircularRegion, RegionDetector (stateless)
    ├── analytics/         # RegionTracker (last known side per region)
    ├── filter.py          # LocationFilter (accuracy admission control)
    ├── store.py           # CommuteStore contract + in-memory / JSON adapters
    ├── provider.py        # LocationProvider contract + ReplayLocationProvider
    ├── dispatch.py        # Ordered notification channel + CommuteObserver
    └── engine.py          # CommuteEngine (the state machine)

Usage:

    from commutelog_core import CommuteEngine, InMemoryCommuteStore, Endpoint, Schedule

    store = InMemoryCommuteStore()
    store.save_endpoint(Endpoint("home", 45.5085, -122.6538, 50.0,
                                 entry_window=Schedule(17, 22), exit_window=Schedule(5, 10)))
    store.save_endpoint(Endpoint("work", 45.5167, -122.6792, 50.0,
                                 entry_window=Schedule(6, 11), exit_window=Schedule(16, 21)))

    engine = CommuteEngine(store)
    engine.exited_region("home", at=datetime(2026, 10, 19, 9, 0))
    engine.entered_region("work", at=datetime(2026, 10, 19, 9, 30))
"""

# Model
from commutelog_core.model import (
    ACTIVE_KEY,
    ENDPOINT_IDS,
    HOME,
    WORK,
    Commute,
    Endpoint,
    Location,
    Schedule,
)

# Geometry + analytics
from commutelog_core.geometry import CircularRegion, CrossingKind, RegionDetector
from commutelog_core.analytics import RegionTracker

# Engine and collaborators
from commutelog_core.errors import CommuteLogError, EndpointNotConfiguredError, StoreError
from commutelog_core.filter import LocationFilter
from commutelog_core.store import CommuteStore, InMemoryCommuteStore, JSONCommuteStore
from commutelog_core.provider import LocationProvider, ReplayLocationProvider
from commutelog_core.dispatch import (
    CommuteEventType,
    CommuteNotification,
    CommuteObserver,
    NotificationDispatcher,
)
from commutelog_core.engine import CommuteEngine, EngineState

__all__ = [
    # Model
    "ACTIVE_KEY",
    "ENDPOINT_IDS",
    "HOME",
    "WORK",
    "Commute",
    "Endpoint",
    "Location",
    "Schedule",
    # Geometry
    "CircularRegion",
    "CrossingKind",
    "RegionDetector",
    "RegionTracker",
    # Errors
    "CommuteLogError",
    "EndpointNotConfiguredError",
    "StoreError",
    # Collaborators
    "LocationFilter",
    "CommuteStore",
    "InMemoryCommuteStore",
    "JSONCommuteStore",
    "LocationProvider",
    "ReplayLocationProvider",
    "CommuteEventType",
    "CommuteNotification",
    "CommuteObserver",
    "NotificationDispatcher",
    # Engine
    "CommuteEngine",
    "EngineState",
]

__version__ = "1.0.0"
