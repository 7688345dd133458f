"""
Geometry Layer
==============

Bounded Context: Pure geofence geometry and spatial queries.

Responsibilities:
- Circular region representation (immutable)
- Point-in-region tests (haversine)
- Enter/exit detection against injected state
- NO commute state, NO persistence

Design Philosophy:
- Pure functions where possible
- Immutable data structures
- Fail-fast validation
"""

from commutelog_core.geometry.region import CircularRegion, haversine_m
from commutelog_core.geometry.detector import RegionDetector, CrossingKind

__all__ = [
    "CircularRegion",
    "haversine_m",
    "RegionDetector",
    "CrossingKind",
]
