"""
Analytics Layer
===============

Bounded Context: Stateful tracking of geofence sides.

Responsibilities:
- Remember last known inside/outside flag per region
- Feed RegionDetector with injected state
"""

from commutelog_core.analytics.tracker import RegionTracker

__all__ = [
    "RegionTracker",
]
