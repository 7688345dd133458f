"""
Geofence Region Module
======================

Pure geometric representation of a circular geofence - NO state, NO side effects.

Design:
- Immutable region (frozen dataclass pattern)
- Haversine great-circle distance (numpy, broadcasts over arrays)
- Immutable, safe to share between threads
"""

import numpy as np
from dataclasses import dataclass
from typing import Tuple

EARTH_RADIUS_M = 6_371_008.8


def haversine_m(
    lat1: np.ndarray | float,
    lon1: np.ndarray | float,
    lat2: np.ndarray | float,
    lon2: np.ndarray | float,
) -> np.ndarray:
    """
    Great-circle distance in meters.

    Accepts scalars or broadcastable arrays of degrees.
    """
    phi1, phi2 = np.radians(lat1), np.radians(lat2)
    dphi = phi2 - phi1
    dlambda = np.radians(np.asarray(lon2) - np.asarray(lon1))

    a = np.sin(dphi / 2.0) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlambda / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


@dataclass(frozen=True)
class CircularRegion:
    """
    Immutable circular geofence.

    Attributes:
        identifier: Region identifier (matches the endpoint identifier)
        center: (latitude, longitude) in degrees
        radius: Radius in meters
    """

    identifier: str
    center: Tuple[float, float]
    radius: float

    def __post_init__(self):
        """Validate region."""
        lat, lon = self.center
        if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
            raise ValueError(f"center out of range: {self.center}")
        if self.radius <= 0:
            raise ValueError(f"radius must be > 0, got {self.radius}")

    def distance_to(self, point: Tuple[float, float]) -> float:
        """Distance in meters from the region center to point."""
        return float(haversine_m(self.center[0], self.center[1], point[0], point[1]))

    def contains(self, point: Tuple[float, float]) -> bool:
        """Check if (lat, lon) lies inside the region (boundary included)."""
        return self.distance_to(point) <= self.radius
