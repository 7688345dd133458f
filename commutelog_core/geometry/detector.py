"""
Region Detector Module
======================

Stateless crossing detection - applies region geometry to location samples.

Design:
- Pure functions (no state)
- External state injected and returned (functional style)
- Thread-safe (no mutations of the input state)
"""

from enum import Enum
from typing import Dict, Iterable, List, Tuple

from commutelog_core.geometry.region import CircularRegion


class CrossingKind(str, Enum):
    """Region crossing kind."""
    ENTER = "enter"
    EXIT = "exit"


class RegionDetector:
    """
    Stateless detector for region entry/exit.

    State is a dict {region_id: inside} where inside is True/False. A region
    with no previous state never reports a crossing: the first sample only
    establishes which side the device is on.
    """

    @staticmethod
    def detect_inside(
        regions: Iterable[CircularRegion],
        point: Tuple[float, float],
    ) -> Dict[str, bool]:
        """Inside/outside flag for each region."""
        return {region.identifier: region.contains(point) for region in regions}

    @staticmethod
    def detect_crossings(
        regions: Iterable[CircularRegion],
        point: Tuple[float, float],
        region_state: Dict[str, bool],
    ) -> Tuple[List[Tuple[str, CrossingKind]], Dict[str, bool]]:
        """
        Detect region crossings for a new sample.

        Args:
            regions: Monitored regions
            point: (lat, lon) of the new sample
            region_state: External state {region_id: was_inside}

        Returns:
            Tuple of:
            - crossings: [(region_id, CrossingKind)] in region order
            - updated_state: New region state dict
        """
        crossings: List[Tuple[str, CrossingKind]] = []

        # Copy state for immutability (don't mutate input)
        new_state = region_state.copy()

        for region_id, inside in RegionDetector.detect_inside(regions, point).items():
            if region_id in region_state and region_state[region_id] != inside:
                crossings.append((region_id, CrossingKind.ENTER if inside else CrossingKind.EXIT))
            new_state[region_id] = inside

        return crossings, new_state
