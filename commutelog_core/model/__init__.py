"""
Model Layer
===========

Bounded Context: Commute domain values and records.

Responsibilities:
- Location samples (immutable)
- Schedules and endpoints (immutable, read-mostly)
- Commute records (mutable aggregate, owned by the engine)
"""

from commutelog_core.model.location import Location
from commutelog_core.model.schedule import Schedule, local_time
from commutelog_core.model.endpoint import Endpoint, HOME, WORK, ENDPOINT_IDS, counterpart_id
from commutelog_core.model.commute import Commute, ACTIVE_KEY, commute_identifier

__all__ = [
    "Location",
    "Schedule",
    "local_time",
    "Endpoint",
    "HOME",
    "WORK",
    "ENDPOINT_IDS",
    "counterpart_id",
    "Commute",
    "ACTIVE_KEY",
    "commute_identifier",
]
