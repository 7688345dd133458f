"""
MQTT Publishers
==============

Bounded Context: Message Production

Publishers for sending commute event messages to the MQTT broker.

Public API
----------
    BasePublisher: Abstract publisher (for custom publishers)
    CommuteEventPublisher: Commute event publisher (also a CommuteObserver)
"""

from .base import BasePublisher
from .commute_event import CommuteEventPublisher

__all__ = [
    'BasePublisher',
    'CommuteEventPublisher',
]
