"""
Shared pytest fixtures: endpoints, stores, a controllable clock and a
recording observer. Scenario day is Monday 2026-10-19.
"""

from datetime import datetime, timedelta

import pytest

from commutelog_core import (
    CommuteEngine,
    CommuteObserver,
    Endpoint,
    InMemoryCommuteStore,
    Location,
    Schedule,
)

MONDAY = datetime(2026, 10, 19)
SATURDAY = datetime(2026, 10, 24)

HOME_COORD = (45.5085, -122.6538)
WORK_COORD = (45.5167, -122.6792)


def at(hour: int, minute: int = 0, day: datetime = MONDAY) -> datetime:
    return day.replace(hour=hour, minute=minute)


def sample(coord, when: datetime, accuracy: float = 10.0) -> Location:
    return Location(latitude=coord[0], longitude=coord[1], accuracy=accuracy, timestamp=when)


class FixedClock:
    """Callable clock returning a settable instant."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, hour: int, minute: int = 0, day: datetime = MONDAY) -> None:
        self.now = at(hour, minute, day)

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingObserver(CommuteObserver):
    """Keeps every notification in delivery order."""

    def __init__(self):
        self.notifications = []

    def on_notification(self, notification) -> None:
        self.notifications.append(notification)

    @property
    def kinds(self):
        return [n.event_type.value for n in self.notifications]

    @property
    def commutes(self):
        return [n.commute for n in self.notifications]


@pytest.fixture
def home() -> Endpoint:
    return Endpoint(
        identifier="home",
        latitude=HOME_COORD[0],
        longitude=HOME_COORD[1],
        radius=100.0,
        entry_window=Schedule(16, 21),
        exit_window=Schedule(6, 10),
    )


@pytest.fixture
def work() -> Endpoint:
    return Endpoint(
        identifier="work",
        latitude=WORK_COORD[0],
        longitude=WORK_COORD[1],
        radius=100.0,
        entry_window=Schedule(7, 12),
        exit_window=Schedule(15, 19),
    )


@pytest.fixture
def store(home, work) -> InMemoryCommuteStore:
    store = InMemoryCommuteStore()
    store.save_endpoint(home)
    store.save_endpoint(work)
    return store


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(at(9, 0))


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def engine(store, clock, observer) -> CommuteEngine:
    engine = CommuteEngine(store, clock=clock)
    engine.add_observer(observer)
    return engine
