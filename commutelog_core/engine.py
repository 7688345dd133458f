"""
Commute Engine Module
=====================

Bounded Context: Commute detection state machine.

States:
    IDLE    no active commute
    ACTIVE  exactly one open commute, held in the store under "active"

Transitions:
    exited_region   IDLE -> ACTIVE   (endpoint exit window, ignored while ACTIVE)
    entered_region  ACTIVE -> IDLE   (endpoint entry window)
    process_location
                    ACTIVE -> ACTIVE (sample appended)
                    IDLE -> ACTIVE   (sample inside any window, opportunistic start)
    start_commute   IDLE -> ACTIVE   (manual; force restarts an active commute)
    end_commute     ACTIVE -> IDLE
    delete          ACTIVE -> IDLE   (when deleting the active commute, no "ended")

Design:
- Single logical event stream: every public operation runs to completion
  under one re-entrant lock
- The active commute is cached in memory, written through to the store and
  re-read only at construction or after end/delete
- Event-driven transitions are stamped with the event's own timestamp;
  manual commands use the engine clock. Every timestamp is normalized to
  naive local time on the way in, so stored commutes never mix aware and
  naive datetimes
- Inadmissible input and state mismatches are logged no-ops; StoreError
  propagates and the state is not advanced past a failed save
- Notifications go through a NotificationDispatcher (ordered, snapshot per
  event); the location provider is commanded, never implemented, here
"""

import dataclasses
import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from commutelog_core.dispatch import CommuteEventType, CommuteObserver, NotificationDispatcher
from commutelog_core.errors import EndpointNotConfiguredError, StoreError
from commutelog_core.filter import LocationFilter
from commutelog_core.model import (
    ACTIVE_KEY,
    HOME,
    WORK,
    Commute,
    Endpoint,
    Location,
    Schedule,
    local_time,
)
from commutelog_core.provider import LocationProvider
from commutelog_core.store import CommuteStore

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class CommuteEngine:
    """
    Commute detection state machine.

    Usage:
        store = JSONCommuteStore("commutes.json")
        engine = CommuteEngine(store, location_filter=LocationFilter(75.0))
        engine.add_observer(my_observer)

        engine.exited_region("home", at=datetime(2026, 10, 19, 9, 0))
        engine.process_location(location)
        engine.entered_region("work", at=datetime(2026, 10, 19, 9, 30))

        history = engine.fetch_commutes()
    """

    def __init__(
        self,
        store: CommuteStore,
        home: Optional[Endpoint] = None,
        work: Optional[Endpoint] = None,
        location_filter: Optional[LocationFilter] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        provider: Optional[LocationProvider] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            store: Commute store (source of truth for commutes and endpoints)
            home: Home endpoint (default: loaded from store)
            work: Work endpoint (default: loaded from store)
            location_filter: Accuracy filter (default: LocationFilter())
            dispatcher: Notification channel (default: synchronous)
            provider: Optional location provider to command
            clock: Source of "now" for manual commands

        Raises:
            EndpointNotConfiguredError: If home or work is missing
            StoreError: If the store cannot be read
        """
        self.store = store
        self.location_filter = location_filter or LocationFilter()
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.provider = provider
        self.clock = clock

        self.home = home or store.load_endpoint(HOME)
        if self.home is None:
            raise EndpointNotConfiguredError(HOME)
        self.work = work or store.load_endpoint(WORK)
        if self.work is None:
            raise EndpointNotConfiguredError(WORK)

        self._lock = threading.RLock()
        self._cached_active: Optional[Commute] = None
        self._cache_valid = False

        if self.provider is not None:
            self.provider.monitor(self.home)
            self.provider.monitor(self.work)

        active = self.active_commute
        if active is not None:
            logger.info(f"Resuming active commute {active.identifier!r} ({len(active.locations)} locations)")
            if self.provider is not None:
                self.provider.start_updating()
        else:
            logger.debug("No active commute in store, starting idle")

    # ─────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────

    @property
    def active_commute(self) -> Optional[Commute]:
        """The open commute, loaded from the store on first access."""
        with self._lock:
            if not self._cache_valid:
                self._cached_active = self.store.active_commute()
                self._cache_valid = True
            return self._cached_active

    @property
    def state(self) -> EngineState:
        return EngineState.ACTIVE if self.active_commute is not None else EngineState.IDLE

    def endpoint(self, identifier: str) -> Optional[Endpoint]:
        """Endpoint by identifier, or None for unknown identifiers."""
        if identifier == self.home.identifier:
            return self.home
        if identifier == self.work.identifier:
            return self.work
        return None

    def counterpart(self, endpoint: Endpoint) -> Endpoint:
        return self.work if endpoint.identifier == self.home.identifier else self.home

    def _invalidate(self) -> None:
        self._cached_active = None
        self._cache_valid = False

    def _stamp(self, at: Optional[datetime] = None) -> datetime:
        """Naive local time for at (default: the engine clock)."""
        return local_time(at if at is not None else self.clock())

    # ─────────────────────────────────────────────────────────────────────
    # Observers
    # ─────────────────────────────────────────────────────────────────────

    def add_observer(self, observer: CommuteObserver) -> None:
        self.dispatcher.add_observer(observer)

    def remove_observer(self, observer: CommuteObserver) -> None:
        self.dispatcher.remove_observer(observer)

    # ─────────────────────────────────────────────────────────────────────
    # Geofence signals
    # ─────────────────────────────────────────────────────────────────────

    def exited_region(self, identifier: str, at: Optional[datetime] = None) -> Optional[Commute]:
        """
        Handle a geofence exit.

        Starts a commute toward the counterpart endpoint when the exit happens
        inside the endpoint's exit window and no commute is active.

        Returns:
            The started commute, or None if the signal was ignored
        """
        with self._lock:
            at = self._stamp(at)
            endpoint = self.endpoint(identifier)
            if endpoint is None:
                logger.debug(f"Ignoring exit from unknown region {identifier!r}")
                return None

            if not endpoint.exit_window.contains(at):
                logger.debug(f"Ignoring exit from '{identifier}' outside its exit window ({at})")
                return None

            if self.active_commute is not None:
                logger.debug(f"Ignoring exit from '{identifier}': already tracking a commute")
                return None

            return self._begin(endpoint, at)

    def entered_region(self, identifier: str, at: Optional[datetime] = None) -> Optional[Commute]:
        """
        Handle a geofence entry.

        Ends the active commute when the entry happens inside the endpoint's
        entry window.

        Returns:
            The finalized commute, or None if the signal was ignored
        """
        with self._lock:
            at = self._stamp(at)
            endpoint = self.endpoint(identifier)
            if endpoint is None:
                logger.debug(f"Ignoring entry into unknown region {identifier!r}")
                return None

            if not endpoint.entry_window.contains(at):
                logger.debug(f"Ignoring entry into '{identifier}' outside its entry window ({at})")
                return None

            return self.end_commute(save=True, at=at)

    # ─────────────────────────────────────────────────────────────────────
    # Location stream
    # ─────────────────────────────────────────────────────────────────────

    def process_location(self, location: Location) -> Optional[Commute]:
        """
        Handle a raw location sample.

        Returns:
            The commute the sample was appended to, or None if it was dropped

        Raises:
            StoreError: If the updated commute could not be saved. The sample
                stays appended in memory and will be written with the next
                successful save.
        """
        with self._lock:
            location = dataclasses.replace(location, timestamp=local_time(location.timestamp))
            if not self.location_filter.process(location):
                return None

            commute = self.active_commute
            if commute is None:
                origin = self.window_origin(location.timestamp)
                if origin is None:
                    logger.warning(
                        f"Got location {location} without an active commute "
                        f"outside of commute hours, discarding"
                    )
                    return None
                logger.debug(f"Location inside commute hours while idle, starting from '{origin}'")
                commute = self._begin(self.endpoint(origin), location.timestamp)

            logger.debug(f"Adding location {location} to {commute.identifier!r}")
            commute.append(location)
            self.store.save(commute)
            self.dispatcher.notify(CommuteEventType.UPDATED, commute)
            return commute

    # ─────────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────────

    def start_commute(
        self,
        origin: Optional[str] = None,
        force: bool = False,
        save_previous: bool = False,
    ) -> Optional[Commute]:
        """
        Start a commute now.

        Args:
            origin: "home" or "work"; inferred from the time of day when None
            force: Restart when a commute is already active (end, then start)
            save_previous: Keep the commute ended by a forced restart

        Returns:
            The started commute, or None when a commute is already active and
            force is False
        """
        with self._lock:
            now = self._stamp()

            if self.active_commute is not None:
                if not force:
                    logger.debug("Ignoring start request: already tracking a commute")
                    return None
                logger.info("Forced start while active: ending current commute first")
                self.end_commute(save=save_previous, at=now)

            if origin is None:
                origin = self.infer_origin(now)
            endpoint = self.endpoint(origin)
            if endpoint is None:
                raise ValueError(f"Unknown origin {origin!r}. Must be '{HOME}' or '{WORK}'")

            return self._begin(endpoint, now)

    def end_commute(self, save: bool = True, at: Optional[datetime] = None) -> Optional[Commute]:
        """
        End the active commute.

        Args:
            save: Persist the finalized commute under its permanent identifier.
                When False the commute is discarded from the store and only
                handed to observers.
            at: End time (default: now)

        Returns:
            The finalized commute, or None when idle

        Raises:
            StoreError: The commute stays active with end unset
        """
        with self._lock:
            commute = self.active_commute
            if commute is None:
                logger.debug("Ignoring end request: no active commute")
                return None

            commute.end = self._stamp(at)
            try:
                self.store.finalize(commute, keep=save)
            except StoreError:
                commute.end = None
                raise

            self._invalidate()
            if self.provider is not None:
                self.provider.stop_updating()

            logger.info(
                f"Ended commute {commute.identifier!r} "
                f"({len(commute.locations)} locations, saved={save})"
            )
            self.dispatcher.notify(CommuteEventType.ENDED, commute)
            return commute

    def archive(self, commute: Commute) -> None:
        """Persist an ended commute (e.g. one discarded by a forced restart)."""
        if commute.is_active:
            raise ValueError("Only ended commutes can be archived")
        with self._lock:
            self.store.save(commute)

    def delete(self, commute: Commute) -> bool:
        """
        Delete a commute (active or historical).

        Returns:
            True if a record was removed
        """
        return self.delete_identifier(commute.identifier)

    def delete_identifier(self, identifier: str) -> bool:
        """
        Delete a commute by identifier.

        Deleting the active commute (by "active" or by its derived identifier)
        returns the engine to IDLE without an "ended" notification.
        """
        with self._lock:
            active = self.active_commute
            deleting_active = active is not None and identifier in (ACTIVE_KEY, active.identifier)
            key = ACTIVE_KEY if deleting_active else identifier

            removed = self.store.delete_identifier(key)
            if not removed:
                logger.debug(f"Nothing to delete for {identifier!r}")
                return False

            if deleting_active:
                self._invalidate()
                if self.provider is not None:
                    self.provider.stop_updating()
                logger.info(f"Deleted active commute {active.identifier!r}")
            else:
                logger.info(f"Deleted commute {identifier!r}")
            return True

    def configure_endpoint(self, endpoint: Endpoint) -> None:
        """Replace an endpoint, persist it and re-register its region."""
        with self._lock:
            self.store.save_endpoint(endpoint)
            if endpoint.identifier == HOME:
                self.home = endpoint
            else:
                self.work = endpoint
            if self.provider is not None:
                self.provider.monitor(endpoint)

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    def find_commute(self, identifier: str) -> Optional[Commute]:
        """Commute by identifier; "active" or the open commute's identifier resolve to it."""
        with self._lock:
            active = self.active_commute
            if active is not None and identifier in (ACTIVE_KEY, active.identifier):
                return active
            return self.store.commute(identifier)

    def location_history(self, commute: Commute) -> List[Location]:
        """Every admitted sample logged while commute was running."""
        return self.store.locations_for(commute, now=self._stamp())

    def fetch_commutes(self, schedule: Optional[Schedule] = None, ascending: bool = False) -> List[Commute]:
        """
        Stored commutes sorted by start time (most recent first by default).

        Args:
            schedule: Keep only commutes whose start falls inside this window
            ascending: Oldest first
        """
        commutes = list(self.store.load_commutes().values())
        if schedule is not None:
            commutes = [c for c in commutes if schedule.contains(c.start)]
        return sorted(commutes, key=lambda c: c.start, reverse=not ascending)

    def window_origin(self, date: datetime) -> Optional[str]:
        """
        Origin implied by the windows open at date.

        Exit windows win over entry windows; home is checked before work.
        """
        if self.home.exit_window.contains(date):
            return self.home.identifier
        if self.work.exit_window.contains(date):
            return self.work.identifier
        if self.work.entry_window.contains(date):
            return self.home.identifier
        if self.home.entry_window.contains(date):
            return self.work.identifier
        return None

    def infer_origin(self, now: datetime) -> str:
        """
        Best-effort origin for a manual start.

        Uses the open windows when there are any, otherwise the endpoint whose
        exit window is closest in time of day (ties go to home).
        """
        origin = self.window_origin(now)
        if origin is not None:
            return origin

        home_distance = self.home.exit_window.distance_hours(now)
        work_distance = self.work.exit_window.distance_hours(now)
        logger.debug(
            f"No window open at {now}: home exit {home_distance:.2f}h away, "
            f"work exit {work_distance:.2f}h away"
        )
        return self.home.identifier if home_distance <= work_distance else self.work.identifier

    # ─────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────

    def _begin(self, origin: Endpoint, start: datetime) -> Commute:
        destination = self.counterpart(origin)
        commute = Commute(start=start, start_point=origin.identifier, end_point=destination.identifier)

        # Nothing changes (and nothing is announced) if this save fails
        self.store.save(commute)

        self._cached_active = commute
        self._cache_valid = True
        if self.provider is not None:
            self.provider.start_updating()

        logger.info(f"Started commute {commute.identifier!r}")
        self.dispatcher.notify(CommuteEventType.STARTED, commute)
        return commute
