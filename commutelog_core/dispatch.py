"""
Notification Dispatch Module
============================

Bounded Context: Delivery of commute notifications to observers.

Design:
- Observers subclass CommuteObserver and override what they need
- Every notification carries a snapshot of the Commute taken at emission
  time, so later mutation by the engine never leaks into delivered events
- Asynchronous mode: one dedicated thread drains a FIFO queue, preserving
  the order in which transitions occurred without blocking the engine
- Synchronous mode: delivery inline (default for embedded use and tests)
- Observer exceptions are logged and never reach the engine

Threading:
- notify() may be called from the engine thread only (single event stream)
- Observers run on the dispatcher thread in asynchronous mode
"""

import itertools
import logging
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from commutelog_core.model import Commute

logger = logging.getLogger(__name__)


class CommuteEventType(str, Enum):
    """Commute notification kinds."""
    STARTED = "started"
    UPDATED = "updated"
    ENDED = "ended"


@dataclass(frozen=True)
class CommuteNotification:
    """
    Immutable notification envelope.

    Attributes:
        event_type: started / updated / ended
        commute: Snapshot of the commute at emission time
        sequence: Monotonic emission counter (per dispatcher)
        emitted_at: Wall-clock emission time
    """

    event_type: CommuteEventType
    commute: Commute
    sequence: int
    emitted_at: datetime = field(default_factory=datetime.now)


class CommuteObserver:
    """
    Base observer (no-op). Override the hooks you care about.

    Example:
        >>> class Printer(CommuteObserver):
        ...     def commute_ended(self, commute):
        ...         print(f"Ended {commute.identifier}")
    """

    def commute_started(self, commute: Commute) -> None:
        pass

    def commute_updated(self, commute: Commute) -> None:
        pass

    def commute_ended(self, commute: Commute) -> None:
        pass

    def on_notification(self, notification: CommuteNotification) -> None:
        """Route a notification to the matching hook."""
        hook = {
            CommuteEventType.STARTED: self.commute_started,
            CommuteEventType.UPDATED: self.commute_updated,
            CommuteEventType.ENDED: self.commute_ended,
        }[notification.event_type]
        hook(notification.commute)


class NotificationDispatcher:
    """
    Ordered notification channel.

    Usage:
        dispatcher = NotificationDispatcher(asynchronous=True)
        dispatcher.add_observer(my_observer)
        dispatcher.start()
        ...
        dispatcher.notify(CommuteEventType.STARTED, commute)
        ...
        dispatcher.stop()
    """

    def __init__(self, asynchronous: bool = False, name: str = "CommuteNotificationThread"):
        self.asynchronous = asynchronous
        self.name = name

        self._observers: List[CommuteObserver] = []
        self._observers_lock = threading.Lock()
        self._sequence = itertools.count(1)

        # Unbounded: volumes are ~1 event/second at most
        self._queue: "queue.Queue[Optional[CommuteNotification]]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._delivered = 0

    # ===== Observer registration =====

    def add_observer(self, observer: CommuteObserver) -> None:
        with self._observers_lock:
            if observer not in self._observers:
                self._observers.append(observer)

    def remove_observer(self, observer: CommuteObserver) -> None:
        with self._observers_lock:
            if observer in self._observers:
                self._observers.remove(observer)

    @property
    def observers(self) -> List[CommuteObserver]:
        with self._observers_lock:
            return list(self._observers)

    # ===== Lifecycle =====

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the delivery thread (asynchronous mode only)."""
        if not self.asynchronous or self.is_running:
            return
        self._thread = threading.Thread(target=self._dispatch_loop, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"{self.name} started")

    def stop(self, timeout: float = 5.0) -> None:
        """Drain pending notifications, then stop the delivery thread."""
        if not self.is_running:
            return
        self._queue.put(None)
        self._thread.join(timeout=timeout)
        self._thread = None
        logger.info(f"{self.name} stopped (delivered={self._delivered})")

    def flush(self, timeout: float = 5.0) -> bool:
        """
        Block until every queued notification has been delivered.

        Returns:
            True if the queue drained within timeout
        """
        if not self.is_running:
            return self._queue.unfinished_tasks == 0

        done = threading.Event()

        def _waiter():
            self._queue.join()
            done.set()

        threading.Thread(target=_waiter, daemon=True).start()
        return done.wait(timeout=timeout)

    # ===== Emission =====

    def notify(self, event_type: CommuteEventType, commute: Commute) -> CommuteNotification:
        """
        Emit a notification for commute.

        Returns:
            The notification envelope (with the snapshot that was delivered)
        """
        notification = CommuteNotification(
            event_type=event_type,
            commute=commute.snapshot(),
            sequence=next(self._sequence),
        )

        if self.asynchronous and self.is_running:
            self._queue.put(notification)
        else:
            if self.asynchronous:
                logger.warning(f"{self.name} not running, delivering {event_type.value} inline")
            self._deliver(notification)
        return notification

    def _deliver(self, notification: CommuteNotification) -> None:
        for observer in self.observers:
            try:
                observer.on_notification(notification)
            except Exception as e:
                logger.error(
                    f"Observer {type(observer).__name__} failed on "
                    f"{notification.event_type.value} #{notification.sequence}: {e}",
                    exc_info=True,
                )
        self._delivered += 1

    def _dispatch_loop(self) -> None:
        while True:
            notification = self._queue.get()
            try:
                if notification is None:
                    return
                self._deliver(notification)
            finally:
                self._queue.task_done()
