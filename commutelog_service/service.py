"""
Commute Service - Commute tracking orchestrator.

This module provides the CommuteService class which wires the commute
engine to its collaborators: the JSON store, the location provider, the
notification dispatcher, the MQTT event publisher and the control plane.

Architecture:
- Store is the source of truth (endpoints seeded from config when missing)
- Engine processes one event at a time (provider callbacks, commands)
- Notifications are delivered on a dedicated dispatcher thread
- MQTT is optional: without mqtt_config the service runs local-only

Threading Model:
- Caller thread (replay / provider callbacks into the engine)
- Notification Thread (NotificationDispatcher, runs observers/publisher)
- Control Plane Thread (paho-mqtt internal, command handlers)
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from commutelog_core import (
    CommuteEngine,
    CommuteObserver,
    CommuteStore,
    JSONCommuteStore,
    Location,
    LocationFilter,
    NotificationDispatcher,
    ReplayLocationProvider,
)
from commutelog_core.model import Commute
from commutelog_events.schemas import CommuteSummary, LocationPayload
from commutelog_service.config import ServiceConfig

logger = logging.getLogger(__name__)


class CommuteService(CommuteObserver):
    """
    Main commute tracking service.

    Lifecycle:
        config = ServiceConfig.from_yaml("config/commutelog.yaml")
        service = CommuteService(config, control_plane=plane, event_publisher=publisher)

        service.setup()     # store, engine, handlers
        service.start()     # connect MQTT, start notification thread
        service.replay(track)
        service.stop()

    The service observes the engine itself to keep the retained control
    status ("idle" / "commuting") current.
    """

    def __init__(
        self,
        config: ServiceConfig,
        control_plane=None,  # MQTTControlPlane
        event_publisher=None,  # CommuteEventPublisher
        store: Optional[CommuteStore] = None,
        clock: Callable[[], datetime] = datetime.now,
        asynchronous: bool = True,
    ):
        """
        Args:
            config: Service configuration
            control_plane: MQTT control plane for commands (optional)
            event_publisher: Publisher for commute events (optional)
            store: Commute store (default: JSONCommuteStore at config.store_path)
            clock: Source of "now" for manual commands
            asynchronous: Deliver notifications on a dedicated thread
        """
        self.config = config
        self.control_plane = control_plane
        self.event_publisher = event_publisher
        self.store = store if store is not None else JSONCommuteStore(config.store_path)
        self.clock = clock

        self.dispatcher = NotificationDispatcher(asynchronous=asynchronous)
        self.location_filter = LocationFilter(
            accuracy_filter=config.accuracy_filter,
            sink=self.store.save_location,
        )
        self.provider = ReplayLocationProvider(significant_distance=config.significant_distance)
        self.engine: Optional[CommuteEngine] = None

        self._running = False
        self._stopped_event = threading.Event()

        logger.info(f"CommuteService initialized for service_id={config.service_id}")

    def setup(self) -> CommuteEngine:
        """
        Build the engine.

        Must be called before start().

        Raises:
            EndpointNotConfiguredError: If an endpoint is in neither store nor config
            StoreError: If the store cannot be read or seeded
        """
        for identifier, endpoint in self.config.seed_endpoints(self.store).items():
            logger.info(f"Seeded endpoint '{identifier}' from config: {endpoint}")

        self.engine = CommuteEngine(
            self.store,
            location_filter=self.location_filter,
            dispatcher=self.dispatcher,
            provider=self.provider,
            clock=self.clock,
        )
        self.provider.bind(
            on_location=self.engine.process_location,
            on_enter=self.engine.entered_region,
            on_exit=self.engine.exited_region,
        )

        self.engine.add_observer(self)
        if self.event_publisher is not None:
            self.engine.add_observer(self.event_publisher)

        if self.control_plane is not None:
            self._setup_control_handlers()

        logger.info(f"Engine ready (state={self.engine.state.value})")
        return self.engine

    def _setup_control_handlers(self) -> None:
        registry = self.control_plane.command_registry

        registry.register(
            "start_commute",
            self._handle_start_commute,
            "Start a commute (origin: home|work, force, save_previous)"
        )
        registry.register(
            "end_commute",
            self._handle_end_commute,
            "End the active commute (save: keep it in history)"
        )
        registry.register(
            "delete_commute",
            self._handle_delete_commute,
            "Delete a commute by identifier ('active' for the open one)"
        )
        registry.register(
            "list_commutes",
            self._handle_list_commutes,
            "List stored commutes, most recent first (limit)"
        )
        registry.register(
            "commute_locations",
            self._handle_commute_locations,
            "Logged samples for a commute (identifier, 'active' for the open one)"
        )
        registry.register(
            "status",
            self._handle_status,
            "Report engine state and publisher stats"
        )

        logger.info("Control handlers registered")

    # ===== Lifecycle =====

    def start(self) -> None:
        """
        Start the service (non-blocking).

        Lifecycle:
        1. Connect control plane
        2. Connect event publisher
        3. Start notification thread
        """
        if self.engine is None:
            raise RuntimeError("CommuteService.setup() must be called before start()")
        if self._running:
            logger.warning("Service already running")
            return

        logger.info("Starting commute service")

        if self.control_plane is not None and not self.control_plane.connect(timeout=5.0):
            raise RuntimeError("Failed to connect to MQTT broker (control plane)")

        if self.event_publisher is not None:
            self.event_publisher.connect()

        self.dispatcher.start()
        self._running = True
        self._stopped_event.clear()

        self._publish_state(self.engine.active_commute)
        logger.info("✅ Commute service started")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until stop() is called."""
        return self._stopped_event.wait(timeout=timeout)

    def stop(self) -> None:
        """
        Stop the service gracefully.

        Lifecycle:
        1. Drain and stop notification thread
        2. Disconnect event publisher
        3. Disconnect control plane
        """
        if not self._running:
            logger.warning("Service not running")
            return

        logger.info("Stopping commute service")

        self.dispatcher.stop()

        if self.event_publisher is not None:
            self.event_publisher.disconnect()

        if self.control_plane is not None:
            self.control_plane.publish_status("stopped")
            self.control_plane.disconnect()

        self._running = False
        self._stopped_event.set()
        logger.info("✅ Commute service stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    # ===== Location input =====

    def replay(self, track: Iterable[Location]) -> int:
        """
        Feed a recorded track through the provider into the engine.

        Returns:
            Number of samples fed
        """
        if self.engine is None:
            raise RuntimeError("CommuteService.setup() must be called before replay()")
        count = self.provider.replay(track)
        self.dispatcher.flush()
        return count

    def replay_file(self, path: Path) -> int:
        return self.replay(ReplayLocationProvider.load_track(path))

    # ===== Command handlers (Control Plane thread) =====

    def _handle_start_commute(self, command_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        commute = self.engine.start_commute(
            origin=command_data.get("origin"),
            force=_flag(command_data, "force", False),
            save_previous=_flag(command_data, "save_previous", False),
        )
        return self._summary(commute)

    def _handle_end_commute(self, command_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        commute = self.engine.end_commute(save=_flag(command_data, "save", True))
        return self._summary(commute)

    def _handle_delete_commute(self, command_data: Dict[str, Any]) -> Dict[str, Any]:
        identifier = command_data.get("identifier")
        if not identifier:
            raise ValueError("delete_commute requires 'identifier'")
        removed = self.engine.delete_identifier(identifier)
        if removed:
            # Queued started/ended statuses go out first
            self.dispatcher.flush()
            self._publish_state(self.engine.active_commute)
        return {"identifier": identifier, "removed": removed}

    def _handle_list_commutes(self, command_data: Dict[str, Any]) -> List[Dict[str, Any]]:
        limit = command_data.get("limit")
        commutes = self.engine.fetch_commutes()
        if limit is not None:
            commutes = commutes[:int(limit)]
        return [self._summary(commute) for commute in commutes]

    def _handle_commute_locations(self, command_data: Dict[str, Any]) -> List[Dict[str, Any]]:
        identifier = command_data.get("identifier")
        if not identifier:
            raise ValueError("commute_locations requires 'identifier'")
        commute = self.engine.find_commute(identifier)
        if commute is None:
            raise ValueError(f"Unknown commute {identifier!r}")
        return [
            LocationPayload.from_location(location).to_dict()
            for location in self.engine.location_history(commute)
        ]

    def _handle_status(self, command_data: Dict[str, Any]) -> Dict[str, Any]:
        return self.status()

    def status(self) -> Dict[str, Any]:
        active = self.engine.active_commute
        status = {
            "service_id": self.config.service_id,
            "state": self.engine.state.value,
            "active_commute": active.identifier if active is not None else None,
            "filter": {
                "accuracy_filter": self.location_filter.accuracy_filter,
                "admitted": self.location_filter.admitted_count,
                "rejected": self.location_filter.rejected_count,
            },
        }
        if self.event_publisher is not None:
            status["publisher"] = self.event_publisher.get_stats()
        return status

    @staticmethod
    def _summary(commute: Optional[Commute]) -> Optional[Dict[str, Any]]:
        return CommuteSummary.from_commute(commute).to_dict() if commute is not None else None

    # ===== CommuteObserver (Notification thread) =====

    def commute_started(self, commute: Commute) -> None:
        logger.info(f"🚗 Commute started: {commute.identifier}")
        self._publish_state(commute)

    def commute_ended(self, commute: Commute) -> None:
        logger.info(
            f"🏁 Commute ended: {commute.identifier} "
            f"({commute.duration()}, {len(commute.locations)} locations)"
        )
        self._publish_state(None)

    def _publish_state(self, active: Optional[Commute] = None) -> None:
        """Publish the retained idle/commuting status (active: the open commute, if any)."""
        if self.control_plane is None:
            return
        self.control_plane.publish_status(
            "commuting" if active is not None else "idle",
            data={"active_commute": active.identifier if active is not None else None},
        )


def _flag(command_data: Dict[str, Any], key: str, default: bool) -> bool:
    """Boolean command field; only JSON true/false are accepted."""
    value = command_data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false, got {value!r}")
    return value
