#!/usr/bin/env python3
"""
Commute Service - Entry Point
=============================

This script starts the CommuteLog service, which:
- Loads home/work endpoints (store first, config seeds otherwise)
- Feeds location samples and geofence crossings into the commute engine
- Publishes commute started/updated/ended events to MQTT
- Responds to manual commands via the MQTT control plane

Usage:
    python run_commute_service.py --config config/commutelog/service_config.yaml
    python run_commute_service.py --config config/commutelog/service_config.yaml --replay tracks/monday.json
    python run_commute_service.py --config config/commutelog/service_config.yaml --list

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Create control plane and event publisher (when mqtt_config is set)
    4. Create CommuteService and engine
    5. Start service (non-blocking)
    6. Replay a recorded track (optional)
    7. Wait for stop signal (Ctrl+C or SIGTERM)
    8. Graceful shutdown

Signals:
    - SIGTERM: Graceful shutdown
    - SIGINT (Ctrl+C): Graceful shutdown
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from commutelog_control import MQTTControlPlane
from commutelog_events import CommuteEventPublisher, create_logger
from commutelog_service import CommuteService, ServiceConfig


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

def setup_logging(log_file: Optional[Path] = None, verbose: bool = False) -> logging.Logger:
    """
    Setup logging for the commute service.

    Args:
        log_file: Optional path to log file
        verbose: DEBUG level (shows ignored signals and filtered samples)
    """
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    return logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Main Service
# ─────────────────────────────────────────────────────────────────────────────

class CommuteApp:
    """
    Application wrapper for CommuteService.

    Handles configuration loading, MQTT component creation, signal handling
    and graceful shutdown.
    """

    def __init__(self, config_path: Path, log_file: Optional[Path] = None, verbose: bool = False):
        self.config_path = config_path
        self.log_file = log_file
        self.logger = setup_logging(log_file, verbose=verbose)

        self.config: Optional[ServiceConfig] = None
        self.control_plane: Optional[MQTTControlPlane] = None
        self.event_publisher: Optional[CommuteEventPublisher] = None
        self.service: Optional[CommuteService] = None

        self._shutdown_requested = False

    def setup(self):
        """
        Setup all components.

        Steps:
        1. Load configuration from YAML
        2. Create control plane and publisher (MQTT enabled only)
        3. Create CommuteService and engine
        """
        self.logger.info("=" * 80)
        self.logger.info("🚀 CommuteLog Service - Starting")
        self.logger.info("=" * 80)

        self.logger.info(f"📄 Loading configuration: {self.config_path}")
        self.config = ServiceConfig.from_yaml(self.config_path)
        self.logger.info(f"✅ Configuration loaded (service_id={self.config.service_id})")

        mqtt_config = self.config.mqtt_config
        if mqtt_config is not None:
            topics = mqtt_config.topics(self.config.service_id)

            self.logger.info("🔌 Creating MQTT control plane")
            self.control_plane = MQTTControlPlane(
                broker_host=mqtt_config.broker,
                broker_port=mqtt_config.port,
                command_topic=topics["commands"],
                status_topic=topics["status"],
                client_id=f"commutelog_{self.config.service_id}",
                username=mqtt_config.username,
                password=mqtt_config.password,
            )

            self.logger.info("📤 Creating commute event publisher")
            self.event_publisher = CommuteEventPublisher(
                broker_host=mqtt_config.broker,
                broker_port=mqtt_config.port,
                topic=topics["events"],
                service_id=self.config.service_id,
                logger=create_logger(component="event_publisher"),
                client_id=f"publisher_commutes_{self.config.service_id}",
                username=mqtt_config.username,
                password=mqtt_config.password,
                qos=mqtt_config.qos,
            )
            self.logger.info(f"  - Event topic: {topics['events']}/<started|updated|ended>")
            self.logger.info(f"  - Command topic: {topics['commands']}")
        else:
            self.logger.info("ℹ️  No mqtt_config: running local-only")

        self.logger.info(f"🗄️  Store: {self.config.store_path}")
        self.service = CommuteService(
            config=self.config,
            control_plane=self.control_plane,
            event_publisher=self.event_publisher,
        )
        engine = self.service.setup()
        self.logger.info(f"✅ Engine ready: home={engine.home} work={engine.work}")
        self.logger.info("=" * 80)

    def list_commutes(self, limit: Optional[int] = None):
        """Print stored commutes (most recent first)."""
        commutes = self.service.engine.fetch_commutes()
        for commute in commutes[:limit]:
            state = "active" if commute.is_active else str(commute.duration())
            print(f"{commute.identifier:45s}  {state:>16s}  {len(commute.locations):5d} locations")
        print(f"{len(commutes)} commutes")

    def run(self, replay: Optional[Path] = None):
        """
        Run the commute service.

        With a replay track and no MQTT the track is processed and the
        app exits; otherwise blocks until shutdown is requested.
        """
        if not self.service:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        try:
            self.service.start()
            self.logger.info("✅ Service started successfully")

            if replay is not None:
                self.logger.info(f"▶️  Replaying track: {replay}")
                count = self.service.replay_file(replay)
                self.logger.info(f"✅ Replayed {count} samples (state={self.service.engine.state.value})")

            if self.control_plane is None:
                self.shutdown()
                return

            self.logger.info("Press Ctrl+C to stop")
            self.logger.info("=" * 80)
            self.service.wait()

        except KeyboardInterrupt:
            self.logger.info("\n⚠️  KeyboardInterrupt received")
            self.shutdown()

        except Exception as e:
            self.logger.error(f"❌ Service error: {e}", exc_info=True)
            self.shutdown()
            sys.exit(1)

    def shutdown(self):
        """Graceful shutdown (idempotent)."""
        if self._shutdown_requested:
            return

        self._shutdown_requested = True

        self.logger.info("=" * 80)
        self.logger.info("🛑 Shutting down commute service")
        self.logger.info("=" * 80)

        if self.service and self.service.is_running:
            try:
                self.service.stop()
                self.logger.info("✅ Service stopped")
            except Exception as e:
                self.logger.error(f"❌ Error stopping service: {e}")

        self.logger.info("✅ Shutdown complete")

    def _signal_handler(self, signum, frame):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"\n⚠️  Received signal {signal_name} ({signum})")
        self.shutdown()
        sys.exit(0)


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args():
    parser = argparse.ArgumentParser(
        description="CommuteLog - commute detection service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with MQTT (commands + events)
  python run_commute_service.py --config config/commutelog/service_config.yaml

  # Replay a recorded GPS track
  python run_commute_service.py --config config/commutelog/service_config.yaml --replay tracks/monday.json

  # Show stored commutes
  python run_commute_service.py --config config/commutelog/service_config.yaml --list --no-log-file
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        required=True,
        help='Path to service configuration YAML file'
    )

    parser.add_argument(
        '--replay',
        type=Path,
        default=None,
        help='JSON track to replay (list of {latitude, longitude, accuracy, timestamp})'
    )

    parser.add_argument(
        '--list',
        action='store_true',
        help='Print stored commutes and exit'
    )

    parser.add_argument(
        '--limit',
        type=int,
        default=None,
        help='Maximum number of commutes printed by --list'
    )

    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/commutelog.log'),
        help='Path to log file (default: logs/commutelog.log)'
    )

    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Debug logging'
    )

    return parser.parse_args()


def main():
    args = parse_args()

    log_file = None if args.no_log_file else args.log_file

    if not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    if args.replay is not None and not args.replay.exists():
        print(f"❌ Error: Track file not found: {args.replay}", file=sys.stderr)
        sys.exit(1)

    app = CommuteApp(config_path=args.config, log_file=log_file, verbose=args.verbose)

    try:
        app.setup()
        if args.list:
            app.list_commutes(limit=args.limit)
            return
        app.run(replay=args.replay)
    except Exception as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
