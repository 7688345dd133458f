"""
Structured JSON Logger
======================

Bounded Context: Observability Infrastructure

JSON-line logger for the MQTT-facing components.

Design:
- Wraps Python's logging module (thread-safe)
- One JSON object per line: timestamp, level, component, event, message,
  optional metadata and exception
- Typed events (LogEvent enum)

Output:
    {"timestamp": "2026-10-19T09:30:00.123456+00:00", "level": "INFO",
     "component": "publisher", "event": "commute.ended",
     "message": "Published commute event",
     "metadata": {"commute_id": "home -> work 2026-10-19T09:00:00"}}
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .events import LogEvent

LOGGER_PREFIX = "commutelog_events"


class StructuredLogger:
    """
    JSON structured logger.

    Attributes:
        component: Component name (e.g., "publisher", "control")
        logger: Underlying Python logger instance

    Example:
        >>> logger = StructuredLogger("publisher")
        >>> logger.info(
        ...     event=LogEvent.MQTT_CONNECTED,
        ...     message="Connected to broker",
        ...     metadata={'broker': 'localhost:1883'}
        ... )
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None
    ):
        """
        Args:
            component: Component identifier
            level: Logging level (default: INFO)
            logger_name: Custom logger name (default: commutelog_events.<component>)
        """
        self.component = component
        self.logger_name = logger_name or f"{LOGGER_PREFIX}.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            # Handled here; keep JSON lines out of the host's plain-text handlers
            self.logger.propagate = False

    def build_entry(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> Dict[str, Any]:
        """Structured log entry (before JSON encoding)."""
        entry: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level,
            'component': self.component,
            'event': event.value,
            'message': message,
        }
        if metadata:
            entry['metadata'] = metadata
        if exc_info is not None:
            entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info),
            }
        return entry

    def _log(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        log_level = getattr(logging, level)
        if not self.logger.isEnabledFor(log_level):
            return

        entry = self.build_entry(level, event, message, metadata, exc_info)
        self.logger.log(log_level, json.dumps(entry, default=str))

    def debug(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log('DEBUG', event, message, metadata)

    def info(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """
        Log INFO level message.

        Example:
            >>> logger.info(
            ...     event=LogEvent.COMMUTE_STARTED,
            ...     message="Commute started",
            ...     metadata={'commute_id': 'home -> work 2026-10-19T09:00:00'}
            ... )
        """
        self._log('INFO', event, message, metadata)

    def warning(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log('WARNING', event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """
        Log ERROR level message.

        Example:
            >>> try:
            ...     publisher.publish(data)
            ... except ValueError as e:
            ...     logger.error(
            ...         event=LogEvent.SERIALIZATION_ERROR,
            ...         message="Failed to serialize commute event",
            ...         exc_info=e,
            ...     )
        """
        self._log('ERROR', event, message, metadata, exc_info)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)


class JSONFormatter(logging.Formatter):
    """Pass-through formatter: StructuredLogger already emits JSON."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(component: str, level: int = logging.INFO) -> StructuredLogger:
    """
    Factory function to create a configured StructuredLogger.

    Example:
        >>> logger = create_logger("publisher", level=logging.DEBUG)
    """
    return StructuredLogger(component=component, level=level)
