"""
Commute Event Publisher
=======================

Bounded Context: Commute Event Message Production

Publisher for commute lifecycle messages.

Design:
- Inherits from BasePublisher (connection management)
- Is a CommuteObserver: registered on the engine's dispatcher, it receives
  notifications in emission order on the dispatcher thread
- Formats CommuteEventMessage to JSON and publishes to
  <topic_prefix>/<event_type>

Message Flow:
    CommuteEngine → NotificationDispatcher → CommuteEventPublisher → MQTT Broker

Example:
    >>> from commutelog_events.publishers import CommuteEventPublisher
    >>> from commutelog_events.logging import create_logger
    >>>
    >>> publisher = CommuteEventPublisher(
    ...     broker_host="localhost",
    ...     topic="commutelog/events",
    ...     service_id="commutelog",
    ...     logger=create_logger("publisher"),
    ... )
    >>> publisher.connect()
    >>> engine.add_observer(publisher)
"""

from typing import Any, Dict, Optional

from commutelog_core.dispatch import CommuteEventType, CommuteNotification, CommuteObserver

from ..logging import LogEvent, StructuredLogger
from ..schemas import SCHEMA_VERSION, CommuteEventMessage
from .base import BasePublisher

_LOG_EVENTS = {
    CommuteEventType.STARTED: LogEvent.COMMUTE_STARTED,
    CommuteEventType.UPDATED: LogEvent.COMMUTE_UPDATED,
    CommuteEventType.ENDED: LogEvent.COMMUTE_ENDED,
}


class CommuteEventPublisher(BasePublisher, CommuteObserver):
    """
    Publisher for commute event messages.

    Attributes:
        Same as BasePublisher, plus:
        service_id: Source identifier stamped on every message
        schema_version: Current schema version for messages
        retain_ended: Publish "ended" messages retained (last finished commute
            available to late subscribers)
    """

    def __init__(
        self,
        broker_host: str,
        topic: str,
        service_id: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "commutelog_event_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1,
        retain_ended: bool = True
    ):
        """
        Args:
            broker_host: MQTT broker hostname
            topic: Topic prefix; messages go to <topic>/<event_type>
            service_id: Source identifier stamped on every message
            logger: Structured logger instance
            broker_port: MQTT broker port (default: 1883)
            client_id: MQTT client ID
            username: MQTT auth username (optional)
            password: MQTT auth password (optional)
            qos: Quality of Service (default: 1)
            retain_ended: Retain "ended" messages (default: True)
        """
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )
        self.service_id = service_id
        self.schema_version = SCHEMA_VERSION
        self.retain_ended = retain_ended

    def topic_for(self, event_type: CommuteEventType) -> str:
        return f"{self.topic}/{event_type.value}"

    def format_message(self, notification: CommuteNotification) -> Dict[str, Any]:
        """Build the message dict for a notification."""
        message = CommuteEventMessage.from_notification(
            notification,
            service_id=self.service_id,
            schema_version=self.schema_version,
        )
        return message.to_dict()

    def publish_commute_event(self, notification: CommuteNotification) -> bool:
        """
        Format and publish one notification.

        Returns:
            True if published successfully
        """
        try:
            message_data = self.format_message(notification)
        except ValueError as e:
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Failed to format commute event",
                exc_info=e,
                metadata={'sequence': notification.sequence}
            )
            return False

        self.logger.debug(
            event=LogEvent.COMMUTE_EVENT_SERIALIZED,
            message="Serialized commute event",
            metadata={'sequence': notification.sequence, 'commute_id': notification.commute.identifier}
        )

        retain = self.retain_ended and notification.event_type == CommuteEventType.ENDED
        published = self.publish(message_data, retain=retain, topic=self.topic_for(notification.event_type))
        if published:
            self.logger.info(
                event=_LOG_EVENTS[notification.event_type],
                message=f"Published commute {notification.event_type.value}",
                metadata={
                    'commute_id': notification.commute.identifier,
                    'sequence': notification.sequence,
                    'locations': len(notification.commute.locations)
                }
            )
        return published

    # CommuteObserver
    def on_notification(self, notification: CommuteNotification) -> None:
        self.publish_commute_event(notification)
