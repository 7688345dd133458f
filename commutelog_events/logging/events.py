"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for structured logging.

Design:
- Enum-based (prevents typos, enables autocomplete)
- Hierarchical naming (namespace.category.action)

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, commute, control, error
    category: connected, publish, started
    action: success, failed

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.commute_id
    | filter event = "commute.ended"
    | stats count() by bin(1d)
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: MQTT broker interactions
    - commute.*: Commute lifecycle notifications
    - control.*: Manual commands
    - error.*: Error conditions
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    # ========== Commute Events ==========
    COMMUTE_STARTED = "commute.started"
    """A commute became active."""

    COMMUTE_UPDATED = "commute.updated"
    """A location sample was appended to the active commute."""

    COMMUTE_ENDED = "commute.ended"
    """The active commute was finalized."""

    COMMUTE_EVENT_SERIALIZED = "commute.event.serialized"
    """Commute event message serialized to JSON."""

    # ========== Control Events ==========
    CONTROL_COMMAND_RECEIVED = "control.command.received"
    """Manual command received on the control topic."""

    CONTROL_COMMAND_REJECTED = "control.command.rejected"
    """Command unknown or malformed."""

    # ========== Error Events ==========
    SERIALIZATION_ERROR = "error.serialization"
    """Failed to serialize message to JSON."""

    DESERIALIZATION_ERROR = "error.deserialization"
    """Failed to deserialize message from JSON."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""

    STORE_ERROR = "error.store"
    """Commute store could not load or save."""


MQTT_EVENTS = {
    LogEvent.MQTT_CONNECTED,
    LogEvent.MQTT_DISCONNECTED,
    LogEvent.MQTT_PUBLISH_SUCCESS,
    LogEvent.MQTT_PUBLISH_FAILED,
}

COMMUTE_EVENTS = {
    LogEvent.COMMUTE_STARTED,
    LogEvent.COMMUTE_UPDATED,
    LogEvent.COMMUTE_ENDED,
    LogEvent.COMMUTE_EVENT_SERIALIZED,
}

ERROR_EVENTS = {
    LogEvent.SERIALIZATION_ERROR,
    LogEvent.DESERIALIZATION_ERROR,
    LogEvent.MQTT_CONNECTION_ERROR,
    LogEvent.MQTT_PUBLISH_ERROR,
    LogEvent.STORE_ERROR,
}
