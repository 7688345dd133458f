"""
MQTTControlPlane - MQTT Control Plane for CommuteService

Bounded Context: MQTT connection management + command reception
Responsibilities:
  - MQTT connection lifecycle (connect, disconnect)
  - Command message reception (subscribe to command topic)
  - Status and command-reply publishing (publish to status topic)
  - Command delegation to CommandRegistry

Command payload:
  {"command": "start_commute", "origin": "home", "force": true, "request_id": "42"}

QoS Policy:
  - Commands: QoS 1 (at-least-once delivery)
  - Status: QoS 1 + retained (last status persisted)
  - Replies: QoS 1, not retained

Threading:
  - MQTT client runs own background thread (loop_start/loop_stop)
  - Callbacks (_on_connect, _on_message) run in MQTT thread
  - Command handlers run in MQTT thread (keep them fast!)
"""

import json
import logging
from datetime import datetime
from threading import Event
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .registry import CommandRegistry, CommandNotAvailableError

logger = logging.getLogger(__name__)


class MQTTControlPlane:
    """
    MQTT Control Plane for receiving commands and publishing status.

    Example:
        control_plane = MQTTControlPlane(
            broker_host="localhost",
            broker_port=1883,
            command_topic="commutelog/control/commands",
            status_topic="commutelog/control/status",
            client_id="commutelog_01"
        )

        control_plane.command_registry.register('end_commute', handler.end_commute, "End commute")

        if control_plane.connect(timeout=5.0):
            print("Connected to MQTT broker")

        control_plane.disconnect()
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        command_topic: str,
        status_topic: str,
        client_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        reply_topic: Optional[str] = None,
    ):
        """
        Args:
            broker_host: MQTT broker hostname
            broker_port: MQTT broker port (typically 1883)
            command_topic: Topic for receiving commands (subscribe)
            status_topic: Topic for publishing status (publish, retained)
            client_id: MQTT client identifier
            username: Optional MQTT authentication username
            password: Optional MQTT authentication password
            reply_topic: Topic for command replies (default: <status_topic>/replies)
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.command_topic = command_topic
        self.status_topic = status_topic
        self.reply_topic = reply_topic or f"{status_topic}/replies"
        self.client_id = client_id

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

        if username and password:
            self.client.username_pw_set(username, password)

        self._connected = Event()
        self._running = False

        self.command_registry = CommandRegistry()

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    def connect(self, timeout: float = 5.0) -> bool:
        """
        Connect to MQTT broker with timeout.

        Returns:
            True if connected successfully, False otherwise
        """
        try:
            logger.info(f"🔌 Connecting to MQTT broker: {self.broker_host}:{self.broker_port}")
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
            self.client.loop_start()
            self._running = True

            if self._connected.wait(timeout=timeout):
                logger.info("✅ MQTT Control Plane connected")
                return True
            logger.error(f"❌ Connection timeout after {timeout}s")
            return False

        except Exception as e:
            logger.error(f"❌ Error connecting to MQTT: {e}")
            return False

    def disconnect(self) -> None:
        """Disconnect from MQTT broker. Safe to call multiple times."""
        if self._running:
            logger.info("🔌 Disconnecting from MQTT broker")
            self.publish_status("disconnected")
            self.client.loop_stop()
            self.client.disconnect()
            self._running = False
            self._connected.clear()
            logger.info("✅ MQTT Control Plane disconnected")

    def publish_status(self, status: str, data: Optional[Dict[str, Any]] = None) -> None:
        """
        Publish status update to status topic.

        Args:
            status: Status string (e.g., "connected", "idle", "commuting")
            data: Extra fields merged into the message

        QoS: 1, retained (last status persisted for new subscribers)
        """
        message = {
            "status": status,
            "timestamp": datetime.now().isoformat(),
            "client_id": self.client_id,
        }
        if data:
            message.update(data)
        self._publish(self.status_topic, message, retain=True)
        logger.debug(f"📤 Status published: {status}")

    def publish_reply(self, command: str, ok: bool, result: Any = None,
                      error: Optional[str] = None, request_id: Optional[str] = None) -> None:
        """Publish the outcome of a command to the reply topic."""
        message = {
            "command": command,
            "ok": ok,
            "timestamp": datetime.now().isoformat(),
            "client_id": self.client_id,
        }
        if request_id is not None:
            message["request_id"] = request_id
        if result is not None:
            message["result"] = result
        if error is not None:
            message["error"] = error
        self._publish(self.reply_topic, message, retain=False)

    def _publish(self, topic: str, message: Dict[str, Any], retain: bool) -> None:
        try:
            self.client.publish(topic, json.dumps(message, default=str), qos=1, retain=retain)
        except Exception as e:
            logger.error(f"❌ Error publishing to {topic}: {e}")

    def handle_payload(self, payload: bytes) -> Optional[Dict[str, Any]]:
        """
        Decode and execute one command payload.

        Returns:
            The reply that was published, or None when the payload was not a
            usable command
        """
        try:
            command_data = json.loads(payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"❌ Error decoding JSON: {payload!r} ({e})")
            return None

        if not isinstance(command_data, dict):
            logger.warning(f"⚠️ Command payload must be a JSON object, got {type(command_data).__name__}")
            return None

        command = str(command_data.get('command', '')).lower()
        if not command:
            logger.warning("⚠️ Empty command received")
            return None

        request_id = command_data.get('request_id')
        logger.info(f"🎯 Executing command: {command}")

        try:
            result = self.command_registry.execute(command, command_data)
        except CommandNotAvailableError as e:
            logger.warning(f"⚠️ {e}")
            available = ', '.join(sorted(self.command_registry.available_commands))
            logger.info(f"💡 Available commands: {available}")
            reply = {"ok": False, "error": str(e)}
        except Exception as e:
            logger.error(f"❌ Command '{command}' failed: {e}", exc_info=True)
            reply = {"ok": False, "error": str(e)}
        else:
            logger.debug(f"✅ Command '{command}' executed successfully")
            reply = {"ok": True, "result": result}

        self.publish_reply(command, request_id=request_id, **reply)
        return reply

    # ===== MQTT Callbacks (run in MQTT thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if not reason_code.is_failure:
            logger.info(f"✅ Connected to broker ({reason_code})")

            client.subscribe(self.command_topic, qos=1)
            logger.info(f"📥 Subscribed to: {self.command_topic} (QoS 1)")

            self.publish_status("connected")
            self._connected.set()
        else:
            logger.error(f"❌ Connection failed ({reason_code})")
            self._connected.clear()

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.warning(f"⚠️ Unexpected disconnection ({reason_code})")
        else:
            logger.info("✅ Disconnected from broker")
        self._connected.clear()

    def _on_message(self, client, userdata, msg):
        logger.debug(f"📦 Command received on {msg.topic}")
        self.handle_payload(msg.payload)
