"""paho-mqtt implementation of the bus `Transport`."""

import logging
import random
from typing import Optional
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

from src.sitewatch.bus.transport import Transport

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {"mqtt": 1883, "tcp": 1883, "mqtts": 8883, "ssl": 8883, "ws": 80, "wss": 443}


def random_client_id(prefix: str = "dashboard") -> str:
    return f"{prefix}_{random.getrandbits(32):08x}"


class MqttTransport(Transport):
    """Single MQTT connection running paho's network loop on a background thread.

    Accepts ``mqtt://``, ``mqtts://``, ``ws://`` and ``wss://`` broker URLs.
    paho handles reconnects with a fixed ``reconnect_period`` delay.
    """

    def __init__(
        self,
        url: str,
        client_id: Optional[str] = None,
        reconnect_period: float = 5.0,
        keepalive: int = 60,
    ) -> None:
        parsed = urlparse(url)
        scheme = (parsed.scheme or "mqtt").lower()
        if scheme not in DEFAULT_PORTS:
            raise ValueError(f"Unsupported broker URL scheme: {scheme}")

        self.url = url
        self.host = parsed.hostname or "localhost"
        self.port = parsed.port or DEFAULT_PORTS[scheme]
        self.keepalive = keepalive
        self.client_id = client_id or random_client_id()
        self._loop_started = False

        websockets = scheme in ("ws", "wss")
        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            clean_session=True,
            transport="websockets" if websockets else "tcp",
        )
        if websockets:
            self.client.ws_set_options(path=parsed.path or "/mqtt")
        if scheme in ("mqtts", "ssl", "wss"):
            self.client.tls_set()
        if parsed.username:
            self.client.username_pw_set(parsed.username, parsed.password)
        delay = max(1, int(reconnect_period))
        self.client.reconnect_delay_set(min_delay=delay, max_delay=delay)

        self.client.on_connect = self._on_connect
        self.client.on_connect_fail = self._on_connect_fail
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

    # paho callbacks (network loop thread)

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            self.listener.handle_error(ConnectionError(f"broker refused connection: {reason_code}"))
        else:
            self.listener.handle_connected()

    def _on_connect_fail(self, client, userdata):
        self.listener.handle_error(ConnectionError(f"could not reach broker at {self.host}:{self.port}"))

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        logger.info("MQTT connection closed (%s)", reason_code)
        self.listener.handle_closed()

    def _on_message(self, client, userdata, msg):
        payload = msg.payload.decode("utf-8", errors="replace")
        self.listener.handle_frame(msg.topic, payload)

    # Transport API

    def connect(self) -> None:
        if self._loop_started:
            self.client.reconnect()
            return
        logger.info("Connecting to MQTT broker at %s", self.url)
        self.client.connect_async(self.host, self.port, keepalive=self.keepalive)
        self.client.loop_start()
        self._loop_started = True

    def subscribe(self, topic: str) -> None:
        result, _ = self.client.subscribe(topic)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise ConnectionError(f"subscribe to {topic} failed: {mqtt.error_string(result)}")
        logger.info("Subscribed to %s", topic)

    def unsubscribe(self, topic: str) -> None:
        result, _ = self.client.unsubscribe(topic)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise ConnectionError(f"unsubscribe from {topic} failed: {mqtt.error_string(result)}")
        logger.info("Unsubscribed from %s", topic)

    def close(self) -> None:
        logger.info("Disconnecting from MQTT broker")
        self.client.disconnect()
        if self._loop_started:
            self.client.loop_stop()
            self._loop_started = False
