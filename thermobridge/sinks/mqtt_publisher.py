from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import paho.mqtt.client as mqtt

from ..domain.models import Reading, SensorState

logger = logging.getLogger(__name__)


def state_payload(state: SensorState, reading: Reading) -> dict[str, Any]:
    return {
        "key": state.key,
        "name": state.info.name,
        "model": state.info.model,
        "temperature_c": state.temperature_c,
        "humidity": state.humidity,
        "battery": state.battery,
        "time": reading.time,
    }


class MqttSink:
    """Publishes each sensor update as retained JSON on `<prefix>/<key>/state`."""

    name = "mqtt"

    def __init__(
        self,
        host: str = "localhost",
        port: int = 1883,
        topic_prefix: str = "thermobridge",
        client_id: str = "thermobridge",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0,
        retain: bool = True,
        client: Optional[Any] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.topic_prefix = topic_prefix.rstrip("/")
        self._qos = qos
        self._retain = retain
        self._connected = False
        self._loop_started = False

        if client is None:
            client = mqtt.Client(
                callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
                client_id=client_id,
                protocol=mqtt.MQTTv311,
            )
            if username:
                client.username_pw_set(username, password)
            client.on_connect = self._on_connect
            client.on_disconnect = self._on_disconnect
        self._client = client

    @property
    def is_connected(self) -> bool:
        return self._connected

    def topic_for(self, key: str) -> str:
        return f"{self.topic_prefix}/{key}/state"

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._connect)
        except OSError as e:
            # Not fatal: the first publish will try again
            logger.warning("MQTT connect to %s:%s failed: %s", self.host, self.port, e)

    async def publish(self, state: SensorState, reading: Reading) -> None:
        topic = self.topic_for(state.key)
        payload = json.dumps(state_payload(state, reading))

        info = self._client.publish(topic, payload, qos=self._qos, retain=self._retain)
        if info.rc == mqtt.MQTT_ERR_NO_CONN:
            logger.warning("MQTT not connected, reconnecting to %s:%s", self.host, self.port)
            if not await self._reconnect():
                return
            info = self._client.publish(topic, payload, qos=self._qos, retain=self._retain)

        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.error("MQTT publish to %s failed: %s", topic, mqtt.error_string(info.rc))
            return
        logger.debug("MQTT published %s", topic)

    async def close(self) -> None:
        if self._loop_started:
            self._client.loop_stop()
            self._loop_started = False
        self._client.disconnect()
        self._connected = False

    def _connect(self) -> None:
        logger.info("MQTT connecting to %s:%s", self.host, self.port)
        self._client.connect(self.host, self.port, keepalive=60)
        self._ensure_loop()

    def _ensure_loop(self) -> None:
        if not self._loop_started:
            self._client.loop_start()
            self._loop_started = True

    async def _reconnect(self) -> bool:
        loop = asyncio.get_running_loop()
        try:
            if self._loop_started:
                await loop.run_in_executor(None, self._client.reconnect)
            else:
                await loop.run_in_executor(None, self._connect)
        except OSError as e:
            logger.error("MQTT reconnect to %s:%s failed: %s", self.host, self.port, e)
            return False
        self._ensure_loop()
        return True

    def _on_connect(self, client, userdata, flags, rc, properties=None):
        if rc == 0:
            self._connected = True
            logger.info("MQTT connected to %s:%s", self.host, self.port)
        else:
            self._connected = False
            logger.error("MQTT connection refused: %s", rc)

    def _on_disconnect(self, client, userdata, flags, rc, properties=None):
        self._connected = False
        logger.warning("MQTT disconnected (%s)", rc)
