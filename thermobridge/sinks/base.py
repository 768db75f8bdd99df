from __future__ import annotations

import logging
from typing import Sequence

from ..core.config import Settings
from ..domain.interfaces import Sink
from ..domain.models import Reading, SensorState

logger = logging.getLogger(__name__)


class SinkFanout:
    """Calls every sink in order; one failing sink never reaches the dispatcher."""

    def __init__(self, sinks: Sequence[Sink]) -> None:
        self._sinks = list(sinks)
        self.errors = 0

    @property
    def names(self) -> list[str]:
        return [s.name for s in self._sinks]

    async def start(self) -> None:
        for sink in self._sinks:
            try:
                await sink.start()
            except Exception as e:
                logger.exception("Sink %s failed to start: %s", sink.name, e)

    async def publish(self, state: SensorState, reading: Reading) -> None:
        for sink in self._sinks:
            try:
                await sink.publish(state, reading)
            except Exception as e:
                self.errors += 1
                logger.exception("Sink %s failed for %s: %s", sink.name, state.key, e)

    async def close(self) -> None:
        for sink in self._sinks:
            try:
                await sink.close()
            except Exception:
                logger.warning("Sink %s did not close cleanly", sink.name, exc_info=True)


def build_sinks(cfg: Settings) -> SinkFanout:
    sinks: list[Sink] = []

    if cfg.mqtt_enabled:
        from .mqtt_publisher import MqttSink

        sinks.append(
            MqttSink(
                host=cfg.mqtt_host,
                port=cfg.mqtt_port,
                topic_prefix=cfg.mqtt_topic_prefix,
                client_id=cfg.mqtt_client_id,
                username=cfg.mqtt_username,
                password=cfg.mqtt_password,
                qos=cfg.mqtt_qos,
                retain=cfg.mqtt_retain,
            )
        )

    if cfg.webhook_enabled:
        from .webhook import WebhookSink

        sinks.append(WebhookSink(url=cfg.webhook_url, timeout=cfg.webhook_timeout_seconds))

    logger.info("Sinks configured: %s", [s.name for s in sinks] or "none")
    return SinkFanout(sinks)
