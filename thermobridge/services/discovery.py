from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..domain.keys import KeyGranularity, sensor_key
from ..domain.models import Reading, SensorLimits, SensorState
from ..domain.registry import Registry
from ..sources.reader import END_OF_STREAM

logger = logging.getLogger(__name__)


class DiscoveryWindow:
    """Builds the registry from whatever sensors report within `duration` seconds.

    The first reading seen for a key initialises its state; later readings for
    the same key inside the window are discarded.
    """

    def __init__(
        self,
        duration: float = 60.0,
        granularity: KeyGranularity = KeyGranularity.DEVICE_CHANNEL,
        limits: Optional[SensorLimits] = None,
        accessory_name: str = "Temperature Sensor",
        manufacturer: str = "Ambient Weather",
    ) -> None:
        self.duration = duration
        self.granularity = granularity
        self.limits = limits or SensorLimits()
        self._accessory_name = accessory_name
        self._manufacturer = manufacturer

    async def discover(self, channel: asyncio.Queue) -> Registry:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.duration
        registry = Registry()

        logger.info("Detecting sensors for %.1fs", self.duration)
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                item = await asyncio.wait_for(channel.get(), timeout=remaining)
            except asyncio.TimeoutError:
                break

            if item is END_OF_STREAM:
                # Leave the marker for the dispatcher so it stops too
                logger.warning("Receiver stream ended during discovery")
                channel.put_nowait(item)
                break

            self.observe(registry, item)

        registry.freeze()
        logger.info("Done detecting sensors: %d found", len(registry))
        return registry

    def observe(self, registry: Registry, reading: Reading) -> bool:
        key = sensor_key(reading, self.granularity)
        if key in registry:
            logger.debug("Ignoring repeat discovery reading for %s", key)
            return False

        state = SensorState.from_reading(
            key,
            reading,
            self.limits,
            name=self._accessory_name,
            manufacturer=self._manufacturer,
        )
        registry.register(state)
        logger.info(
            "Detected sensor %s (device=%d channel=%d): %.2f°F",
            key, reading.device_id, reading.channel, reading.temperature_f,
        )
        return True


async def discover(
    channel: asyncio.Queue,
    duration: float = 60.0,
    granularity: KeyGranularity = KeyGranularity.DEVICE_CHANNEL,
    limits: Optional[SensorLimits] = None,
) -> Registry:
    return await DiscoveryWindow(duration, granularity, limits).discover(channel)
