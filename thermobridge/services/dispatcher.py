from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..domain.interfaces import UpdateCallback
from ..domain.keys import KeyGranularity, sensor_key
from ..domain.models import Reading, SensorState
from ..domain.registry import Registry
from ..sources.reader import END_OF_STREAM

logger = logging.getLogger(__name__)


class DispatchOutcome(str, Enum):
    UPDATED = "updated"
    UNKNOWN = "unknown"


@dataclass
class DispatchStats:
    updated: int = 0
    unknown: int = 0
    callback_errors: int = 0
    last_unknown_key: Optional[str] = None


def apply_reading(state: SensorState, reading: Reading) -> None:
    state.temperature_c = state.limits.temperature(reading.temperature_f)
    if state.has_humidity and reading.humidity is not None:
        state.humidity = state.limits.humidity(reading.humidity)
    if reading.battery:
        state.battery = reading.battery
    state.last_seen = reading.time
    state.update_count += 1


class Dispatcher:
    """Routes post-discovery readings to their registered sensor state."""

    def __init__(
        self,
        registry: Registry,
        on_update: Optional[UpdateCallback] = None,
        granularity: KeyGranularity = KeyGranularity.DEVICE_CHANNEL,
    ) -> None:
        self._registry = registry
        self._on_update = on_update
        self._granularity = granularity
        self.stats = DispatchStats()

    async def dispatch(self, reading: Reading) -> DispatchOutcome:
        key = sensor_key(reading, self._granularity)
        state = self._registry.get(key)
        if state is None:
            self.stats.unknown += 1
            self.stats.last_unknown_key = key
            logger.warning("Message from unknown sensor %s", key)
            return DispatchOutcome.UNKNOWN

        logger.info("Got temp from sensor %s: %.2f°F", key, reading.temperature_f)
        apply_reading(state, reading)
        self.stats.updated += 1

        if self._on_update is not None:
            # Awaited inline: a slow sink holds up the next reading
            try:
                await self._on_update(state, reading)
            except Exception as e:
                self.stats.callback_errors += 1
                logger.exception("Update callback failed for %s: %s", key, e)

        return DispatchOutcome.UPDATED

    async def run(self, channel: asyncio.Queue) -> None:
        logger.info("Dispatching readings for %d sensor(s)", len(self._registry))
        while True:
            item = await channel.get()
            if item is END_OF_STREAM:
                logger.warning("Receiver stream ended; dispatcher stopping")
                return
            await self.dispatch(item)
