from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from ..core.config import Settings
from ..core.timeutil import now_utc
from ..domain.errors import EmptyRegistryError
from ..domain.keys import KeyGranularity
from ..domain.models import SensorLimits
from ..domain.registry import Registry
from ..sinks.base import SinkFanout, build_sinks
from ..sources.reader import LineStream, ReadingSource
from .discovery import DiscoveryWindow
from .dispatcher import Dispatcher


logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    DISPATCHING = "dispatching"
    STOPPED = "stopped"


@dataclass
class LiveState:
    phase: Phase = Phase.IDLE
    started_utc: Optional[datetime] = None
    discovery_finished_utc: Optional[datetime] = None
    primary_key: Optional[str] = None


class BridgeService:
    """Receiver -> discovery -> dispatch -> sinks.

    `start()` returns once discovery is over and the dispatch loop is running
    in the background. There is no way back to discovery short of a restart.
    """

    def __init__(
        self,
        stream: LineStream,
        discovery: DiscoveryWindow,
        sinks: Optional[SinkFanout] = None,
        channel_size: int = 1,
    ) -> None:
        self._channel: asyncio.Queue = asyncio.Queue(maxsize=channel_size)
        self._discovery = discovery
        self._sinks = sinks or SinkFanout([])
        self._task: Optional[asyncio.Task] = None

        self.source = ReadingSource(stream, self._channel)
        self.registry: Optional[Registry] = None
        self.dispatcher: Optional[Dispatcher] = None
        self.live = LiveState()

    @property
    def sinks(self) -> SinkFanout:
        return self._sinks

    async def start(self) -> Registry:
        if self.live.phase is not Phase.IDLE:
            raise RuntimeError(f"Bridge already started (phase={self.live.phase.value})")

        self.live.started_utc = now_utc()
        self.live.phase = Phase.DISCOVERING
        await self.source.start()

        registry = await self._discovery.discover(self._channel)
        self.live.discovery_finished_utc = now_utc()
        if not len(registry):
            self.live.phase = Phase.STOPPED
            await self.source.stop()
            raise EmptyRegistryError("No sensors detected")

        self.registry = registry
        self._announce(registry)

        await self._sinks.start()
        self.dispatcher = Dispatcher(
            registry,
            on_update=self._sinks.publish,
            granularity=self._discovery.granularity,
        )
        self.live.phase = Phase.DISPATCHING
        self._task = asyncio.create_task(self._run_dispatch(), name="dispatch_loop")
        return registry

    async def wait(self) -> None:
        if self._task:
            await self._task

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.source.stop()
        await self._sinks.close()
        self.live.phase = Phase.STOPPED
        logger.info("Bridge stopped")

    async def _run_dispatch(self) -> None:
        assert self.dispatcher is not None
        try:
            await self.dispatcher.run(self._channel)
        finally:
            self.live.phase = Phase.STOPPED
            logger.info("Dispatch loop stopped")

    def _announce(self, registry: Registry) -> None:
        primary = registry.primary()
        if primary is not None:
            self.live.primary_key = primary.key
            logger.info("Primary %s", primary.info.serial_number)
        for state in registry.secondary():
            logger.info("Secondary %s", state.info.serial_number)


def build_bridge(stream: LineStream, cfg: Settings) -> BridgeService:
    limits = SensorLimits(
        min_temp_c=cfg.min_temp_c,
        max_temp_c=cfg.max_temp_c,
        temp_step=cfg.temp_step,
        min_humidity=cfg.min_humidity,
        max_humidity=cfg.max_humidity,
        humidity_step=cfg.humidity_step,
    )
    discovery = DiscoveryWindow(
        duration=cfg.discovery_seconds,
        granularity=KeyGranularity(cfg.key_granularity),
        limits=limits,
        accessory_name=cfg.accessory_name,
        manufacturer=cfg.manufacturer,
    )
    return BridgeService(
        stream,
        discovery,
        sinks=build_sinks(cfg),
        channel_size=cfg.channel_size,
    )
