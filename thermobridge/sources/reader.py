from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Protocol

from ..domain.errors import DecodeError
from ..domain.models import Reading
from .decoder import decode_line

logger = logging.getLogger(__name__)


class LineStream(Protocol):
    async def readline(self) -> bytes:
        ...


class EndOfStream:
    """Marker put on the channel once the source has no more readings."""

    def __repr__(self) -> str:
        return "END_OF_STREAM"


END_OF_STREAM = EndOfStream()


@dataclass
class SourceStats:
    lines: int = 0
    decoded: int = 0
    decode_errors: int = 0
    transport_errors: int = 0
    closed: bool = False


async def iter_readings(
    stream: LineStream,
    stats: Optional[SourceStats] = None,
) -> AsyncIterator[Reading]:
    """Yield readings until the stream closes; bad lines are logged and skipped."""
    stats = stats if stats is not None else SourceStats()

    while True:
        try:
            raw = await stream.readline()
        except ConnectionError as e:
            logger.error("Receiver stream closed: %s", e)
            break
        except ValueError as e:
            # Line exceeded the reader limit; the reader has already dropped it
            stats.transport_errors += 1
            logger.warning("Receiver read error: %s", e)
            continue
        except OSError as e:
            stats.transport_errors += 1
            logger.error("Receiver read failed: %s", e)
            break

        if not raw:
            logger.warning("Receiver stream ended")
            break

        stats.lines += 1
        if not raw.strip():
            continue

        try:
            reading = decode_line(raw)
        except DecodeError as e:
            stats.decode_errors += 1
            logger.warning("Skipping malformed record: %s", e)
            continue

        stats.decoded += 1
        yield reading

    stats.closed = True


class ReadingSource:
    """Producer task: pushes readings onto the shared channel.

    `put` blocks while the channel is full, so a slow consumer stalls the
    receiver instead of losing readings.
    """

    def __init__(self, stream: LineStream, channel: asyncio.Queue) -> None:
        self._stream = stream
        self._channel = channel
        self._task: Optional[asyncio.Task] = None
        self.stats = SourceStats()

    async def start(self) -> None:
        self._task = asyncio.create_task(self.run(), name="reading_source")

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def run(self) -> None:
        try:
            async for reading in iter_readings(self._stream, self.stats):
                await self._channel.put(reading)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Reading source failed")
        # Consumers stop on this marker
        await self._channel.put(END_OF_STREAM)
