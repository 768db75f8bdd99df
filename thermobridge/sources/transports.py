from __future__ import annotations

import asyncio
import logging
import shlex
import sys
from typing import Awaitable, Callable, Optional

from ..core.config import Settings

logger = logging.getLogger(__name__)


class LineTransport:
    """A readable line stream plus whatever must be released with it."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        description: str,
        closer: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        self.reader = reader
        self.description = description
        self._closer = closer

    async def readline(self) -> bytes:
        return await self.reader.readline()

    async def close(self) -> None:
        if self._closer is not None:
            await self._closer()
            self._closer = None
        logger.info("Closed %s", self.description)


async def open_stdin(limit: int) -> LineTransport:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)
    protocol = asyncio.StreamReaderProtocol(reader)
    transport, _ = await loop.connect_read_pipe(lambda: protocol, sys.stdin)

    async def _close() -> None:
        transport.close()

    return LineTransport(reader, "stdin", _close)


async def open_subprocess(command: str, limit: int) -> LineTransport:
    argv = shlex.split(command)
    if not argv:
        raise ValueError("Empty receiver command")
    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdout=asyncio.subprocess.PIPE,
        limit=limit,
    )
    logger.info("Started receiver pid=%s: %s", proc.pid, command)

    async def _close() -> None:
        if proc.returncode is None:
            try:
                proc.terminate()
            except ProcessLookupError:
                return
            try:
                await asyncio.wait_for(proc.wait(), timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("Receiver pid=%s did not exit, killing", proc.pid)
                proc.kill()
                await proc.wait()

    assert proc.stdout is not None
    return LineTransport(proc.stdout, f"subprocess {argv[0]}", _close)


async def open_tcp(host: str, port: int, limit: int) -> LineTransport:
    reader, writer = await asyncio.open_connection(host, port, limit=limit)
    logger.info("Connected to receiver at %s:%s", host, port)

    async def _close() -> None:
        writer.close()
        await writer.wait_closed()

    return LineTransport(reader, f"tcp {host}:{port}", _close)


async def open_transport(cfg: Settings) -> LineTransport:
    mode = cfg.source_mode.lower()
    if mode == "stdin":
        return await open_stdin(cfg.source_line_limit)
    if mode == "subprocess":
        return await open_subprocess(cfg.source_command, cfg.source_line_limit)
    if mode == "tcp":
        return await open_tcp(cfg.source_host, cfg.source_port, cfg.source_line_limit)
    raise ValueError(f"Unsupported source_mode: {cfg.source_mode}")
