from __future__ import annotations
from typing import Awaitable, Callable, Protocol, runtime_checkable

from .models import Reading, SensorState


UpdateCallback = Callable[[SensorState, Reading], Awaitable[None]]


@runtime_checkable
class Sink(Protocol):
    name: str

    async def start(self) -> None:
        ...

    async def publish(self, state: SensorState, reading: Reading) -> None:
        ...

    async def close(self) -> None:
        ...
