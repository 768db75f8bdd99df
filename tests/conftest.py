from __future__ import annotations

import json
from typing import Any, Iterable

import pytest

from thermobridge.domain.keys import KeyGranularity
from thermobridge.domain.models import Reading, SensorLimits
from thermobridge.domain.registry import Registry
from thermobridge.services.discovery import DiscoveryWindow


def make_reading(
    channel: int = 1,
    device_id: int = 75,
    temperature_f: float = 68.0,
    humidity: float | None = 40.0,
    model: str = "Ambientweather-F007TH",
    battery: str = "OK",
    time: str = "2024-01-05 10:11:12",
) -> Reading:
    return Reading(
        channel=channel,
        device_id=device_id,
        temperature_f=temperature_f,
        humidity=humidity,
        model=model,
        battery=battery,
        time=time,
    )


def record_line(**overrides: Any) -> bytes:
    record: dict[str, Any] = {
        "time": "2024-01-05 10:11:12",
        "model": "Ambientweather-F007TH",
        "device": 75,
        "channel": 1,
        "battery": "OK",
        "temperature_F": 68.0,
        "humidity": 40,
    }
    record.update(overrides)
    return (json.dumps(record) + "\n").encode()


def registry_with(
    readings: Iterable[Reading],
    granularity: KeyGranularity = KeyGranularity.DEVICE_CHANNEL,
) -> Registry:
    window = DiscoveryWindow(duration=0.1, granularity=granularity)
    registry = Registry()
    for r in readings:
        window.observe(registry, r)
    registry.freeze()
    return registry


class ScriptedStream:
    """Line stream that replays bytes or raises queued exceptions."""

    def __init__(self, items: Iterable[bytes | BaseException]) -> None:
        self._items = list(items)

    async def readline(self) -> bytes:
        if not self._items:
            return b""
        item = self._items.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class RecordingSink:
    def __init__(self, name: str = "recording", fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.started = False
        self.closed = False
        self.updates: list[tuple[str, float, Reading]] = []

    async def start(self) -> None:
        self.started = True

    async def publish(self, state, reading) -> None:
        if self.fail:
            raise RuntimeError("sink down")
        self.updates.append((state.key, state.temperature_c, reading))

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def limits() -> SensorLimits:
    return SensorLimits()
