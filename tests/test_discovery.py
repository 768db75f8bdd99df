import asyncio

import pytest

from thermobridge.domain.keys import KeyGranularity
from thermobridge.services.discovery import DiscoveryWindow, discover
from thermobridge.sources.reader import END_OF_STREAM

from conftest import make_reading

EPSILON = 0.25


async def _feed_later(channel: asyncio.Queue, schedule) -> None:
    for delay, item in schedule:
        await asyncio.sleep(delay)
        await channel.put(item)


@pytest.mark.asyncio
async def test_discovers_keys_seen_within_window() -> None:
    channel: asyncio.Queue = asyncio.Queue(maxsize=1)
    feeder = asyncio.create_task(_feed_later(channel, [
        (0.0, make_reading(channel=1)),
        (0.1, make_reading(channel=2)),
    ]))

    registry = await discover(channel, duration=0.3, granularity=KeyGranularity.CHANNEL)
    await feeder

    assert set(registry.ordered_keys()) == {"1", "2"}
    assert registry.ordered_keys() == ["1", "2"]
    assert registry.frozen


@pytest.mark.asyncio
async def test_first_seen_reading_wins() -> None:
    channel: asyncio.Queue = asyncio.Queue()
    channel.put_nowait(make_reading(channel=1, temperature_f=32.0, humidity=20.0, battery="OK"))
    channel.put_nowait(make_reading(channel=1, temperature_f=212.0, humidity=80.0, battery="LOW"))

    registry = await DiscoveryWindow(duration=0.1).discover(channel)

    assert len(registry) == 1
    state = registry.get("75-1")
    assert state.temperature_c == 0.0
    assert state.humidity == 20.0
    assert state.battery == "OK"


@pytest.mark.asyncio
async def test_returns_on_time_with_no_input() -> None:
    loop = asyncio.get_running_loop()
    channel: asyncio.Queue = asyncio.Queue(maxsize=1)

    started = loop.time()
    registry = await DiscoveryWindow(duration=0.2).discover(channel)
    elapsed = loop.time() - started

    assert len(registry) == 0
    assert 0.2 <= elapsed < 0.2 + EPSILON


@pytest.mark.asyncio
async def test_returns_on_time_under_continuous_input() -> None:
    loop = asyncio.get_running_loop()
    channel: asyncio.Queue = asyncio.Queue(maxsize=1)

    async def flood() -> None:
        n = 0
        while True:
            await channel.put(make_reading(channel=n % 5))
            n += 1
            await asyncio.sleep(0)

    producer = asyncio.create_task(flood())
    started = loop.time()
    registry = await DiscoveryWindow(duration=0.2).discover(channel)
    elapsed = loop.time() - started
    producer.cancel()
    await asyncio.gather(producer, return_exceptions=True)

    assert elapsed < 0.2 + EPSILON
    assert registry.ordered_keys() == ["75-0", "75-1", "75-2", "75-3", "75-4"]


@pytest.mark.asyncio
async def test_ordering_independent_of_arrival_order() -> None:
    keys = [3, 1, 4, 2]
    results = []
    for order in (keys, list(reversed(keys))):
        channel: asyncio.Queue = asyncio.Queue()
        for c in order:
            channel.put_nowait(make_reading(channel=c))
        registry = await discover(channel, duration=0.05)
        results.append(registry.ordered_keys())

    assert results[0] == results[1] == ["75-1", "75-2", "75-3", "75-4"]


@pytest.mark.asyncio
async def test_stream_end_stops_discovery_and_is_passed_on() -> None:
    loop = asyncio.get_running_loop()
    channel: asyncio.Queue = asyncio.Queue(maxsize=1)
    feeder = asyncio.create_task(_feed_later(channel, [
        (0.0, make_reading(channel=1)),
        (0.0, END_OF_STREAM),
    ]))

    started = loop.time()
    registry = await DiscoveryWindow(duration=5.0).discover(channel)
    await feeder

    assert loop.time() - started < 1.0
    assert registry.ordered_keys() == ["75-1"]
    assert channel.get_nowait() is END_OF_STREAM


@pytest.mark.asyncio
async def test_readings_after_window_stay_on_channel() -> None:
    channel: asyncio.Queue = asyncio.Queue()
    registry = await DiscoveryWindow(duration=0.05).discover(channel)
    late = make_reading(channel=9)
    channel.put_nowait(late)

    assert len(registry) == 0
    assert channel.get_nowait() is late
