from __future__ import annotations

from enum import Enum
from typing import Iterable

from .models import Reading


class KeyGranularity(str, Enum):
    DEVICE_CHANNEL = "device_channel"
    CHANNEL = "channel"


def sensor_key(reading: Reading, granularity: KeyGranularity = KeyGranularity.DEVICE_CHANNEL) -> str:
    if granularity is KeyGranularity.CHANNEL:
        return f"{reading.channel}"
    return f"{reading.device_id}-{reading.channel}"


def ordered_keys(keys: Iterable[str]) -> list[str]:
    # Plain string order; arrival order must never decide which sensor is first.
    return sorted(keys)
