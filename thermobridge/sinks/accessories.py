from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from ..domain.models import SensorInfo, SensorState
from ..domain.registry import Registry


@dataclass(frozen=True)
class Characteristic:
    type: str  # "temperature" | "humidity"
    value: Optional[float]
    min_value: float
    max_value: float
    step: float


@dataclass(frozen=True)
class Accessory:
    aid: int
    key: str
    primary: bool
    info: SensorInfo
    characteristics: tuple[Characteristic, ...]
    battery: str = ""
    last_seen: str = ""


def characteristics_for(state: SensorState) -> tuple[Characteristic, ...]:
    limits = state.limits
    out = [
        Characteristic(
            type="temperature",
            value=state.temperature_c,
            min_value=limits.min_temp_c,
            max_value=limits.max_temp_c,
            step=limits.temp_step,
        )
    ]
    if "humidity" in state.capabilities:
        out.append(
            Characteristic(
                type="humidity",
                value=state.humidity,
                min_value=limits.min_humidity,
                max_value=limits.max_humidity,
                step=limits.humidity_step,
            )
        )
    return tuple(out)


def build_accessories(registry: Registry) -> list[Accessory]:
    """Accessories in key order; aid 1 is the bridge's primary accessory."""
    return [
        Accessory(
            aid=index,
            key=state.key,
            primary=index == 1,
            info=state.info,
            characteristics=characteristics_for(state),
            battery=state.battery,
            last_seen=state.last_seen,
        )
        for index, state in enumerate(registry.ordered_states(), start=1)
    ]
