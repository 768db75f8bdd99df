from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .units import f_to_c, quantize


@dataclass(frozen=True)
class Reading:
    channel: int
    temperature_f: float
    model: str
    device_id: int = 0
    humidity: Optional[float] = None
    battery: str = ""
    time: str = ""


@dataclass(frozen=True)
class SensorInfo:
    name: str
    serial_number: str
    manufacturer: str
    model: str


@dataclass(frozen=True)
class SensorLimits:
    min_temp_c: float = -40.0
    max_temp_c: float = 60.0
    temp_step: float = 0.1
    min_humidity: float = 10.0
    max_humidity: float = 99.0
    humidity_step: float = 1.0

    def temperature(self, temperature_f: float) -> float:
        return quantize(f_to_c(temperature_f), self.min_temp_c, self.max_temp_c, self.temp_step)

    def humidity(self, humidity: float) -> float:
        return quantize(humidity, self.min_humidity, self.max_humidity, self.humidity_step)


@dataclass
class SensorState:
    key: str
    info: SensorInfo
    limits: SensorLimits
    temperature_c: float
    humidity: Optional[float] = None
    has_humidity: bool = False
    battery: str = ""
    last_seen: str = ""
    update_count: int = 0

    @classmethod
    def from_reading(
        cls,
        key: str,
        reading: Reading,
        limits: SensorLimits,
        name: str = "Temperature Sensor",
        manufacturer: str = "Ambient Weather",
    ) -> "SensorState":
        info = SensorInfo(
            name=name,
            serial_number=key,
            manufacturer=manufacturer,
            model=reading.model,
        )
        has_humidity = reading.humidity is not None
        return cls(
            key=key,
            info=info,
            limits=limits,
            temperature_c=limits.temperature(reading.temperature_f),
            humidity=limits.humidity(reading.humidity) if has_humidity else None,
            has_humidity=has_humidity,
            battery=reading.battery,
            last_seen=reading.time,
        )

    @property
    def capabilities(self) -> frozenset[str]:
        if self.has_humidity:
            return frozenset({"temperature", "humidity"})
        return frozenset({"temperature"})
