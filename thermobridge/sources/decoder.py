from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..domain.errors import DecodeError
from ..domain.models import Reading


class RadioMessage(BaseModel):
    """One rtl_433 JSON record (`rtl_433 -F json`).

    Example:
        {"time": "2024-01-05 10:11:12", "model": "Ambientweather-F007TH",
         "id": 75, "channel": 2, "battery_ok": 1,
         "temperature_F": 71.6, "humidity": 40}
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    time: str = ""
    model: str
    device: int = 0
    id: Optional[int] = None
    channel: int
    battery: Optional[str] = None
    battery_ok: Optional[int] = None
    temperature_f: float = Field(alias="temperature_F", allow_inf_nan=False)
    humidity: Optional[float] = Field(default=None, allow_inf_nan=False)

    def battery_state(self) -> str:
        if self.battery:
            return self.battery
        if self.battery_ok is None:
            return ""
        return "OK" if self.battery_ok else "LOW"

    def to_reading(self) -> Reading:
        # Older decoders report "device", newer ones "id"
        device_id = self.device or (self.id or 0)
        return Reading(
            device_id=device_id,
            channel=self.channel,
            temperature_f=self.temperature_f,
            humidity=self.humidity,
            model=self.model,
            battery=self.battery_state(),
            time=self.time,
        )


def decode_line(line: str | bytes) -> Reading:
    try:
        msg = RadioMessage.model_validate_json(line)
    except ValidationError as e:
        text = line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line
        raise DecodeError(text, f"{e.error_count()} validation error(s)") from e
    return msg.to_reading()
