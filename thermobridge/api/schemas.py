from __future__ import annotations
from pydantic import BaseModel
from typing import Optional, List


class CharacteristicOut(BaseModel):
    type: str
    value: Optional[float]
    min_value: float
    max_value: float
    step: float


class SensorOut(BaseModel):
    key: str
    name: str
    serial_number: str
    manufacturer: str
    model: str
    temperature_c: float
    humidity: Optional[float] = None
    battery: str = ""
    last_seen: str = ""
    update_count: int = 0
    capabilities: List[str]


class AccessoryOut(BaseModel):
    aid: int
    key: str
    primary: bool
    name: str
    serial_number: str
    manufacturer: str
    model: str
    battery: str = ""
    last_seen: str = ""
    characteristics: List[CharacteristicOut]


class SourceStatsOut(BaseModel):
    lines: int
    decoded: int
    decode_errors: int
    transport_errors: int
    closed: bool


class DispatchStatsOut(BaseModel):
    updated: int = 0
    unknown: int = 0
    callback_errors: int = 0
    last_unknown_key: Optional[str] = None


class StatusOut(BaseModel):
    app: str
    phase: str
    started_utc: Optional[str] = None
    discovery_finished_utc: Optional[str] = None
    sensor_count: int
    ordered_keys: List[str]
    primary_key: Optional[str] = None
    sinks: List[str]
    sink_errors: int
    source: SourceStatsOut
    dispatch: DispatchStatsOut
