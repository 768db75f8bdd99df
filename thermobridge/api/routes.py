from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from ..core.config import settings
from ..domain.models import SensorState
from ..domain.registry import Registry
from ..services.bridge import BridgeService
from ..sinks.accessories import build_accessories
from .schemas import (
    AccessoryOut,
    CharacteristicOut,
    DispatchStatsOut,
    SensorOut,
    SourceStatsOut,
    StatusOut,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# Overridden in main via app.dependency_overrides
def get_bridge() -> BridgeService:
    raise RuntimeError("Bridge dependency not configured")


def _require_registry(bridge: BridgeService) -> Registry:
    if bridge.registry is None:
        raise HTTPException(status_code=503, detail="Sensor discovery still running")
    return bridge.registry


def _sensor_out(state: SensorState) -> SensorOut:
    return SensorOut(
        key=state.key,
        name=state.info.name,
        serial_number=state.info.serial_number,
        manufacturer=state.info.manufacturer,
        model=state.info.model,
        temperature_c=state.temperature_c,
        humidity=state.humidity,
        battery=state.battery,
        last_seen=state.last_seen,
        update_count=state.update_count,
        capabilities=sorted(state.capabilities),
    )


@router.get("/status", response_model=StatusOut)
async def get_status(bridge: BridgeService = Depends(get_bridge)):
    live = bridge.live
    registry = bridge.registry
    dispatch = asdict(bridge.dispatcher.stats) if bridge.dispatcher else {}
    return StatusOut(
        app=settings.app_name,
        phase=live.phase.value,
        started_utc=live.started_utc.isoformat() if live.started_utc else None,
        discovery_finished_utc=(
            live.discovery_finished_utc.isoformat() if live.discovery_finished_utc else None
        ),
        sensor_count=len(registry) if registry is not None else 0,
        ordered_keys=registry.ordered_keys() if registry is not None else [],
        primary_key=live.primary_key,
        sinks=bridge.sinks.names,
        sink_errors=bridge.sinks.errors,
        source=SourceStatsOut(**asdict(bridge.source.stats)),
        dispatch=DispatchStatsOut(**dispatch),
    )


@router.get("/accessories", response_model=list[AccessoryOut])
async def get_accessories(bridge: BridgeService = Depends(get_bridge)):
    registry = _require_registry(bridge)
    return [
        AccessoryOut(
            aid=acc.aid,
            key=acc.key,
            primary=acc.primary,
            name=acc.info.name,
            serial_number=acc.info.serial_number,
            manufacturer=acc.info.manufacturer,
            model=acc.info.model,
            battery=acc.battery,
            last_seen=acc.last_seen,
            characteristics=[CharacteristicOut(**asdict(c)) for c in acc.characteristics],
        )
        for acc in build_accessories(registry)
    ]


@router.get("/sensors", response_model=list[SensorOut])
async def list_sensors(bridge: BridgeService = Depends(get_bridge)):
    registry = _require_registry(bridge)
    return [_sensor_out(s) for s in registry.ordered_states()]


@router.get("/sensors/{key}", response_model=SensorOut)
async def get_sensor(key: str, bridge: BridgeService = Depends(get_bridge)):
    registry = _require_registry(bridge)
    state = registry.get(key)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Unknown sensor: {key}")
    return _sensor_out(state)
