import pytest

from thermobridge.domain.errors import RegistryFrozenError
from thermobridge.domain.models import SensorState
from thermobridge.domain.registry import Registry

from conftest import make_reading


def _state(key: str, limits, temperature_f: float = 68.0) -> SensorState:
    return SensorState.from_reading(key, make_reading(temperature_f=temperature_f), limits)


def test_register_keeps_first_state_for_a_key(limits) -> None:
    registry = Registry()
    assert registry.register(_state("1", limits, 32.0)) is True
    assert registry.register(_state("1", limits, 212.0)) is False
    assert len(registry) == 1
    assert registry.get("1").temperature_c == 0.0


def test_frozen_registry_rejects_new_members(limits) -> None:
    registry = Registry()
    registry.register(_state("1", limits))
    registry.freeze()
    assert registry.frozen
    with pytest.raises(RegistryFrozenError):
        registry.register(_state("2", limits))
    assert registry.ordered_keys() == ["1"]


def test_ordering_ignores_insertion_order(limits) -> None:
    keys = ["75-3", "12-1", "75-1", "40-2"]
    first, second = Registry(), Registry()
    for k in keys:
        first.register(_state(k, limits))
    for k in reversed(keys):
        second.register(_state(k, limits))

    assert first.ordered_keys() == second.ordered_keys() == ["12-1", "40-2", "75-1", "75-3"]
    assert list(first) == first.ordered_keys()


def test_primary_and_secondary_split(limits) -> None:
    registry = Registry()
    for k in ("b", "c", "a"):
        registry.register(_state(k, limits))
    assert registry.primary().key == "a"
    assert [s.key for s in registry.secondary()] == ["b", "c"]


def test_lookup_of_missing_key(limits) -> None:
    registry = Registry()
    assert registry.get("nope") is None
    assert "nope" not in registry
    assert registry.primary() is None
    assert registry.secondary() == []
