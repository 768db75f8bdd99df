from __future__ import annotations

from typing import Iterator, Optional

from .errors import RegistryFrozenError
from .keys import ordered_keys
from .models import SensorState


class Registry:
    """Sensor states by key.

    Filled only while discovery runs, then frozen. Membership never changes
    after `freeze()`; the states themselves stay mutable for the dispatcher.
    """

    def __init__(self) -> None:
        self._entries: dict[str, SensorState] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, state: SensorState) -> bool:
        """Add a state; returns False if the key is already taken."""
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register {state.key!r}: registry is frozen")
        if state.key in self._entries:
            return False
        self._entries[state.key] = state
        return True

    def freeze(self) -> None:
        self._frozen = True

    def get(self, key: str) -> Optional[SensorState]:
        return self._entries.get(key)

    def ordered_keys(self) -> list[str]:
        return ordered_keys(self._entries)

    def ordered_states(self) -> list[SensorState]:
        return [self._entries[k] for k in self.ordered_keys()]

    def primary(self) -> Optional[SensorState]:
        states = self.ordered_states()
        return states[0] if states else None

    def secondary(self) -> list[SensorState]:
        return self.ordered_states()[1:]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.ordered_keys())
