from __future__ import annotations


class ThermoBridgeError(Exception):
    """Base class for bridge errors."""


class DecodeError(ThermoBridgeError):
    """A line from the receiver could not be turned into a Reading."""

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"{reason}: {line[:120]!r}")
        self.line = line
        self.reason = reason


class EmptyRegistryError(ThermoBridgeError):
    """Discovery finished without seeing a single sensor."""


class RegistryFrozenError(ThermoBridgeError):
    """Registration attempted after the discovery window closed."""
