from __future__ import annotations

from decimal import Decimal


def f_to_c(f: float) -> float:
    return (f - 32) / 1.8


def _step_digits(step: float) -> int:
    exponent = Decimal(str(step)).normalize().as_tuple().exponent
    return max(0, -int(exponent))


def quantize(value: float, low: float, high: float, step: float) -> float:
    """Clamp to [low, high] and snap to the characteristic step."""
    if step > 0:
        value = round(value / step) * step
        value = round(value, _step_digits(step))
    return float(min(max(value, low), high))
