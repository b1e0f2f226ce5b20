from __future__ import annotations

import math
from typing import Any

TRUTHY_FLAGS = frozenset({"1", "true", "yes", "y", "on"})
FALSY_FLAGS = frozenset({"0", "false", "no", "n", "off"})


# -----------------------------------------------------------------------------
def coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUTHY_FLAGS:
            return True
        if lowered in FALSY_FLAGS:
            return False
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    return default


# -----------------------------------------------------------------------------
def coerce_float(
    value: Any, default: float, minimum: float | None = None, maximum: float | None = None
) -> float:
    if isinstance(value, bool):
        candidate = default
    else:
        try:
            candidate = float(value)
        except (TypeError, ValueError):
            candidate = default
    if math.isnan(candidate):
        candidate = default
    if minimum is not None and candidate < minimum:
        candidate = minimum
    if maximum is not None and candidate > maximum:
        candidate = maximum
    return candidate


# -----------------------------------------------------------------------------
def coerce_positive_int(value: Any, default: int = 1) -> int:
    if isinstance(value, bool) or value is None:
        return default
    try:
        candidate = int(value)
    except (TypeError, ValueError):
        return default
    return candidate if candidate > 0 else default


# -----------------------------------------------------------------------------
def coerce_str(value: Any, default: str) -> str:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or default
    if value is None:
        return default
    return str(value).strip() or default


# -----------------------------------------------------------------------------
def clamp_unit(value: float) -> float:
    """Clamp a score into the closed interval [0, 1]; NaN collapses to 0."""
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, float(value)))


__all__ = [
    "clamp_unit",
    "coerce_bool",
    "coerce_float",
    "coerce_positive_int",
    "coerce_str",
]
