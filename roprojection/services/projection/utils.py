# roprojection/services/projection/utils.py
# Coercion / rounding helpers shared by the projection modules.
# The engine never raises on bad numerics: everything goes through _f first.

from __future__ import annotations

import math
from typing import Any


def _f(v: Any, default: float = 0.0) -> float:
    """float() with a default for None / garbage / NaN / inf."""
    if v is None or isinstance(v, bool):
        return float(default)
    try:
        x = float(v)
    except (TypeError, ValueError):
        return float(default)
    return x if math.isfinite(x) else float(default)


def _f_nonzero(v: Any, default: float) -> float:
    """Like _f, but 0 also counts as missing (catalogue fields left blank)."""
    x = _f(v, default)
    return x if x != 0.0 else float(default)


def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp x to [lo, hi]."""
    return max(lo, min(hi, x))


def _r(v: Any, ndigits: int, default: float = 0.0) -> float:
    """round-safe: None / NaN 입력에서도 절대 터지지 않게."""
    return round(_f(v, default), ndigits)


def safe_div(num: float, den: float, default: float = 0.0) -> float:
    return num / den if den > 0 else default
