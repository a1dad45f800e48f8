# roprojection/services/projection/hydraulics.py
"""
Train-level hydraulic balance.

All flows are m3/h per train, flux is gfd (the model's areal unit).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict

from loguru import logger

from roprojection.services.units import M3H_TO_GPD
from roprojection.services.projection.utils import _f, _r, clamp, safe_div

DEFAULT_RECOVERY_PCT = 15.0
RECOVERY_BAND_PCT = (1.0, 99.0)

BETA_SLOPE = 0.7
PEAK_FLUX_SLOPE = 0.32  # lead-element flux skew

LB_TO_KG = 0.45359237
HOURS_PER_MONTH = 24.0 * 30.0

# kW = bar * m3/h / 36 (1 bar * 1 m3/h = 1/36 kW).
# 이전 계산기는 36.7을 쓰고 psi 스케일 압력을 bar로 표기했음: 같은 입력에서
# 여기 보고되는 bar 압력과 펌프 동력은 그 표기보다 약 14.5배 (PSI_PER_BAR) 낮다.
PUMP_KW_DIVISOR = 36.0


def _safe_exp(x: float) -> float:
    # avoid overflow (exp(700) ~ 1e304)
    return math.exp(clamp(x, -80.0, 80.0))


@dataclass(frozen=True)
class TrainBalance:
    recovery: float
    permeate_m3h: float
    feed_m3h: float
    concentrate_m3h: float
    cf: float
    beta: float


def recovery_fraction(recovery_pct: Any) -> float:
    """Recovery % -> fraction in [0.01, 0.99]. 0 / blank -> 15 %."""
    lo, hi = RECOVERY_BAND_PCT
    pct = _f(recovery_pct, DEFAULT_RECOVERY_PCT) or DEFAULT_RECOVERY_PCT
    return clamp(pct, lo, hi) / 100.0


def concentration_factor(recovery: float) -> float:
    """CF = 1 / (1 - r)."""
    if recovery <= 0.0 or recovery >= 1.0:
        return 1.0
    return 1.0 / (1.0 - recovery)


def polarization_beta(recovery: float) -> float:
    return _safe_exp(BETA_SLOPE * max(recovery, 0.0))


def average_flux_gfd(permeate_m3h: float, area_ft2: float) -> float:
    return safe_div(permeate_m3h * M3H_TO_GPD, area_ft2)


def highest_flux_gfd(avg_flux_gfd: float, recovery: float) -> float:
    return avg_flux_gfd * (1.0 + PEAK_FLUX_SLOPE * recovery)


def balance_train(permeate_m3h: float, recovery: float) -> TrainBalance:
    permeate = max(_f(permeate_m3h), 0.0)
    feed = safe_div(permeate, recovery)
    return TrainBalance(
        recovery=recovery,
        permeate_m3h=permeate,
        feed_m3h=feed,
        concentrate_m3h=feed - permeate,
        cf=concentration_factor(recovery),
        beta=polarization_beta(recovery),
    )


# =============================================================================
# Chemical dosing / energy
# =============================================================================
def chemical_usage(
    chemical: str, dose: float, dose_unit: str, concentration_pct: float, feed_m3h: float
) -> Dict[str, Any]:
    unit = str(dose_unit or "").strip().lower()
    d = max(_f(dose), 0.0)

    if unit == "mg/l":
        active = d * feed_m3h / 1000.0
    elif unit == "lb/hr":
        active = d * LB_TO_KG
    elif unit == "kg/hr":
        active = d
    else:
        logger.warning("unknown dose unit {!r}, chemical usage set to 0", dose_unit)
        active = 0.0

    strength = clamp(_f(concentration_pct, 100.0), 1.0, 100.0) / 100.0
    return {
        "chemical": chemical or "None",
        "dose": d,
        "dose_unit": unit or "mg/l",
        "active_kg_h": _r(active, 3),
        "solution_kg_h": _r(active / strength, 3),
    }


def pump_energy(
    feed_pressure_bar: float,
    plant_feed_m3h: float,
    plant_permeate_m3h: float,
    pump_eff: float = 0.75,
    cost_per_kwh: float = 0.12,
) -> Dict[str, float]:
    eff = clamp(_f(pump_eff, 0.75) or 0.75, 0.2, 1.0)
    p_bar = max(_f(feed_pressure_bar), 0.0)
    power_kw = (plant_feed_m3h * p_bar) / PUMP_KW_DIVISOR / eff if plant_feed_m3h > 0 else 0.0
    return {
        "pump_power_kw": _r(power_kw, 2),
        "specific_energy_kwh_m3": _r(safe_div(power_kw, plant_permeate_m3h), 3),
        "monthly_energy_cost": _r(power_kw * HOURS_PER_MONTH * max(_f(cost_per_kwh, 0.12), 0.0), 2),
    }
