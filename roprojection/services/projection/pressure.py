# roprojection/services/projection/pressure.py
"""
Pressure & aging model.

Internally pressures are psi-scale: flux (gfd) / A (gfd/psi) gives psi, and the
osmotic, margin and pressure-drop terms are on that same scale. Callers convert
to bar for reporting.
"""

from __future__ import annotations

import math

from roprojection.services.projection.utils import _f, clamp

TCF_COEFF = 2640.0
T_REF_K = 298.15

OSMOTIC_COEFF = 0.0385  # per mg/L TDS per K, /1000
PRESSURE_MARGIN = 1.2

FOULING_FLOW_FACTOR_BAND = (0.35, 1.0)
FLUX_DECLINE_BAND = (0.0, 99.0)
SP_INCREASE_BAND = (0.0, 200.0)

DP_TURBULENT_FEED_M3H = 4.5
DP_MIN_TURBULENT_EXPONENT = 1.75
DP_BETA_WEIGHT = 0.1


def tcf(temperature_C: float) -> float:
    """Temperature correction factor (1.0 at 25 C)."""
    t_k = max(_f(temperature_C, 25.0) + 273.15, 1.0)
    return math.exp(TCF_COEFF * (1.0 / T_REF_K - 1.0 / t_k))


def effective_permeability(a_base: float, age_years: float, decline_pct: float) -> float:
    age = max(_f(age_years), 0.0)
    decline = clamp(_f(decline_pct), *FLUX_DECLINE_BAND)
    a_eff = a_base * (1.0 - decline / 100.0) ** age
    return a_eff if a_eff > 0 else a_base


def salt_passage_aging(age_years: float, sp_increase_pct: float) -> float:
    age = max(_f(age_years), 0.0)
    sp = clamp(_f(sp_increase_pct), *SP_INCREASE_BAND)
    return (1.0 + sp / 100.0) ** age


def fouling_multiplier(fouling_factor: float) -> float:
    """
    >= 1 : pressure multiplier as given.
    < 1  : flow factor (fraction of clean permeability), banded to [0.35, 1].
    """
    ff = _f(fouling_factor, 1.0)
    if ff >= 1.0:
        return ff
    lo, hi = FOULING_FLOW_FACTOR_BAND
    return 1.0 / clamp(ff, lo, hi)


def osmotic_pressure_psi(tds_mgL: float, temperature_C: float) -> float:
    return OSMOTIC_COEFF * _f(tds_mgL) * (_f(temperature_C, 25.0) + 273.15) / 1000.0


def feed_pressure_psi(
    flux_gfd: float,
    tcf_value: float,
    a_eff: float,
    fouling: float,
    osmotic_psi: float,
    sp_factor: float,
) -> float:
    denom = tcf_value * a_eff
    term = flux_gfd / denom if denom > 0 else 0.0
    return (term * fouling + osmotic_psi + PRESSURE_MARGIN) * sp_factor


def pressure_drop_psi(
    elements_per_vessel: int,
    k_fb: float,
    dp_exponent: float,
    feed_per_vessel_m3h: float,
    conc_per_vessel_m3h: float,
    beta: float,
) -> float:
    exponent = dp_exponent
    if feed_per_vessel_m3h > DP_TURBULENT_FEED_M3H:
        exponent = max(exponent, DP_MIN_TURBULENT_EXPONENT)
    avg_flow = max((feed_per_vessel_m3h + conc_per_vessel_m3h) / 2.0, 0.0)
    return (
        elements_per_vessel
        * k_fb
        * avg_flow ** exponent
        * (1.0 + DP_BETA_WEIGHT * (beta - 1.0))
    )
