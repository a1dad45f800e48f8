# roprojection/services/units.py

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

# flow unit token -> m3/h multiplier (engine canonical flow: m3/h)
FLOW_TO_M3H: Dict[str, float] = {
    "gpm": 0.2271,
    "gpd": 0.0001577,
    "mgd": 157.725,
    "migd": 189.27,
    "m3/h": 1.0,
    "m3/d": 1.0 / 24.0,
    "mld": 41.667,
}
DEFAULT_FLOW_UNIT = "gpm"

# display precision per flow unit: fast 2, daily 1, mega/million 3
FLOW_DECIMALS: Dict[str, int] = {
    "gpm": 2,
    "m3/h": 2,
    "gpd": 1,
    "m3/d": 1,
    "mgd": 3,
    "migd": 3,
    "mld": 3,
}

M3H_TO_GPM = 4.402867
M3H_TO_GPD = 264.172 * 24.0  # flux constant: m3/h over ft2 -> gfd
PSI_PER_BAR = 14.5038
GFD_TO_LMH = 1.6979


def normalize_flow_unit(unit: Any) -> str:
    """Unknown tokens fall back to gpm."""
    token = str(unit or "").strip().lower()
    return token if token in FLOW_TO_M3H else DEFAULT_FLOW_UNIT


def flow_factor(unit: Any) -> float:
    return FLOW_TO_M3H[normalize_flow_unit(unit)]


def flow_decimals(unit: Any) -> int:
    return FLOW_DECIMALS[normalize_flow_unit(unit)]


def to_m3h(value: float, unit: Any) -> float:
    return float(value) * flow_factor(unit)


def from_m3h(value_m3h: float, unit: Any) -> float:
    factor = flow_factor(unit)
    return float(value_m3h) / factor if factor > 0 else 0.0


def format_flow(value: float, unit: Any) -> str:
    return f"{float(value):.{flow_decimals(unit)}f}"


def format_flux(value: float, calculated: bool, flow_unit: Any) -> str:
    """
    Before the design is run the flux shows as a literal zero with the flow
    unit's decimal count ('0.00', '0.0', '0.000'); afterwards one decimal.
    """
    if not calculated:
        return f"{0.0:.{flow_decimals(flow_unit)}f}"
    return f"{float(value):.1f}"


def bar_to_psi(p_bar: float) -> float:
    return float(p_bar) * PSI_PER_BAR


def psi_to_bar(p_psi: float) -> float:
    return float(p_psi) / PSI_PER_BAR


def gfd_to_lmh(flux_gfd: float) -> float:
    return float(flux_gfd) * GFD_TO_LMH


def f_to_c(temp_f: float) -> float:
    return (float(temp_f) - 32.0) * 5.0 / 9.0


class FlowDisplayMemo:
    """
    Caller-side memo of the last canonical (m3/h) train flows.

    A display-unit toggle re-renders from these canonical values instead of
    converting an already rounded display string again, so toggling units back
    and forth never drifts. The projection engine itself keeps no state.
    """

    def __init__(self) -> None:
        self._flows_m3h: Dict[str, float] = {}

    @property
    def flows_m3h(self) -> Dict[str, float]:
        return dict(self._flows_m3h)

    def remember(self, flows_m3h: Mapping[str, float]) -> None:
        self._flows_m3h = {k: float(v) for k, v in flows_m3h.items()}

    def value_in(self, key: str, unit: Any) -> Optional[float]:
        if key not in self._flows_m3h:
            return None
        return from_m3h(self._flows_m3h[key], unit)

    def display(self, unit: Any) -> Dict[str, str]:
        return {k: format_flow(from_m3h(v, unit), unit) for k, v in self._flows_m3h.items()}
