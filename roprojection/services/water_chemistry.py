# roprojection/services/water_chemistry.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional
import math

from roprojection.services.projection.utils import _f, _r, clamp

# ---------------------------------------------------------
# 1. 경험 상수 (Empirical constants)
# ---------------------------------------------------------
# pH 추정: 투과수는 CO2 통과로 산성화, 농축수는 농축비에 따라 상승
PERMEATE_PH_DROP = 2.7
CONC_PH_SLOPE = 0.3

# LSI
CA_TO_CACO3 = 2.5      # Ca (mg/L) -> mg/L as CaCO3
HCO3_TO_CACO3 = 0.82   # HCO3 (mg/L) -> mg/L as CaCO3
LOG_FLOOR = 1e-4
CCPP_PER_LSI = 50.0

# 포화도 제수 (ion product / divisor -> %)
CASO4_DIVISOR = 1000.0
BASO4_DIVISOR = 50.0
SRSO4_DIVISOR = 2000.0
SIO2_LIMIT_MGL = 120.0
CA3PO42_DIVISOR = 100.0
CAF2_DIVISOR = 500.0


# ---------------------------------------------------------
# 2. 데이터 구조 (ScalingProfile)
# ---------------------------------------------------------

@dataclass
class ScalingProfile:
    """
    농축수(Concentrate) 측 수질 상태.
    LSI / 포화도 계산에 필요한 값만 담습니다.
    """
    tds_mgL: float
    temperature_C: float
    ph: float

    ca_mgL: float = 0.0
    ba_mgL: float = 0.0
    sr_mgL: float = 0.0
    so4_mgL: float = 0.0
    hco3_mgL: float = 0.0
    po4_mgL: float = 0.0
    f_mgL: float = 0.0
    sio2_mgL: float = 0.0

    @classmethod
    def from_ions(
        cls, ions: Mapping[str, float], tds_mgL: float, temperature_C: float, ph: float
    ) -> "ScalingProfile":
        def g(k: str) -> float:
            return max(_f(ions.get(k)), 0.0)

        return cls(
            tds_mgL=_f(tds_mgL),
            temperature_C=_f(temperature_C, 25.0),
            ph=_f(ph, 7.0),
            ca_mgL=g("ca"),
            ba_mgL=g("ba"),
            sr_mgL=g("sr"),
            so4_mgL=g("so4"),
            hco3_mgL=g("hco3"),
            po4_mgL=g("po4"),
            f_mgL=g("f"),
            sio2_mgL=g("sio2"),
        )


# ---------------------------------------------------------
# 3. pH 추정
# ---------------------------------------------------------

def permeate_ph(feed_ph: float) -> float:
    return clamp(_f(feed_ph, 7.0) - PERMEATE_PH_DROP, 0.0, 14.0)


def concentrate_ph(feed_ph: float, cf: float) -> float:
    return clamp(
        _f(feed_ph, 7.0) + CONC_PH_SLOPE * math.log10(max(_f(cf, 1.0), 1.0)), 0.0, 14.0
    )


# ---------------------------------------------------------
# 4. 스케일 지수 계산 (LSI, CCPP, Saturation)
# ---------------------------------------------------------

def _calc_lsi_family(profile: ScalingProfile) -> Dict[str, Optional[float]]:
    """LSI(Langelier Saturation Index) 계산."""
    p_ca = 5.0 - math.log10(max(profile.ca_mgL * CA_TO_CACO3, LOG_FLOOR))
    p_alk = 5.0 - math.log10(max(profile.hco3_mgL * HCO3_TO_CACO3, LOG_FLOOR))

    c_const = (math.log10(max(profile.tds_mgL, 1.0)) - 1.0) / 10.0
    c_const += 2.0 if profile.temperature_C > 25.0 else 2.3

    phs = c_const + p_ca + p_alk
    lsi = profile.ph - phs
    ccpp = lsi * CCPP_PER_LSI if lsi > 0 else 0.0

    return {"lsi": float(lsi), "phs": float(phs), "ccpp": float(ccpp)}


def saturation_ratios(profile: ScalingProfile) -> Dict[str, float]:
    """
    경험식 포화도 (%). 용해도적(Ksp) 계산이 아니라 이온곱 / 상수.
    Ca3(PO4)2 만 소수 둘째 자리, 나머지는 첫째 자리.
    """
    ca = profile.ca_mgL
    so4 = profile.so4_mgL
    return {
        "caso4_pct": _r(ca * so4 / CASO4_DIVISOR, 1),
        "baso4_pct": _r(profile.ba_mgL * so4 / BASO4_DIVISOR, 1),
        "srso4_pct": _r(profile.sr_mgL * so4 / SRSO4_DIVISOR, 1),
        "sio2_pct": _r(profile.sio2_mgL / SIO2_LIMIT_MGL * 100.0, 1),
        "ca3po42_pct": _r(ca * profile.po4_mgL / CA3PO42_DIVISOR, 2),
        "caf2_pct": _r(ca * profile.f_mgL / CAF2_DIVISOR, 1),
    }


def calc_scaling_indices(profile: ScalingProfile) -> Dict[str, Optional[float]]:
    out: Dict[str, Optional[float]] = {}
    out.update(_calc_lsi_family(profile))
    out.update(saturation_ratios(profile))
    return out
