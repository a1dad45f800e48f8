# roprojection/services/projection/validator.py
# Advisory design-limit checks. Never alters numbers, never raises.

from __future__ import annotations

import math
from typing import List, Optional

from loguru import logger

from roprojection.schemas.projection import DesignWarning
from roprojection.services.projection.utils import _r

MAX_HIGHEST_FLUX_GFD = 20.0
MAX_FEED_PER_VESSEL_M3H = 4.5

_PREFIX = "Design limits exceeded: "


def _warn(
    key: str,
    message: str,
    value: Optional[float],
    limit: Optional[float],
    unit: str,
    stage: Optional[str] = None,
) -> DesignWarning:
    w = DesignWarning(
        key=key,
        message=_PREFIX + message,
        stage=stage,
        value=value,
        limit=limit,
        unit=unit,
    )
    logger.warning("{} (value={}, limit={} {})", w.message, value, limit, unit)
    return w


def build_design_warnings(
    highest_flux_gfd: float,
    max_feed_per_vessel_m3h: float,
    conc_pressure_psi: float,
    osmotic_pressure_psi: float,
    feed_stage: Optional[int] = None,
) -> List[DesignWarning]:
    warnings: List[DesignWarning] = []

    if highest_flux_gfd > MAX_HIGHEST_FLUX_GFD:
        warnings.append(
            _warn("flux_high", "Flux too high", _r(highest_flux_gfd, 1), MAX_HIGHEST_FLUX_GFD, "gfd")
        )

    if max_feed_per_vessel_m3h > MAX_FEED_PER_VESSEL_M3H:
        warnings.append(
            _warn(
                "feed_per_vessel_high",
                "Feed flow per vessel too high",
                _r(max_feed_per_vessel_m3h, 2),
                MAX_FEED_PER_VESSEL_M3H,
                "m3/h",
                stage=f"stage {feed_stage}" if feed_stage else None,
            )
        )

    if conc_pressure_psi < 0:
        warnings.append(
            _warn("conc_pressure_negative", "Concentrate pressure is negative", _r(conc_pressure_psi, 1), 0.0, "psi")
        )

    if not math.isfinite(osmotic_pressure_psi) or osmotic_pressure_psi < 0:
        value = osmotic_pressure_psi if math.isfinite(osmotic_pressure_psi) else None
        warnings.append(
            _warn("osmotic_pressure_invalid", "Osmotic pressure invalid", value, 0.0, "psi")
        )

    return warnings
