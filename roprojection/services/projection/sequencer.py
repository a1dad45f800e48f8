# roprojection/services/projection/sequencer.py
"""
Stage sequencer.

Walks the active stages in series. Each stage takes its share of the train
permeate in proportion to its vessel count; its concentrate flow and pressure
become the next stage's feed. Inactive stages (no vessels or no elements) are
skipped without touching the running feed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from loguru import logger

from roprojection.schemas.membrane import Membrane
from roprojection.schemas.projection import StageResult
from roprojection.services.membranes import MembraneHydraulics
from roprojection.services.transport import project_ions
from roprojection.services.units import (
    M3H_TO_GPM,
    format_flow,
    from_m3h,
    gfd_to_lmh,
    psi_to_bar,
)
from roprojection.services.projection.hydraulics import (
    average_flux_gfd,
    concentration_factor,
    highest_flux_gfd,
    polarization_beta,
)
from roprojection.services.projection.pressure import pressure_drop_psi
from roprojection.services.projection.utils import _r, safe_div


@dataclass(frozen=True)
class ResolvedStage:
    position: int  # 0-based index in the configured stage list
    vessels: int
    elements_per_vessel: int
    membrane: Optional[Membrane]
    hydraulics: MembraneHydraulics
    own_area: bool = False  # membrane found in library with its own area

    @property
    def active(self) -> bool:
        return self.vessels > 0 and self.elements_per_vessel > 0

    @property
    def elements(self) -> int:
        return self.vessels * self.elements_per_vessel if self.active else 0

    @property
    def area_ft2(self) -> float:
        return self.elements * self.hydraulics.area_ft2

    @property
    def membrane_id(self) -> Optional[str]:
        return getattr(self.membrane, "id", None)


@dataclass(frozen=True)
class SequenceOutcome:
    stages: List[StageResult] = field(default_factory=list)
    conc_pressure_psi: float = 0.0
    max_feed_per_vessel_m3h: float = 0.0
    max_feed_stage: Optional[int] = None


def sequence_stages(
    stages: Sequence[ResolvedStage],
    permeate_m3h: float,
    feed_m3h: float,
    feed_pressure_psi: float,
    feed_ions: Mapping[str, float],
    flow_unit: str,
) -> SequenceOutcome:
    active = [s for s in stages if s.active]
    total_vessels = sum(s.vessels for s in active)

    running_feed = feed_m3h
    running_pressure = feed_pressure_psi
    # cumulative concentration of the incoming stream relative to the train feed
    running_cf = 1.0

    results: List[StageResult] = []
    max_pv = 0.0
    max_stage: Optional[int] = None

    for number, stage in enumerate(active, start=1):
        stage_perm = permeate_m3h * safe_div(stage.vessels, total_vessels)
        stage_conc = running_feed - stage_perm

        pv_feed = running_feed / stage.vessels
        pv_conc = stage_conc / stage.vessels

        flux = average_flux_gfd(stage_perm, stage.area_ft2)
        stage_rec = safe_div(stage_perm, running_feed)
        beta = polarization_beta(stage_rec)
        peak = highest_flux_gfd(flux, stage_rec)
        cf = concentration_factor(stage_rec)

        hyd = stage.hydraulics
        drop = pressure_drop_psi(
            stage.elements_per_vessel, hyd.k_fb, hyd.dp_exponent, pv_feed, pv_conc, beta
        )
        conc_pressure = running_pressure - drop

        stage_feed_ions: Dict[str, float] = {
            ion: float(v) * running_cf for ion, v in feed_ions.items()
        }
        ions = project_ions(stage_feed_ions, stage.membrane, cf, beta)

        logger.debug(
            "stage {} ({}x{} {}): Qf={:.3f} Qp={:.3f} Qc={:.3f} m3/h flux={:.1f} gfd dP={:.2f} psi",
            number,
            stage.vessels,
            stage.elements_per_vessel,
            stage.membrane_id,
            running_feed,
            stage_perm,
            stage_conc,
            flux,
            drop,
        )

        results.append(
            StageResult(
                index=number,
                vessels=stage.vessels,
                elements_per_vessel=stage.elements_per_vessel,
                membrane_id=stage.membrane_id,
                feed_flow_m3h=_r(running_feed, 6),
                permeate_flow_m3h=_r(stage_perm, 6),
                concentrate_flow_m3h=_r(stage_conc, 6),
                recovery_pct=_r(stage_rec * 100.0, 2),
                feed_flow_per_vessel_m3h=_r(pv_feed, 2),
                conc_flow_per_vessel_m3h=_r(pv_conc, 2),
                feed_flow_per_vessel_gpm=_r(pv_feed * M3H_TO_GPM, 2),
                conc_flow_per_vessel_gpm=_r(pv_conc * M3H_TO_GPM, 2),
                feed_flow_display=format_flow(from_m3h(pv_feed, flow_unit), flow_unit),
                conc_flow_display=format_flow(from_m3h(pv_conc, flow_unit), flow_unit),
                feed_pressure_bar=_r(psi_to_bar(running_pressure), 1),
                conc_pressure_bar=_r(psi_to_bar(conc_pressure), 1),
                feed_pressure_psi=_r(running_pressure, 1),
                conc_pressure_psi=_r(conc_pressure, 1),
                pressure_drop_bar=_r(psi_to_bar(drop), 2),
                flux_gfd=_r(flux, 1),
                flux_lmh=_r(gfd_to_lmh(flux), 1),
                highest_flux_gfd=_r(peak, 1),
                beta=_r(beta, 2),
                concentration_factor=_r(cf, 3),
                permeate_ions=ions.permeate,
                concentrate_ions=ions.concentrate,
                permeate_tds_mgL=ions.permeate_tds_mgL,
                concentrate_tds_mgL=ions.concentrate_tds_mgL,
            )
        )

        if pv_feed > max_pv:
            max_pv, max_stage = pv_feed, number

        running_feed = max(stage_conc, 0.0)
        running_pressure = conc_pressure
        running_cf *= cf

    return SequenceOutcome(
        stages=results,
        conc_pressure_psi=running_pressure,
        max_feed_per_vessel_m3h=max_pv,
        max_feed_stage=max_stage,
    )


def stage_order_gaps(stages: Sequence[ResolvedStage]) -> List[int]:
    """Positions of active stages that follow an inactive one."""
    gaps: List[int] = []
    seen_inactive = False
    for s in stages:
        if not s.active:
            seen_inactive = True
        elif seen_inactive:
            gaps.append(s.position)
    return gaps
