# roprojection/services/projection/engine.py
from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence, Union

from loguru import logger

from roprojection.schemas.membrane import Membrane
from roprojection.schemas.projection import (
    ChemicalUsageOut,
    EnergyOut,
    FeedWater,
    ProjectionRequest,
    ProjectionResult,
    SaturationOut,
    StreamParameters,
    SystemConfiguration,
    TrainHydraulics,
)
from roprojection.services.membranes import (
    default_library,
    find_membrane,
    resolve_hydraulics,
)
from roprojection.services.transport import project_ions
from roprojection.services.units import (
    format_flow,
    format_flux,
    from_m3h,
    gfd_to_lmh,
    normalize_flow_unit,
    psi_to_bar,
    to_m3h,
)
from roprojection.services.water_chemistry import (
    ScalingProfile,
    calc_scaling_indices,
    concentrate_ph,
    permeate_ph,
)
from roprojection.services.projection.hydraulics import (
    average_flux_gfd,
    balance_train,
    chemical_usage,
    highest_flux_gfd,
    pump_energy,
    recovery_fraction,
)
from roprojection.services.projection.pressure import (
    effective_permeability,
    feed_pressure_psi,
    fouling_multiplier,
    osmotic_pressure_psi,
    salt_passage_aging,
    tcf,
)
from roprojection.services.projection.sequencer import (
    ResolvedStage,
    sequence_stages,
    stage_order_gaps,
)
from roprojection.services.projection.utils import _f, _r, safe_div
from roprojection.services.projection.validator import build_design_warnings


FeedLike = Union[FeedWater, Mapping]
ConfigLike = Union[SystemConfiguration, Mapping]


# =============================================================================
# membrane / stage resolution
# =============================================================================
def _lead_membrane(
    config: SystemConfiguration, library: Sequence[Membrane]
) -> Optional[Membrane]:
    """첫 번째 활성 스테이지의 막 -> config 기본 막 -> 라이브러리 첫 항목."""
    lead_id = None
    for st in config.stages:
        if st.vessels > 0 and st.elements_per_vessel > 0:
            lead_id = st.membrane_model
            break
    for candidate in (lead_id, config.membrane_model):
        found = find_membrane(library, candidate)
        if found is not None:
            return found
    return library[0] if library else None


def _resolve_stages(
    config: SystemConfiguration,
    library: Sequence[Membrane],
    lead: Optional[Membrane],
) -> List[ResolvedStage]:
    out: List[ResolvedStage] = []
    for pos, st in enumerate(config.stages):
        own = find_membrane(library, st.membrane_model)
        membrane = own or lead
        out.append(
            ResolvedStage(
                position=pos,
                vessels=max(int(st.vessels), 0),
                elements_per_vessel=max(int(st.elements_per_vessel), 0),
                membrane=membrane,
                hydraulics=resolve_hydraulics(membrane),
                own_area=own is not None and _f(own.area_ft2) > 0,
            )
        )
    return out


class ProjectionEngine:
    """
    [RO Projection Engine]
    - stateless: run() builds a fresh ProjectionResult on every call
    - never raises on bad numerics; limit violations become DesignWarning
    """

    def run(self, request: ProjectionRequest) -> ProjectionResult:
        feed = request.feed
        cfg = request.config
        library = list(request.membranes or [])

        # -----------------------------
        # Inputs
        # -----------------------------
        flow_unit = normalize_flow_unit(cfg.flow_unit)
        permeate_m3h = max(to_m3h(_f(cfg.permeate_flow), flow_unit), 0.0)
        recovery = recovery_fraction(cfg.recovery_pct)
        trains = max(int(cfg.num_trains or 1), 1)
        temp_c = _f(feed.temperature_C, 25.0)
        feed_ph = _f(feed.ph, 7.0)
        feed_ions = feed.ions.as_dict()

        bal = balance_train(permeate_m3h, recovery)

        # -----------------------------
        # Array
        # -----------------------------
        lead = _lead_membrane(cfg, library)
        stages = _resolve_stages(cfg, library, lead)
        active = [s for s in stages if s.active]

        gaps = stage_order_gaps(stages)
        if gaps:
            logger.warning(
                "active stage(s) at position {} follow an inactive stage; inactive stages are skipped",
                [g + 1 for g in gaps],
            )
        skipped = len(stages) - len(active)
        if skipped:
            logger.warning("{} stage(s) without vessels/elements skipped", skipped)

        lead_hyd = resolve_hydraulics(lead)
        total_elements = sum(s.elements for s in active)
        if active and all(s.own_area for s in active):
            total_area = sum(s.area_ft2 for s in active)
        else:
            total_area = total_elements * lead_hyd.area_ft2

        avg_flux = average_flux_gfd(bal.permeate_m3h, total_area)
        peak_flux = highest_flux_gfd(avg_flux, recovery)

        # -----------------------------
        # Ion transport (train level, lead membrane)
        # -----------------------------
        ions = project_ions(feed_ions, lead, bal.cf, bal.beta)

        # -----------------------------
        # Pressure & aging
        # -----------------------------
        aging = cfg.aging
        tcf_value = tcf(temp_c)
        a_eff = effective_permeability(
            lead_hyd.a_value, aging.membrane_age_years, aging.flux_decline_pct_per_year
        )
        sp_factor = salt_passage_aging(aging.membrane_age_years, aging.sp_increase_pct_per_year)
        fouling = fouling_multiplier(aging.fouling_factor)

        conc_osm = osmotic_pressure_psi(ions.concentrate_tds_mgL, temp_c)
        perm_osm = osmotic_pressure_psi(ions.permeate_tds_mgL, temp_c)
        feed_p = feed_pressure_psi(avg_flux, tcf_value, a_eff, fouling, conc_osm, sp_factor)

        # -----------------------------
        # Stage sequencing
        # -----------------------------
        seq = sequence_stages(
            stages, bal.permeate_m3h, bal.feed_m3h, feed_p, feed_ions, flow_unit
        )
        conc_p = seq.conc_pressure_psi if seq.stages else feed_p

        lead_vessels = active[0].vessels if active else 0
        pv_feed = safe_div(bal.feed_m3h, lead_vessels)
        pv_conc = safe_div(bal.concentrate_m3h, lead_vessels)

        # -----------------------------
        # Chemistry
        # -----------------------------
        perm_ph = permeate_ph(feed_ph)
        conc_ph = concentrate_ph(feed_ph, bal.cf)
        profile = ScalingProfile.from_ions(
            ions.concentrate, ions.concentrate_tds_mgL, temp_c, conc_ph
        )
        idx = calc_scaling_indices(profile)

        warnings = build_design_warnings(
            peak_flux,
            seq.max_feed_per_vessel_m3h,
            conc_p,
            conc_osm,
            feed_stage=seq.max_feed_stage,
        )

        # -----------------------------
        # Plant totals / dosing / energy
        # -----------------------------
        plant_perm = bal.permeate_m3h * trains
        plant_feed = bal.feed_m3h * trains

        dosing = cfg.dosing
        chem = chemical_usage(
            dosing.chemical, dosing.dose, dosing.dose_unit, dosing.concentration_pct, bal.feed_m3h
        )
        energy = pump_energy(
            psi_to_bar(feed_p), plant_feed, plant_perm, cfg.pump_efficiency, cfg.energy_cost_per_kwh
        )

        flux_unit = "lmh" if str(cfg.flux_unit or "").strip().lower() == "lmh" else "gfd"
        flux_value = gfd_to_lmh(avg_flux) if flux_unit == "lmh" else avg_flux

        hydraulics = TrainHydraulics(
            flow_unit=flow_unit,
            num_trains=trains,
            recovery_pct=_r(recovery * 100.0, 2),
            permeate_flow_m3h=_r(bal.permeate_m3h, 6),
            feed_flow_m3h=_r(bal.feed_m3h, 6),
            concentrate_flow_m3h=_r(bal.concentrate_m3h, 6),
            permeate_flow_display=format_flow(from_m3h(bal.permeate_m3h, flow_unit), flow_unit),
            feed_flow_display=format_flow(from_m3h(bal.feed_m3h, flow_unit), flow_unit),
            concentrate_flow_display=format_flow(from_m3h(bal.concentrate_m3h, flow_unit), flow_unit),
            total_permeate_flow_m3h=_r(plant_perm, 6),
            total_feed_flow_m3h=_r(plant_feed, 6),
            total_permeate_flow_display=format_flow(from_m3h(plant_perm, flow_unit), flow_unit),
            total_elements=total_elements,
            total_area_ft2=_r(total_area, 1),
            avg_flux_gfd=_r(avg_flux, 1),
            avg_flux_lmh=_r(gfd_to_lmh(avg_flux), 1),
            highest_flux_gfd=_r(peak_flux, 1),
            flux_unit=flux_unit,
            flux_display=format_flux(flux_value, cfg.design_calculated, flow_unit),
            feed_flow_per_vessel_m3h=_r(pv_feed, 2),
            conc_flow_per_vessel_m3h=_r(pv_conc, 2),
            beta=_r(bal.beta, 2),
            concentration_factor=_r(bal.cf, 3),
            tcf=_r(tcf_value, 3),
            feed_pressure_bar=_r(psi_to_bar(feed_p), 1),
            conc_pressure_bar=_r(psi_to_bar(conc_p), 1),
            feed_pressure_psi=_r(feed_p, 1),
            conc_pressure_psi=_r(conc_p, 1),
        )

        logger.info(
            "projection done: trains={} stages={} Qp={:.2f} m3/h r={:.2f} flux={:.1f} gfd Pf={:.1f} psi warnings={}",
            trains,
            len(seq.stages),
            bal.permeate_m3h,
            recovery,
            avg_flux,
            feed_p,
            len(warnings),
        )

        return ProjectionResult(
            hydraulics=hydraulics,
            stages=seq.stages,
            permeate_ions=ions.permeate,
            concentrate_ions=ions.concentrate,
            permeate=StreamParameters(
                ph=_r(perm_ph, 1),
                tds_mgL=_r(ions.permeate_tds_mgL, 2),
                osmotic_pressure_bar=_r(psi_to_bar(perm_osm), 2),
                osmotic_pressure_psi=_r(perm_osm, 2),
            ),
            concentrate=StreamParameters(
                ph=_r(conc_ph, 1),
                tds_mgL=_r(ions.concentrate_tds_mgL, 2),
                osmotic_pressure_bar=_r(psi_to_bar(conc_osm), 1),
                osmotic_pressure_psi=_r(conc_osm, 1),
                langelier=_r(idx["lsi"], 2),
                ph_saturation=_r(idx["phs"], 2),
                ccpp=_r(idx["ccpp"], 1),
            ),
            saturation=SaturationOut(
                caso4_pct=idx["caso4_pct"],
                baso4_pct=idx["baso4_pct"],
                srso4_pct=idx["srso4_pct"],
                sio2_pct=idx["sio2_pct"],
                ca3po42_pct=idx["ca3po42_pct"],
                caf2_pct=idx["caf2_pct"],
            ),
            chemical=ChemicalUsageOut(**chem),
            energy=EnergyOut(**energy),
            warnings=warnings,
        )


def run_projection(
    feed: Optional[FeedLike] = None,
    config: Optional[ConfigLike] = None,
    membranes: Optional[Iterable[Union[Membrane, Mapping]]] = None,
) -> ProjectionResult:
    """Convenience entry: accepts models or plain dicts (saved-design JSON)."""
    payload = {
        "feed": feed if feed is not None else {},
        "config": config if config is not None else {},
    }
    if membranes is not None:
        payload["membranes"] = list(membranes)
    else:
        payload["membranes"] = default_library()
    request = ProjectionRequest.model_validate(payload)
    return ProjectionEngine().run(request)
