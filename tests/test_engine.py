# tests/test_engine.py
import math

import pytest
from pydantic import ValidationError

from roprojection.schemas.projection import FeedWater, ProjectionRequest
from roprojection.services.projection.hydraulics import PUMP_KW_DIVISOR
from roprojection.services.projection.engine import ProjectionEngine, run_projection


def _all_finite(obj) -> bool:
    if isinstance(obj, dict):
        return all(_all_finite(v) for v in obj.values())
    if isinstance(obj, list):
        return all(_all_finite(v) for v in obj)
    if isinstance(obj, float):
        return math.isfinite(obj)
    return True


def test_single_stage_scenario():
    out = run_projection(
        {"ca": 60},
        {"permeateFlow": 10, "flowUnit": "m3/h", "recovery": 55,
         "stages": [{"membraneModel": "espa2ld", "elementsPerVessel": 6, "vessels": 2}]},
    )
    cf = 1 / (1 - 0.55)
    beta = math.exp(0.7 * 0.55)

    assert out.hydraulics.concentration_factor == pytest.approx(round(cf, 3))
    assert out.hydraulics.beta == pytest.approx(round(beta, 2))
    assert out.permeate_ions["ca"] == pytest.approx(round(60 * (1 - 0.997) * cf * beta, 3))
    assert out.permeate_ions["ca"] == pytest.approx(0.588)
    assert out.concentrate_ions["ca"] == pytest.approx(round(60 * cf, 3))


def test_train_mass_balance(feed_water, two_stage_config):
    out = run_projection(feed_water, two_stage_config)
    h = out.hydraulics

    assert h.feed_flow_m3h == pytest.approx(40 / 0.75, abs=1e-6)
    assert h.concentrate_flow_m3h == pytest.approx(h.feed_flow_m3h - 40, abs=1e-6)
    for up, down in zip(out.stages, out.stages[1:]):
        assert down.feed_flow_m3h == up.concentrate_flow_m3h
    assert out.stages[-1].concentrate_flow_m3h == pytest.approx(h.concentrate_flow_m3h, abs=1e-6)
    assert sum(s.permeate_flow_m3h for s in out.stages) == pytest.approx(40, abs=1e-5)


def test_idempotent(feed_water, two_stage_config):
    req = ProjectionRequest.model_validate({"waterData": feed_water, "systemConfig": two_stage_config})
    engine = ProjectionEngine()
    first = engine.run(req)
    second = engine.run(req)
    assert first == second
    assert first.model_dump() == second.model_dump()


def test_monotonic_in_recovery(feed_water):
    outs = [
        run_projection(feed_water, {"permeateFlow": 20, "flowUnit": "m3/h", "recovery": r,
                                     "stages": [{"membraneModel": "cpa3", "vessels": 4}]})
        for r in (40, 50, 60, 70, 80)
    ]
    for lo, hi in zip(outs, outs[1:]):
        assert hi.hydraulics.concentration_factor > lo.hydraulics.concentration_factor
        assert hi.hydraulics.beta > lo.hydraulics.beta
        for ion in ("ca", "na", "cl", "so4"):
            assert hi.concentrate_ions[ion] > lo.concentrate_ions[ion]


def test_warning_trigger_only_flux():
    out = run_projection(
        {},
        {"permeateFlow": 10, "flowUnit": "m3/h", "recovery": 50,
         "stages": [{"membraneModel": "cpa3", "elementsPerVessel": 1, "vessels": 6}],
         "membraneAge": 0},
    )
    assert out.hydraulics.highest_flux_gfd > 20
    assert [w.key for w in out.warnings] == ["flux_high"]
    assert out.warnings[0].message == "Design limits exceeded: Flux too high"


def test_feed_per_vessel_warning_emitted_once():
    out = run_projection(
        {"na": 100, "cl": 150},
        {"permeateFlow": 30, "flowUnit": "m3/h", "recovery": 50,
         "stages": [{"membraneModel": "cpa3", "vessels": 4}, {"membraneModel": "cpa3", "vessels": 2}]},
    )
    keys = [w.key for w in out.warnings]
    assert keys.count("feed_per_vessel_high") == 1


def test_degenerate_stage_is_skipped(feed_water, two_stage_config):
    plain = run_projection(feed_water, two_stage_config)
    cfg = dict(two_stage_config)
    cfg["stages"] = [
        two_stage_config["stages"][0],
        {"membraneModel": "cpa3", "elementsPerVessel": 6, "vessels": 0},
        two_stage_config["stages"][1],
    ]
    gapped = run_projection(feed_water, cfg)

    assert len(gapped.stages) == 2
    assert gapped.stages == plain.stages
    assert gapped.hydraulics == plain.hydraulics
    assert _all_finite(gapped.model_dump())


def test_bad_numerics_fall_back_to_defaults():
    out = run_projection(
        {"temp": "hot", "ph": None, "ca": "n/a", "na": float("nan")},
        {"permeateFlow": "abc", "recovery": None, "numTrains": 0, "flowUnit": "cubits",
         "stages": [{"membraneModel": "unknown-model", "vessels": "x", "elementsPerVessel": None}]},
    )
    h = out.hydraulics
    assert h.flow_unit == "gpm"
    assert h.recovery_pct == pytest.approx(55.0)
    assert h.permeate_flow_m3h == pytest.approx(77 * 0.2271, abs=1e-6)
    assert h.num_trains == 1
    # vessels 기본값 0 -> 활성 스테이지 없음
    assert out.stages == []
    assert _all_finite(out.model_dump())


def test_unknown_stage_membrane_falls_back_to_lead(feed_water):
    out = run_projection(
        feed_water,
        {"stages": [{"membraneModel": "swc5ld", "vessels": 4}, {"membraneModel": "nope", "vessels": 2}]},
    )
    assert [s.membrane_id for s in out.stages] == ["swc5ld", "swc5ld"]


def test_trains_scale_plant_totals(feed_water, single_stage_config):
    one = run_projection(feed_water, single_stage_config)
    cfg = dict(single_stage_config, numTrains=3)
    three = run_projection(feed_water, cfg)

    assert three.hydraulics.permeate_flow_m3h == one.hydraulics.permeate_flow_m3h
    assert three.hydraulics.total_permeate_flow_m3h == pytest.approx(3 * one.hydraulics.permeate_flow_m3h, abs=1e-5)
    assert three.energy.pump_power_kw == pytest.approx(3 * one.energy.pump_power_kw, abs=0.05)


def test_total_area_from_stage_membranes(feed_water):
    out = run_projection(
        feed_water,
        {"permeateFlow": 10, "flowUnit": "m3/h",
         "stages": [{"membraneModel": "espa2ld", "vessels": 2}, {"membraneModel": "lfc3ld4040", "vessels": 1}]},
    )
    assert out.hydraulics.total_elements == 18
    assert out.hydraulics.total_area_ft2 == pytest.approx(12 * 400 + 6 * 80)


def test_flux_display(feed_water, single_stage_config):
    shown = run_projection(feed_water, single_stage_config).hydraulics
    assert shown.flux_display == f"{shown.avg_flux_gfd:.1f}"

    pending = run_projection(feed_water, dict(single_stage_config, designCalculated=False)).hydraulics
    assert pending.flux_display == "0.00"

    lmh = run_projection(feed_water, dict(single_stage_config, fluxUnit="lmh")).hydraulics
    assert lmh.flux_unit == "lmh"
    assert float(lmh.flux_display) == pytest.approx(shown.avg_flux_lmh, abs=0.1)


def test_aging_raises_feed_pressure(feed_water, single_stage_config):
    new = run_projection(feed_water, single_stage_config).hydraulics
    old = run_projection(feed_water, dict(single_stage_config, membraneAge=5)).hydraulics
    assert old.feed_pressure_psi > new.feed_pressure_psi


def test_result_sections(feed_water, single_stage_config):
    out = run_projection(feed_water, dict(single_stage_config, chemical="Antiscalant", chemicalDose=3))
    assert out.permeate.ph == pytest.approx(4.9)
    assert out.concentrate.langelier is not None
    assert out.concentrate.osmotic_pressure_bar > 0
    assert out.saturation.sio2_pct > 0
    assert out.chemical.chemical == "Antiscalant"
    assert out.chemical.active_kg_h > 0
    assert out.energy.specific_energy_kwh_m3 > 0
    assert out.schema_version == 1


def test_ion_override_from_library_entry():
    out = run_projection(
        {"ca": 60, "na": 100},
        {"permeateFlow": 10, "flowUnit": "m3/h", "recovery": 55,
         "stages": [{"membraneModel": "ovr", "vessels": 2}]},
        membranes=[{"id": "ovr", "rejection": 99.7, "ionRejectionOverrides": {"ca": 90.0}}],
    )
    cf = 1 / (1 - 0.55)
    beta = math.exp(0.7 * 0.55)

    assert out.permeate_ions["ca"] == pytest.approx(round(60 * 0.1 * cf * beta, 3))
    # 오버라이드 없는 이온은 기본 규칙 (99.7 - 6)
    assert out.permeate_ions["na"] == pytest.approx(round(100 * (1 - 0.937) * cf * beta, 3))
    assert out.stages[0].permeate_ions["ca"] == pytest.approx(out.permeate_ions["ca"], abs=1e-3)


def test_fahrenheit_feed_temperature(single_stage_config):
    assert FeedWater.model_validate({"tempF": 77}).temperature_C == pytest.approx(25.0)
    assert FeedWater.model_validate({"temperature_F": 95}).temperature_C == pytest.approx(35.0)
    # °C 키가 있으면 °C 우선
    assert FeedWater.model_validate({"temp": 30, "tempF": 95}).temperature_C == pytest.approx(30.0)
    assert FeedWater.model_validate({"tempF": "warm"}).temperature_C == pytest.approx(25.0)

    out = run_projection({"tempF": 95, "ca": 60}, single_stage_config)
    expected = math.exp(2640 * (1 / 298.15 - 1 / 308.15))
    assert out.hydraulics.tcf == pytest.approx(round(expected, 3))
    assert out.hydraulics.tcf == pytest.approx(1.333)


def test_result_ion_maps_are_read_only(feed_water, two_stage_config):
    out = run_projection(feed_water, two_stage_config)

    with pytest.raises(TypeError):
        out.permeate_ions["ca"] = 0.0
    with pytest.raises(ValidationError):
        out.concentrate_ions.ca = 0.0
    with pytest.raises(TypeError):
        out.stages[0].permeate_ions["na"] = 0.0
    with pytest.raises(KeyError):
        out.permeate_ions["unobtainium"]

    assert out.permeate_ions.as_dict()["ca"] == out.permeate_ions["ca"]
    assert out.model_dump()["permeate_ions"]["ca"] == out.permeate_ions["ca"]


def test_pump_power_uses_reported_bar(feed_water, single_stage_config):
    out = run_projection(feed_water, single_stage_config)
    h = out.hydraulics
    expected_kw = h.feed_pressure_psi / 14.5038 * h.total_feed_flow_m3h / PUMP_KW_DIVISOR / 0.75

    assert PUMP_KW_DIVISOR == 36.0
    assert out.energy.pump_power_kw == pytest.approx(expected_kw, rel=1e-2)
