# tests/test_units.py
import pytest

from roprojection.services.units import (
    FLOW_TO_M3H,
    FlowDisplayMemo,
    bar_to_psi,
    f_to_c,
    flow_decimals,
    format_flow,
    format_flux,
    from_m3h,
    normalize_flow_unit,
    psi_to_bar,
    to_m3h,
)


def test_flow_table_factors():
    assert FLOW_TO_M3H["m3/h"] == 1.0
    assert to_m3h(1, "gpm") == pytest.approx(0.2271)
    assert to_m3h(24, "m3/d") == pytest.approx(1.0)
    assert to_m3h(1, "mld") == pytest.approx(41.667)


def test_unknown_unit_falls_back_to_gpm():
    assert normalize_flow_unit("furlongs/fortnight") == "gpm"
    assert normalize_flow_unit(None) == "gpm"
    assert normalize_flow_unit(" M3/H ") == "m3/h"
    assert to_m3h(10, "bogus") == pytest.approx(2.271)


@pytest.mark.parametrize(
    "unit, decimals",
    [("gpm", 2), ("m3/h", 2), ("gpd", 1), ("m3/d", 1), ("mgd", 3), ("migd", 3), ("mld", 3)],
)
def test_display_precision(unit, decimals):
    assert flow_decimals(unit) == decimals
    text = format_flow(1.23456, unit)
    assert len(text.split(".")[1]) == decimals


@pytest.mark.parametrize("unit", sorted(FLOW_TO_M3H))
def test_unit_round_trip_within_display_precision(unit):
    value = 123.456
    back = from_m3h(to_m3h(value, unit), unit)
    assert format_flow(back, unit) == format_flow(value, unit)


def test_flux_display_before_and_after_run():
    assert format_flux(17.26, calculated=False, flow_unit="gpm") == "0.00"
    assert format_flux(17.26, calculated=False, flow_unit="gpd") == "0.0"
    assert format_flux(17.26, calculated=False, flow_unit="mgd") == "0.000"
    assert format_flux(17.26, calculated=True, flow_unit="mgd") == "17.3"


def test_pressure_conversion():
    assert bar_to_psi(1.0) == pytest.approx(14.5038)
    assert psi_to_bar(bar_to_psi(12.3)) == pytest.approx(12.3)


def test_display_memo_toggle_does_not_drift():
    memo = FlowDisplayMemo()
    memo.remember({"permeate": 17.4867})

    first = memo.display("gpm")["permeate"]
    for unit in ("mgd", "m3/d", "gpd", "mld", "gpm"):
        memo.display(unit)
    assert memo.display("gpm")["permeate"] == first
    assert memo.value_in("permeate", "m3/h") == pytest.approx(17.4867)
    assert memo.value_in("missing", "gpm") is None


def test_fahrenheit_to_celsius():
    assert f_to_c(77) == pytest.approx(25.0)
