# tests/test_membranes.py
import pytest

from roprojection.core.errors import MembraneNotFoundError
from roprojection.schemas.common import IonCategory
from roprojection.schemas.membrane import Membrane
from roprojection.services.membranes import (
    classify_ion,
    find_membrane,
    get_membrane,
    list_membranes,
    resolve_hydraulics,
    resolve_rejection,
)


def _m(**kw) -> Membrane:
    return Membrane.model_validate({"id": "test", **kw})


def test_ion_classification():
    assert classify_ion("Ca") is IonCategory.DIVALENT
    assert classify_ion("po4") is IonCategory.DIVALENT
    assert classify_ion("nh4") is IonCategory.MONOVALENT
    assert classify_ion("co3") is IonCategory.ALKALINITY
    assert classify_ion("sio2") is IonCategory.SILICA
    assert classify_ion("b") is IonCategory.BORON
    assert classify_ion("co2") is IonCategory.CO2
    assert classify_ion("fe") is IonCategory.UNCLASSIFIED


def test_category_defaults_from_base_rejection():
    m = _m(rejection=99.5)
    assert resolve_rejection(m, "ca") == pytest.approx(99.5)
    assert resolve_rejection(m, "na") == pytest.approx(93.5)
    assert resolve_rejection(m, "hco3") == pytest.approx(99.3)
    assert resolve_rejection(m, "sio2") == pytest.approx(98.5)
    assert resolve_rejection(m, "b") == pytest.approx(91.5)
    assert resolve_rejection(m, "co2") == 0.0
    # 분류되지 않은 이온은 기본 제거율
    assert resolve_rejection(m, "fe") == pytest.approx(99.5)


def test_missing_membrane_uses_catalogue_defaults():
    assert resolve_rejection(None, "ca") == pytest.approx(99.7)
    assert resolve_rejection(None, "cl") == pytest.approx(93.7)


def test_zero_field_counts_as_missing():
    m = _m(rejection=99.7, monoRejection=0)
    assert resolve_rejection(m, "na") == pytest.approx(93.7)


def test_category_bands_are_clamped():
    m = _m(rejection=50, monoRejection=100, boronRejection=10, co2Rejection=150)
    assert resolve_rejection(m, "ca") == pytest.approx(80.0)
    assert resolve_rejection(m, "na") == pytest.approx(99.9)
    assert resolve_rejection(m, "b") == pytest.approx(60.0)
    assert resolve_rejection(m, "co2") == pytest.approx(99.9)


def test_override_wins_and_is_verbatim():
    m = _m(rejection=99.7, monoRejection=96, ionRejectionOverrides={"NA": 93.04, "ca": 99.99})
    assert resolve_rejection(m, "na") == 93.04
    assert resolve_rejection(m, "ca") == 99.99  # above the 99.9 category ceiling
    assert resolve_rejection(m, "cl") == pytest.approx(96.0)


@pytest.mark.parametrize("alias", ["ion_rejection_overrides", "ionRejectionOverrides", "overrides"])
def test_overrides_survive_input_coercion(alias):
    m = Membrane.model_validate({"id": "x", "rejection": 99.7, alias: {"Ca": 90.0, "na": "bad"}})
    assert m.ion_rejection_overrides == {"ca": 90.0}
    assert m.rejection == 99.7


def test_hydraulic_defaults():
    h = resolve_hydraulics(_m())
    assert (h.area_ft2, h.a_value, h.k_fb, h.dp_exponent) == (400.0, 0.12, 0.315, 1.75)

    h = resolve_hydraulics(_m(area=80, aValue=0.18, kFb=0.2, dpExponent=1.6))
    assert (h.area_ft2, h.a_value, h.k_fb, h.dp_exponent) == (80.0, 0.18, 0.2, 1.6)


def test_library_lookup(library):
    assert find_membrane(library, "ESPA2LD").id == "espa2ld"
    assert find_membrane(library, "nope") is None
    assert get_membrane("lfc3ld4040").area_ft2 == 80
    with pytest.raises(MembraneNotFoundError):
        get_membrane("nope")


def test_list_membranes_filters():
    assert {m.id for m in list_membranes(type="seawater")} == {"swc5ld"}
    assert [m.id for m in list_membranes(q="lfc")] == ["lfc3ld4040"]
    assert len(list_membranes(limit=2)) == 2
