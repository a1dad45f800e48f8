# roprojection/services/membranes.py
"""
Membrane library lookup and property resolution.

Rejection for an ion is resolved by a prioritized rule chain:

    explicit per-ion override  >  category value  >  base rejection - category offset

Category values are clamped to their band; overrides are returned verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from roprojection.core.errors import MembraneNotFoundError
from roprojection.schemas.common import IonCategory
from roprojection.schemas.membrane import Membrane, default_library
from roprojection.services.projection.utils import _f, _f_nonzero, clamp

DEFAULT_BASE_REJECTION_PCT = 99.7
DEFAULT_AREA_FT2 = 400.0
DEFAULT_A_VALUE = 0.12  # gfd/psi
DEFAULT_K_FB = 0.315
DEFAULT_DP_EXPONENT = 1.75

BASE_REJECTION_BAND = (80.0, 99.9)

ION_CATEGORIES: Dict[str, IonCategory] = {
    "ca": IonCategory.DIVALENT,
    "mg": IonCategory.DIVALENT,
    "sr": IonCategory.DIVALENT,
    "ba": IonCategory.DIVALENT,
    "so4": IonCategory.DIVALENT,
    "po4": IonCategory.DIVALENT,
    "na": IonCategory.MONOVALENT,
    "k": IonCategory.MONOVALENT,
    "cl": IonCategory.MONOVALENT,
    "no3": IonCategory.MONOVALENT,
    "f": IonCategory.MONOVALENT,
    "nh4": IonCategory.MONOVALENT,
    "hco3": IonCategory.ALKALINITY,
    "co3": IonCategory.ALKALINITY,
    "sio2": IonCategory.SILICA,
    "b": IonCategory.BORON,
    "co2": IonCategory.CO2,
}


@dataclass(frozen=True)
class _CategoryRule:
    field: str
    offset: float  # subtracted from base rejection when the field is blank
    lo: float
    hi: float
    from_base: bool = True


CATEGORY_RULES: Dict[IonCategory, _CategoryRule] = {
    IonCategory.DIVALENT: _CategoryRule("divalent_rejection", 0.0, 80.0, 99.9),
    IonCategory.MONOVALENT: _CategoryRule("mono_rejection", 6.0, 80.0, 99.9),
    IonCategory.ALKALINITY: _CategoryRule("alkalinity_rejection", 0.2, 80.0, 99.9),
    IonCategory.SILICA: _CategoryRule("silica_rejection", 1.0, 80.0, 99.9),
    IonCategory.BORON: _CategoryRule("boron_rejection", 8.0, 60.0, 99.9),
    # dissolved CO2 passes freely unless the catalogue says otherwise
    IonCategory.CO2: _CategoryRule("co2_rejection", 0.0, 0.0, 99.9, from_base=False),
}


@dataclass(frozen=True)
class MembraneHydraulics:
    area_ft2: float
    a_value: float
    k_fb: float
    dp_exponent: float


# =============================================================================
# Rejection resolution
# =============================================================================
def classify_ion(ion: str) -> IonCategory:
    return ION_CATEGORIES.get(str(ion).strip().lower(), IonCategory.UNCLASSIFIED)


def base_rejection(membrane: Optional[Membrane]) -> float:
    raw = getattr(membrane, "rejection", None)
    lo, hi = BASE_REJECTION_BAND
    return clamp(_f_nonzero(raw, DEFAULT_BASE_REJECTION_PCT), lo, hi)


def category_rejection(membrane: Optional[Membrane], category: IonCategory) -> float:
    rule = CATEGORY_RULES.get(category)
    if rule is None:
        return base_rejection(membrane)
    default = base_rejection(membrane) - rule.offset if rule.from_base else 0.0
    value = _f_nonzero(getattr(membrane, rule.field, None), default)
    return clamp(value, rule.lo, rule.hi)


def _from_override(membrane: Optional[Membrane], ion: str) -> Optional[float]:
    overrides = getattr(membrane, "ion_rejection_overrides", None) or {}
    if ion in overrides:
        return _f(overrides[ion], base_rejection(membrane))
    return None


def _from_category(membrane: Optional[Membrane], ion: str) -> Optional[float]:
    category = classify_ion(ion)
    if category is IonCategory.UNCLASSIFIED:
        return None
    return category_rejection(membrane, category)


REJECTION_RULES: Sequence[Callable[[Optional[Membrane], str], Optional[float]]] = (
    _from_override,
    _from_category,
)


def resolve_rejection(membrane: Optional[Membrane], ion: str) -> float:
    """Rejection (%) of `ion` for `membrane` (None -> catalogue defaults)."""
    key = str(ion).strip().lower()
    for rule in REJECTION_RULES:
        value = rule(membrane, key)
        if value is not None:
            return value
    return base_rejection(membrane)


def resolve_hydraulics(membrane: Optional[Membrane]) -> MembraneHydraulics:
    def pick(field: str, default: float) -> float:
        x = _f(getattr(membrane, field, None), default)
        return x if x > 0 else default

    return MembraneHydraulics(
        area_ft2=pick("area_ft2", DEFAULT_AREA_FT2),
        a_value=pick("a_value", DEFAULT_A_VALUE),
        k_fb=pick("k_fb", DEFAULT_K_FB),
        dp_exponent=pick("dp_exponent", DEFAULT_DP_EXPONENT),
    )


# =============================================================================
# Library lookup
# =============================================================================
def find_membrane(
    library: Iterable[Membrane], membrane_id: Optional[str]
) -> Optional[Membrane]:
    if not membrane_id:
        return None
    cid = str(membrane_id).strip().lower()
    for m in library or []:
        if str(m.id or "").strip().lower() == cid:
            return m
    return None


def get_membrane(
    membrane_id: str, library: Optional[Iterable[Membrane]] = None
) -> Membrane:
    lib = default_library() if library is None else library
    entry = find_membrane(lib, membrane_id)
    if entry is None:
        raise MembraneNotFoundError(membrane_id)
    return entry


def list_membranes(
    type: Optional[str] = None,
    q: Optional[str] = None,
    limit: Optional[int] = None,
    library: Optional[Iterable[Membrane]] = None,
) -> List[Membrane]:
    lib = default_library() if library is None else list(library)
    mtype = (type or "").strip().lower()
    ql = (q or "").strip().lower()
    out: List[Membrane] = []
    for entry in lib:
        if mtype and (entry.type or "").strip().lower() != mtype:
            continue
        if ql:
            hay = " ".join([entry.id or "", entry.name or "", entry.type or ""]).lower()
            if ql not in hay:
                continue
        out.append(entry)
        if limit and len(out) >= limit:
            break
    return out
