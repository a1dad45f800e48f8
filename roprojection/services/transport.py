# roprojection/services/transport.py
# Ion transport: salt passage = (1 - rejection) * CF * beta, concentrate = feed * CF.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from roprojection.schemas.membrane import Membrane
from roprojection.services.membranes import resolve_rejection
from roprojection.services.projection.utils import _f, _r

CONC_DECIMALS = 3


@dataclass(frozen=True)
class IonProjection:
    permeate: Dict[str, float] = field(default_factory=dict)
    concentrate: Dict[str, float] = field(default_factory=dict)
    permeate_tds_mgL: float = 0.0
    concentrate_tds_mgL: float = 0.0


def salt_passage_fraction(rejection_pct: float, cf: float, beta: float) -> float:
    passage = max(1.0 - _f(rejection_pct) / 100.0, 0.0)
    return passage * cf * beta


def project_ions(
    feed_ions: Mapping[str, float],
    membrane: Optional[Membrane],
    cf: float,
    beta: float,
) -> IonProjection:
    """
    Permeate / concentrate concentration for every ion in `feed_ions`.

    TDS is summed from the unrounded values and rounded once at the end,
    individual concentrations are rounded to 3 decimals.
    """
    permeate: Dict[str, float] = {}
    concentrate: Dict[str, float] = {}
    perm_tds = 0.0
    conc_tds = 0.0

    for ion, raw in feed_ions.items():
        feed_conc = max(_f(raw), 0.0)
        rejection = resolve_rejection(membrane, ion)
        perm = feed_conc * salt_passage_fraction(rejection, cf, beta)
        conc = feed_conc * cf

        permeate[ion] = _r(perm, CONC_DECIMALS)
        concentrate[ion] = _r(conc, CONC_DECIMALS)
        perm_tds += perm
        conc_tds += conc

    return IonProjection(
        permeate=permeate,
        concentrate=concentrate,
        permeate_tds_mgL=_r(perm_tds, CONC_DECIMALS),
        concentrate_tds_mgL=_r(conc_tds, CONC_DECIMALS),
    )
