# roprojection/schemas/membrane.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, field_validator

from roprojection.data.membranes import MEMBRANES

from .common import InputModel, _finite_or_none


class Membrane(InputModel):
    """
    One membrane-library entry. Every performance field is optional: the
    resolver fills gaps with bounded defaults.
    """

    id: str
    name: Optional[str] = None
    type: Optional[str] = Field(
        default=None, description="Brackish / Seawater / Low Fouling ..."
    )

    # Physical Dimensions
    area_ft2: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("area_ft2", "area"),
        description="Active surface area per element (ft2)",
    )

    # Hydraulics
    a_value: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("a_value", "aValue", "A"),
        description="Water permeability coefficient (gfd/psi)",
    )
    k_fb: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("k_fb", "kFb"),
        description="Feed-brine pressure drop coefficient per element",
    )
    dp_exponent: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("dp_exponent", "dpExponent")
    )

    # Rejection (%)
    rejection: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("rejection", "salt_rejection_pct"),
    )
    mono_rejection: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("mono_rejection", "monoRejection")
    )
    divalent_rejection: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("divalent_rejection", "divalentRejection"),
    )
    alkalinity_rejection: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("alkalinity_rejection", "alkalinityRejection"),
    )
    silica_rejection: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("silica_rejection", "silicaRejection"),
    )
    boron_rejection: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("boron_rejection", "boronRejection"),
    )
    co2_rejection: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("co2_rejection", "co2Rejection")
    )

    ion_rejection_overrides: Dict[str, float] = Field(
        default_factory=dict,
        validation_alias=AliasChoices(
            "ion_rejection_overrides", "ionRejectionOverrides", "overrides"
        ),
    )

    @field_validator("ion_rejection_overrides", mode="before")
    @classmethod
    def _normalize_overrides(cls, v: Any) -> Dict[str, float]:
        # 키는 소문자로, 숫자가 아닌 값은 버림
        if not isinstance(v, dict):
            return {}
        out: Dict[str, float] = {}
        for k, raw in v.items():
            x = _finite_or_none(raw)
            if x is not None:
                out[str(k).strip().lower()] = x
        return out


def default_library() -> List[Membrane]:
    return [Membrane.model_validate(m) for m in MEMBRANES]
