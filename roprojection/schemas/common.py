# roprojection/schemas/common.py
from __future__ import annotations

import math
import types
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import AliasChoices, BaseModel, ConfigDict, model_validator


class AppBaseModel(BaseModel):
    """모든 입력 모델의 부모 클래스: V2 설정 적용"""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        from_attributes=True,
    )


class ResultModel(AppBaseModel):
    """Output models are immutable: a new result is produced on every run."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        from_attributes=True,
        frozen=True,
    )


class IonCategory(str, Enum):
    DIVALENT = "divalent"
    MONOVALENT = "monovalent"
    ALKALINITY = "alkalinity"
    SILICA = "silica"
    BORON = "boron"
    CO2 = "co2"
    UNCLASSIFIED = "unclassified"


# Feed-water ions tracked by the projection (mg/L keys, WAVE-like order)
TRACKED_IONS: Tuple[str, ...] = (
    "ca",
    "mg",
    "na",
    "k",
    "sr",
    "ba",
    "nh4",
    "hco3",
    "co3",
    "so4",
    "cl",
    "no3",
    "f",
    "po4",
    "sio2",
    "b",
    "co2",
)


# =============================================================================
# Helpers: treat explicit null / garbage numerics as "missing"
# =============================================================================
def drop_none_recursive(obj: Any) -> Any:
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            if v is None:
                continue
            out[k] = drop_none_recursive(v)
        return out
    if isinstance(obj, list):
        return [drop_none_recursive(v) for v in obj]
    return obj


def _finite_or_none(v: Any) -> Optional[float]:
    if isinstance(v, bool):
        return None
    try:
        x = float(v)
    except (TypeError, ValueError):
        return None
    return x if math.isfinite(x) else None


# 스칼라 또는 Optional[스칼라]만 숫자 필드로 취급
_SCALAR_ORIGINS = (None, Union, getattr(types, "UnionType", Union))


def _numeric_keys(model_cls: Type[BaseModel]) -> Dict[str, type]:
    """field name + every validation alias -> int | float (dict/list fields skipped)"""
    keys: Dict[str, type] = {}
    for name, info in model_cls.model_fields.items():
        ann = info.annotation
        if get_origin(ann) not in _SCALAR_ORIGINS:
            continue
        args = get_args(ann) or (ann,)
        kind = float if float in args else int if int in args else None
        if kind is None:
            continue
        keys[name] = kind
        alias = info.validation_alias
        if isinstance(alias, AliasChoices):
            for c in alias.choices:
                if isinstance(c, str):
                    keys[c] = kind
        elif isinstance(alias, str):
            keys[alias] = kind
    return keys


class InputModel(AppBaseModel):
    """
    Input boundary policy: explicit nulls and values that are not finite numbers
    are dropped before validation, so the field default applies.
    """

    @model_validator(mode="before")
    @classmethod
    def _coerce_with_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        d = drop_none_recursive(data)
        for key, kind in _numeric_keys(cls).items():
            if key not in d:
                continue
            x = _finite_or_none(d[key])
            if x is None:
                d.pop(key)
            elif kind is int:
                d[key] = int(x)
        return d
