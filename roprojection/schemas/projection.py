# roprojection/schemas/projection.py
# =============================================================================
# RO Projection Schemas (Pydantic v2)
#
# Key Policies:
# - Explicit "None" and non-finite numerics are dropped so defaults apply.
# - Accept both snake_case and the legacy camelCase keys of saved designs.
# - Output models are frozen; the engine builds a fresh result on every run.
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, model_validator

from roprojection.services.units import f_to_c

from .common import TRACKED_IONS, InputModel, ResultModel, _finite_or_none
from .membrane import Membrane, default_library


def _ion_field(key: str) -> Any:
    return Field(
        default=0.0,
        validation_alias=AliasChoices(key, key.upper(), _DISPLAY_KEYS.get(key, key)),
        description=f"{_DISPLAY_KEYS.get(key, key)} (mg/L)",
    )


_DISPLAY_KEYS = {
    "ca": "Ca",
    "mg": "Mg",
    "na": "Na",
    "k": "K",
    "sr": "Sr",
    "ba": "Ba",
    "nh4": "NH4",
    "hco3": "HCO3",
    "co3": "CO3",
    "so4": "SO4",
    "cl": "Cl",
    "no3": "NO3",
    "f": "F",
    "po4": "PO4",
    "sio2": "SiO2",
    "b": "B",
    "co2": "CO2",
}

_CELSIUS_KEYS = ("temperature_C", "temperature_c", "temp")
_FAHRENHEIT_KEYS = ("tempF", "temp_f", "temperature_F")


# =============================================================================
# Input Models
# =============================================================================
class IonComposition(InputModel):
    # Cations
    ca: float = _ion_field("ca")
    mg: float = _ion_field("mg")
    na: float = _ion_field("na")
    k: float = _ion_field("k")
    sr: float = _ion_field("sr")
    ba: float = _ion_field("ba")
    nh4: float = _ion_field("nh4")

    # Anions
    hco3: float = _ion_field("hco3")
    co3: float = _ion_field("co3")
    so4: float = _ion_field("so4")
    cl: float = _ion_field("cl")
    no3: float = _ion_field("no3")
    f: float = _ion_field("f")
    po4: float = _ion_field("po4")

    # Neutrals
    sio2: float = _ion_field("sio2")
    b: float = _ion_field("b")
    co2: float = _ion_field("co2")

    def as_dict(self) -> Dict[str, float]:
        return {k: float(getattr(self, k)) for k in TRACKED_IONS}


class FeedWater(InputModel):
    @model_validator(mode="before")
    @classmethod
    def _lift_flat_ions(cls, data: Any) -> Any:
        # saved designs keep ions flat next to temp/ph: {"temp": 25, "ca": 60, ...}
        if not isinstance(data, dict) or "ions" in data:
            return data
        d = dict(data)
        ion_keys = set(TRACKED_IONS) | set(_DISPLAY_KEYS.values())
        ions = {k: d.pop(k) for k in list(d) if k in ion_keys}
        if ions:
            d["ions"] = ions
        return d

    @model_validator(mode="before")
    @classmethod
    def _fahrenheit_to_celsius(cls, data: Any) -> Any:
        # tempF 입력은 °C로 변환; °C 키가 함께 오면 °C 우선
        if not isinstance(data, dict):
            return data
        d = dict(data)
        raw = None
        for key in _FAHRENHEIT_KEYS:
            if key in d:
                raw = d.pop(key)
        temp_f = _finite_or_none(raw)
        if temp_f is not None and not any(k in d for k in _CELSIUS_KEYS):
            d["temperature_C"] = f_to_c(temp_f)
        return d

    project_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("project_name", "projectName")
    )
    water_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("water_type", "waterType")
    )
    temperature_C: float = Field(
        default=25.0,
        validation_alias=AliasChoices(*_CELSIUS_KEYS),
    )
    ph: float = Field(default=7.0, validation_alias=AliasChoices("ph", "pH"))
    ions: IonComposition = Field(default_factory=IonComposition)


class StageConfig(InputModel):
    membrane_model: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("membrane_model", "membraneModel", "membrane_id"),
    )
    elements_per_vessel: int = Field(
        default=6,
        validation_alias=AliasChoices("elements_per_vessel", "elementsPerVessel"),
    )
    vessels: int = Field(
        default=0, validation_alias=AliasChoices("vessels", "vessel_count")
    )


class AgingParameters(InputModel):
    membrane_age_years: float = Field(
        default=0.0,
        validation_alias=AliasChoices("membrane_age_years", "membraneAge"),
    )
    flux_decline_pct_per_year: float = Field(
        default=5.0,
        validation_alias=AliasChoices("flux_decline_pct_per_year", "fluxDeclinePerYear"),
    )
    sp_increase_pct_per_year: float = Field(
        default=7.0,
        validation_alias=AliasChoices("sp_increase_pct_per_year", "spIncreasePerYear"),
    )
    fouling_factor: float = Field(
        default=1.0, validation_alias=AliasChoices("fouling_factor", "foulingFactor")
    )


class ChemicalDosing(InputModel):
    chemical: str = "None"
    concentration_pct: float = Field(
        default=100.0,
        validation_alias=AliasChoices("concentration_pct", "chemicalConcentration"),
        description="Solution strength (%)",
    )
    dose: float = Field(
        default=0.0, validation_alias=AliasChoices("dose", "chemicalDose")
    )
    dose_unit: str = Field(
        default="mg/l",
        validation_alias=AliasChoices("dose_unit", "doseUnit"),
        description="mg/l | lb/hr | kg/hr",
    )


_AGING_KEYS = (
    "membraneAge",
    "fluxDeclinePerYear",
    "spIncreasePerYear",
    "foulingFactor",
)
_DOSING_KEYS = ("chemical", "chemicalConcentration", "chemicalDose", "doseUnit")


def _default_stages() -> List[StageConfig]:
    return [StageConfig(membrane_model="espa2ld", elements_per_vessel=6, vessels=4)]


class SystemConfiguration(InputModel):
    @model_validator(mode="before")
    @classmethod
    def _lift_flat_sections(cls, data: Any) -> Any:
        # legacy flat systemConfig -> aging / dosing sub-sections
        if not isinstance(data, dict):
            return data
        d = dict(data)
        if "aging" not in d:
            aging = {k: d.pop(k) for k in _AGING_KEYS if k in d}
            if aging:
                d["aging"] = aging
        if "dosing" not in d:
            dosing = {k: d.pop(k) for k in _DOSING_KEYS if k in d}
            if dosing:
                d["dosing"] = dosing
        return d

    permeate_flow: float = Field(
        default=77.0,
        validation_alias=AliasChoices("permeate_flow", "permeateFlow"),
        description="Train permeate flow in flow_unit",
    )
    flow_unit: str = Field(
        default="gpm", validation_alias=AliasChoices("flow_unit", "flowUnit")
    )
    recovery_pct: float = Field(
        default=55.0, validation_alias=AliasChoices("recovery_pct", "recovery")
    )
    num_trains: int = Field(
        default=1, validation_alias=AliasChoices("num_trains", "numTrains", "trains")
    )
    membrane_model: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("membrane_model", "membraneModel"),
        description="Fallback membrane for stages without their own",
    )
    stages: List[StageConfig] = Field(default_factory=_default_stages)

    aging: AgingParameters = Field(default_factory=AgingParameters)
    dosing: ChemicalDosing = Field(default_factory=ChemicalDosing)

    design_calculated: bool = Field(
        default=True,
        validation_alias=AliasChoices("design_calculated", "designCalculated"),
    )
    flux_unit: str = Field(
        default="gfd", validation_alias=AliasChoices("flux_unit", "fluxUnit")
    )

    pump_efficiency: float = Field(default=0.75)
    energy_cost_per_kwh: float = Field(
        default=0.12,
        validation_alias=AliasChoices("energy_cost_per_kwh", "energyCostPerKwh"),
    )


class ProjectionRequest(InputModel):
    feed: FeedWater = Field(
        default_factory=FeedWater,
        validation_alias=AliasChoices("feed", "waterData", "water"),
    )
    config: SystemConfiguration = Field(
        default_factory=SystemConfiguration,
        validation_alias=AliasChoices("config", "systemConfig", "system"),
    )
    membranes: List[Membrane] = Field(default_factory=default_library)


# =============================================================================
# Output Models
# =============================================================================
class DesignWarning(ResultModel):
    key: str
    message: str
    stage: Optional[str] = None
    value: Optional[float] = None
    limit: Optional[float] = None
    unit: str = ""
    level: str = "WARN"


class IonConcentrations(ResultModel):
    """Frozen per-ion map (mg/L); ``ions["ca"]`` reads like a dict but cannot be assigned."""

    ca: float = 0.0
    mg: float = 0.0
    na: float = 0.0
    k: float = 0.0
    sr: float = 0.0
    ba: float = 0.0
    nh4: float = 0.0
    hco3: float = 0.0
    co3: float = 0.0
    so4: float = 0.0
    cl: float = 0.0
    no3: float = 0.0
    f: float = 0.0
    po4: float = 0.0
    sio2: float = 0.0
    b: float = 0.0
    co2: float = 0.0

    def __getitem__(self, ion: str) -> float:
        if ion not in TRACKED_IONS:
            raise KeyError(ion)
        return getattr(self, ion)

    def as_dict(self) -> Dict[str, float]:
        return {k: getattr(self, k) for k in TRACKED_IONS}


class StageResult(ResultModel):
    index: int
    vessels: int
    elements_per_vessel: int
    membrane_id: Optional[str] = None

    # stage totals (m3/h)
    feed_flow_m3h: float
    permeate_flow_m3h: float
    concentrate_flow_m3h: float
    recovery_pct: float

    # per-vessel flows
    feed_flow_per_vessel_m3h: float
    conc_flow_per_vessel_m3h: float
    feed_flow_per_vessel_gpm: float
    conc_flow_per_vessel_gpm: float
    feed_flow_display: str
    conc_flow_display: str

    feed_pressure_bar: float
    conc_pressure_bar: float
    feed_pressure_psi: float
    conc_pressure_psi: float
    pressure_drop_bar: float

    flux_gfd: float
    flux_lmh: float
    highest_flux_gfd: float
    beta: float
    concentration_factor: float

    permeate_ions: IonConcentrations = Field(default_factory=IonConcentrations)
    concentrate_ions: IonConcentrations = Field(default_factory=IonConcentrations)
    permeate_tds_mgL: float = 0.0
    concentrate_tds_mgL: float = 0.0


class TrainHydraulics(ResultModel):
    flow_unit: str
    num_trains: int
    recovery_pct: float

    permeate_flow_m3h: float
    feed_flow_m3h: float
    concentrate_flow_m3h: float
    permeate_flow_display: str
    feed_flow_display: str
    concentrate_flow_display: str

    total_permeate_flow_m3h: float
    total_feed_flow_m3h: float
    total_permeate_flow_display: str

    total_elements: int
    total_area_ft2: float

    avg_flux_gfd: float
    avg_flux_lmh: float
    highest_flux_gfd: float
    flux_unit: str
    flux_display: str

    feed_flow_per_vessel_m3h: float
    conc_flow_per_vessel_m3h: float

    beta: float
    concentration_factor: float
    tcf: float

    feed_pressure_bar: float
    conc_pressure_bar: float
    feed_pressure_psi: float
    conc_pressure_psi: float


class StreamParameters(ResultModel):
    ph: float
    tds_mgL: float
    osmotic_pressure_bar: Optional[float] = None
    osmotic_pressure_psi: Optional[float] = None
    langelier: Optional[float] = None
    ph_saturation: Optional[float] = None
    ccpp: Optional[float] = None


class SaturationOut(ResultModel):
    caso4_pct: float = 0.0
    baso4_pct: float = 0.0
    srso4_pct: float = 0.0
    sio2_pct: float = 0.0
    ca3po42_pct: float = 0.0
    caf2_pct: float = 0.0


class ChemicalUsageOut(ResultModel):
    chemical: str
    dose: float
    dose_unit: str
    active_kg_h: float
    solution_kg_h: float


class EnergyOut(ResultModel):
    pump_power_kw: float
    specific_energy_kwh_m3: float
    monthly_energy_cost: float


class ProjectionResult(ResultModel):
    hydraulics: TrainHydraulics
    stages: List[StageResult]

    permeate_ions: IonConcentrations
    concentrate_ions: IonConcentrations
    permeate: StreamParameters
    concentrate: StreamParameters
    saturation: SaturationOut

    chemical: ChemicalUsageOut
    energy: EnergyOut

    warnings: List[DesignWarning] = Field(default_factory=list)

    schema_version: int = 1
