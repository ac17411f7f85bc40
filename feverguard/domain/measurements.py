"""
Recorded health measurements as a closed set of tagged variants.

Each kind carries its own typed payload and validates itself at construction
time. Every kind rejects a future date; range checks raise the matching
DataError subclass. A raw mapping is routed to its variant by the ``kind``
field, and an unknown kind is a validation error rather than a silent default.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from feverguard.domain.errors import (
    BloodPressureError,
    DateError,
    PercentageError,
    RangeError,
    SeverityError,
)
from feverguard.domain.models import TemperatureUnit, celsius_to_fahrenheit


def align_now(value: datetime, now: datetime | None = None) -> datetime:
    """Return ``now`` comparable with ``value``; naive datetimes are local time."""
    if now is None:
        return datetime.now(value.tzinfo) if value.tzinfo else datetime.now()
    if value.tzinfo is None and now.tzinfo is not None:
        return now.astimezone().replace(tzinfo=None)
    if value.tzinfo is not None and now.tzinfo is None:
        return now.astimezone()
    return now


def ensure_not_future(value: datetime, now: datetime | None = None) -> datetime:
    """Raise DateError when value lies after now."""
    if value > align_now(value, now):
        raise DateError(details={"date": value.isoformat()})
    return value


def _ensure_percentage(value: float, field: str) -> float:
    if not 0.0 <= value <= 100.0:
        raise PercentageError(details={"field": field, "value": value})
    return value


class LabTestType(str, Enum):
    """Lab tests a patient can record from a blood draw."""

    WHITE_BLOOD_CELL = "White Blood Cell Count"
    HEMOGLOBIN = "Hemoglobin"
    PLATELET_COUNT = "Platelet Count"
    NEUTROPHILS = "% Neutrophils"
    LYMPHOCYTES = "% Lymphocytes"
    MONOCYTES = "% Monocytes"
    EOSINOPHILS = "% Eosinophils"
    BASOPHILS = "% Basophils"
    BLASTS = "% Blasts"

    @property
    def is_percentage(self) -> bool:
        return self.value.startswith("%")


class DoseUnit(str, Enum):
    MG = "mg"
    MCG = "mcg"
    G = "g"
    ML = "mL"
    PERCENT = "%"


class Symptom(str, Enum):
    NAUSEA = "Nausea"
    VOMITING = "Vomiting"
    DIARRHEA = "Diarrhea"
    CHILLS = "Chills"
    COUGH = "Cough"
    PAIN = "Pain"


class DatedEntry(BaseModel):
    """Common base: an immutable record stamped with a past or present date."""

    model_config = ConfigDict(frozen=True)

    date: datetime

    @field_validator("date")
    @classmethod
    def date_not_in_future(cls, v: datetime) -> datetime:
        return ensure_not_future(v)


class HeartRateEntry(DatedEntry):
    kind: Literal["heart_rate"] = "heart_rate"
    bpm: float


class TemperatureEntry(DatedEntry):
    kind: Literal["temperature"] = "temperature"
    value: float
    unit: TemperatureUnit

    def to_fahrenheit(self) -> float:
        if self.unit is TemperatureUnit.FAHRENHEIT:
            return self.value
        return celsius_to_fahrenheit(self.value)


class OxygenSaturationEntry(DatedEntry):
    kind: Literal["oxygen_saturation"] = "oxygen_saturation"
    percentage: float

    @field_validator("percentage")
    @classmethod
    def percentage_in_range(cls, v: float) -> float:
        return _ensure_percentage(v, "percentage")


class BloodPressureEntry(DatedEntry):
    """Systolic and diastolic pressure in mmHg."""

    kind: Literal["blood_pressure"] = "blood_pressure"
    systolic: float
    diastolic: float

    @model_validator(mode="after")
    def pressures_not_negative(self) -> "BloodPressureEntry":
        if self.systolic < 0 or self.diastolic < 0:
            raise BloodPressureError(
                details={"systolic": self.systolic, "diastolic": self.diastolic}
            )
        return self


class LabPanel(DatedEntry):
    """Results of one blood draw. Not every test needs to be present."""

    kind: Literal["lab"] = "lab"
    values: dict[LabTestType, float] = Field(default_factory=dict)

    @field_validator("values")
    @classmethod
    def results_in_range(cls, v: dict[LabTestType, float]) -> dict[LabTestType, float]:
        for test, result in v.items():
            if test.is_percentage:
                _ensure_percentage(result, test.value)
            elif not math.isfinite(result) or result < 0:
                raise RangeError(
                    "lab result must be a finite non-negative number",
                    details={"field": test.value, "value": result},
                )
        return v

    @property
    def neutrophils_percent(self) -> float | None:
        return self.values.get(LabTestType.NEUTROPHILS)

    @property
    def white_blood_cell_count(self) -> float | None:
        return self.values.get(LabTestType.WHITE_BLOOD_CELL)


class MedicationEntry(DatedEntry):
    """A chemotherapy administration."""

    kind: Literal["medication"] = "medication"
    name: str = Field(min_length=1)
    dose_value: float = Field(ge=0.0)
    dose_unit: DoseUnit


class SymptomEntry(DatedEntry):
    kind: Literal["symptom"] = "symptom"
    symptoms: dict[Symptom, int] = Field(default_factory=dict)

    @field_validator("symptoms")
    @classmethod
    def severities_in_range(cls, v: dict[Symptom, int]) -> dict[Symptom, int]:
        for symptom, severity in v.items():
            if not 1 <= severity <= 10:
                raise SeverityError(details={"symptom": symptom.value, "severity": severity})
        return v


Measurement = Annotated[
    HeartRateEntry
    | TemperatureEntry
    | OxygenSaturationEntry
    | BloodPressureEntry
    | LabPanel
    | MedicationEntry
    | SymptomEntry,
    Field(discriminator="kind"),
]

_measurement_adapter: TypeAdapter[Measurement] = TypeAdapter(Measurement)


def parse_measurement(data: dict[str, Any]) -> Measurement:
    """Validate a raw mapping into the measurement variant named by its kind."""
    return _measurement_adapter.validate_python(data)
