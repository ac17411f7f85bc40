"""
Domain models for febrile neutropenia risk evaluation.

These models represent the core clinical concepts and are framework-agnostic.
They use Pydantic for validation and are immutable once constructed.
"""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def celsius_to_fahrenheit(value: float) -> float:
    return value * 9 / 5 + 32


def fahrenheit_to_celsius(value: float) -> float:
    return (value - 32) * 5 / 9


class TemperatureUnit(str, Enum):
    """Units a temperature can be reported in."""

    CELSIUS = "Celsius"
    FAHRENHEIT = "Fahrenheit"

    @property
    def symbol(self) -> str:
        return "°C" if self is TemperatureUnit.CELSIUS else "°F"


class TemperatureReading(BaseModel):
    """A single decoded sensor temperature.

    No plausibility range is enforced here; a sensor may report odd values
    and the classification layers decide what is significant.
    """

    model_config = ConfigDict(frozen=True)

    value: float = Field(allow_inf_nan=False)
    unit: TemperatureUnit
    timestamp: datetime | None = Field(
        default=None, description="Sensor clock time, absent when the frame carried none"
    )

    def to_fahrenheit(self) -> float:
        if self.unit is TemperatureUnit.FAHRENHEIT:
            return self.value
        return celsius_to_fahrenheit(self.value)

    def to_celsius(self) -> float:
        if self.unit is TemperatureUnit.CELSIUS:
            return self.value
        return fahrenheit_to_celsius(self.value)


class TemperatureSample(BaseModel):
    """A temperature normalized to Fahrenheit with a definite capture time."""

    model_config = ConfigDict(frozen=True)

    value_fahrenheit: float = Field(allow_inf_nan=False)
    timestamp: datetime

    @classmethod
    def from_reading(
        cls, reading: TemperatureReading, captured_at: datetime
    ) -> "TemperatureSample":
        """Normalize a reading, using captured_at when the sensor gave no timestamp."""
        return cls(
            value_fahrenheit=reading.to_fahrenheit(),
            timestamp=reading.timestamp or captured_at,
        )


FeverRule = Literal["acute_spike", "sustained_elevation"]


class FeverVerdict(BaseModel):
    """Outcome of one fever evaluation over a window of samples."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    is_fever: bool
    rule: FeverRule | None = Field(default=None, description="Which rule asserted fever")
    sample_count: int = Field(default=0, ge=0)
    latest_value_f: float | None = None

    def __bool__(self) -> bool:
        return self.is_fever


class NeutropeniaCategory(str, Enum):
    """Neutropenia severity bands, ordered from least to most severe."""

    NORMAL = "Normal"
    SEVERE = "Severe"
    PROFOUND = "Profound"

    @property
    def rank(self) -> int:
        return _CATEGORY_RANK[self]

    @property
    def is_neutropenic(self) -> bool:
        return self is not NeutropeniaCategory.NORMAL

    @property
    def label(self) -> str:
        if self is NeutropeniaCategory.NORMAL:
            return "Normal"
        return f"{self.value} Neutropenia"


_CATEGORY_RANK = {
    NeutropeniaCategory.NORMAL: 0,
    NeutropeniaCategory.SEVERE: 1,
    NeutropeniaCategory.PROFOUND: 2,
}


class ANCResult(BaseModel):
    """Absolute neutrophil count derived from one lab panel."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    anc_value: float = Field(ge=0.0, description="Cells per microliter")
    category: NeutropeniaCategory
    panel_date: datetime | None = None
