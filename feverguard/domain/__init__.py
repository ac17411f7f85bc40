"""Domain models and validation errors for risk evaluation."""

from .errors import (
    BloodPressureError,
    DataError,
    DateError,
    PercentageError,
    RangeError,
    SeverityError,
)
from .measurements import (
    BloodPressureEntry,
    DoseUnit,
    HeartRateEntry,
    LabPanel,
    LabTestType,
    Measurement,
    MedicationEntry,
    OxygenSaturationEntry,
    Symptom,
    SymptomEntry,
    TemperatureEntry,
    parse_measurement,
)
from .models import (
    ANCResult,
    FeverVerdict,
    NeutropeniaCategory,
    TemperatureReading,
    TemperatureSample,
    TemperatureUnit,
)

__all__ = [
    "ANCResult",
    "BloodPressureEntry",
    "BloodPressureError",
    "DataError",
    "DateError",
    "DoseUnit",
    "FeverVerdict",
    "HeartRateEntry",
    "LabPanel",
    "LabTestType",
    "Measurement",
    "MedicationEntry",
    "NeutropeniaCategory",
    "OxygenSaturationEntry",
    "PercentageError",
    "RangeError",
    "SeverityError",
    "Symptom",
    "SymptomEntry",
    "TemperatureEntry",
    "TemperatureReading",
    "TemperatureSample",
    "TemperatureUnit",
    "parse_measurement",
]
