"""
Construction-time validation errors for recorded health data.

They are raised from pydantic validators and are not ValueError subclasses,
so they reach the caller unwrapped rather than inside a ValidationError.
"""

from typing import Any


class DataError(Exception):
    """Base class for invalid health record input."""

    default_message = "invalid health data"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        self.error_message = message or self.default_message
        self.details = details or {}
        super().__init__(self.error_message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.error_message,
            "details": self.details,
        }


class DateError(DataError):
    """A record is dated in the future."""

    default_message = "date can't be in future"


class PercentageError(DataError):
    """A percentage-valued field lies outside [0, 100]."""

    default_message = "percentage must be between 0 and 100"


class RangeError(DataError):
    """A bounded value lies outside its allowed range."""

    default_message = "value out of range"


class BloodPressureError(RangeError):
    default_message = "blood pressure must be greater than 0"


class SeverityError(RangeError):
    default_message = "severity must be between 1 and 10"
