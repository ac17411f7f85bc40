"""
Temperature sample storage and the fetch protocol the fever monitor depends on.

Key patterns:
- Protocol-based dependency injection for the health data backend
- Generic Result type for expected failures (backend unavailable, permission denied)
- Bounded rolling buffer, newest sample first on query
"""

from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Generic, Protocol, TypeVar

import structlog

from feverguard.domain.models import TemperatureReading, TemperatureSample

logger = structlog.get_logger(__name__)

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)


class Result(Generic[ValueT, ErrorT]):
    """
    Outcome of a backend query: the value, or the error that prevented it.

    Only the error slot decides the side, so an empty sample list is a
    successful result.
    """

    __slots__ = ("_value", "_error")

    def __init__(self, value: ValueT | None = None, error: ErrorT | None = None) -> None:
        if value is not None and error is not None:
            raise ValueError("a Result holds a value or an error, not both")
        self._value = value
        self._error = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        """Return the value, re-raising the stored error on the error side."""
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("unwrap_err() called on a successful Result")
        return self._error


class HealthDataFetcher(Protocol):
    """
    Source of recent body temperature samples.

    Implementations return samples captured at or after ``since``,
    newest first, normalized to Fahrenheit.
    """

    async def query_temperature_data(
        self, since: datetime
    ) -> Result[list[TemperatureSample], Exception]: ...


class TemperatureRecorder:
    """
    In-memory rolling buffer of sensor temperatures.

    Records every decoded reading, assigning capture time when the sensor
    did not send one, and tracks whether the last frame failed to decode so
    the host can warn that the sensor may be off-body.
    """

    def __init__(
        self,
        max_samples: int = 720,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._samples: deque[TemperatureSample] = deque(maxlen=max_samples)
        self._clock = clock or (lambda: datetime.now(UTC))
        self.no_measurement_warning = False
        self.logger = logger.bind(component="temperature_recorder")

    def __len__(self) -> int:
        return len(self._samples)

    def record(self, reading: TemperatureReading) -> TemperatureSample:
        """Store a reading as a Fahrenheit sample and clear the off-body warning."""
        sample = TemperatureSample.from_reading(reading, captured_at=self._clock())
        self._samples.append(sample)
        self.no_measurement_warning = False
        self.logger.info(
            "temperature_recorded",
            value=reading.value,
            unit=reading.unit.symbol,
            value_fahrenheit=round(sample.value_fahrenheit, 2),
            timestamp=sample.timestamp.isoformat(),
        )
        return sample

    def record_missing(self) -> None:
        """Note that a frame arrived without a usable reading."""
        if not self.no_measurement_warning:
            self.logger.warning("no_valid_temperature", hint="sensor may be off-body")
        self.no_measurement_warning = True

    def samples_since(self, since: datetime) -> list[TemperatureSample]:
        """Samples captured at or after ``since``, newest first."""
        recent = [s for s in self._samples if s.timestamp >= since]
        recent.sort(key=lambda s: s.timestamp, reverse=True)
        return recent

    async def query_temperature_data(
        self, since: datetime
    ) -> Result[list[TemperatureSample], Exception]:
        try:
            samples = self.samples_since(since)
        except TypeError as e:
            # naive and aware datetimes cannot be compared
            self.logger.error("temperature_query_failed", error=str(e))
            return Result.err(e)

        self.logger.debug("temperature_query", since=since.isoformat(), count=len(samples))
        return Result.ok(samples)
