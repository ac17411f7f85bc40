"""
Fever classification over a rolling window of temperature samples.

Two rules, both in Fahrenheit:
- acute spike: the most recent sample is at or above the spike threshold
- sustained elevation: every sample in the window is at or above the
  sustained threshold

A mixed window (some elevated, some normal) with no spike is not fever.
"""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

import structlog

from feverguard.config import FeverConfig
from feverguard.domain.models import FeverVerdict, TemperatureSample
from feverguard.services.temperature_store import HealthDataFetcher

logger = structlog.get_logger(__name__)


class FeverEvaluator:
    """Pure two-rule fever classifier.

    Trusts its input: samples are already restricted to the evaluation
    window, ordered newest first, and expressed in Fahrenheit.
    """

    def __init__(self, config: FeverConfig | None = None) -> None:
        self.config = config or FeverConfig()
        self.logger = logger.bind(component="fever_evaluator")

    def evaluate(self, samples: Sequence[TemperatureSample]) -> FeverVerdict:
        if not samples:
            return FeverVerdict(is_fever=False, sample_count=0)

        latest = samples[0].value_fahrenheit
        count = len(samples)

        if latest >= self.config.spike_threshold_f:
            self.logger.info("fever_detected", rule="acute_spike", latest_f=latest)
            return FeverVerdict(
                is_fever=True, rule="acute_spike", sample_count=count, latest_value_f=latest
            )

        if all(s.value_fahrenheit >= self.config.sustained_threshold_f for s in samples):
            self.logger.info("fever_detected", rule="sustained_elevation", samples=count)
            return FeverVerdict(
                is_fever=True,
                rule="sustained_elevation",
                sample_count=count,
                latest_value_f=latest,
            )

        return FeverVerdict(is_fever=False, sample_count=count, latest_value_f=latest)

    def evaluate_values(self, values_fahrenheit: Sequence[float]) -> bool:
        """Convenience form over bare Fahrenheit values, newest first."""
        now = datetime.now(UTC)
        samples = [
            TemperatureSample(value_fahrenheit=v, timestamp=now - timedelta(seconds=i))
            for i, v in enumerate(values_fahrenheit)
        ]
        return self.evaluate(samples).is_fever


class FeverMonitor:
    """
    Fetches the current window from a health data backend and classifies it.

    The backend is injected, so tests and alternative stores plug in
    without a real sensor. A failed fetch never asserts fever.
    """

    def __init__(
        self,
        fetcher: HealthDataFetcher,
        config: FeverConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.config = config or FeverConfig()
        self.evaluator = FeverEvaluator(self.config)
        self._clock = clock or (lambda: datetime.now(UTC))
        self.logger = logger.bind(component="fever_monitor")

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=self.config.window_minutes)

    async def check_for_fever(self) -> FeverVerdict:
        now = self._clock()
        since = now - self.window

        result = await self.fetcher.query_temperature_data(since)
        if result.is_err():
            self.logger.error("health_data_fetch_failed", error=str(result.unwrap_err()))
            return FeverVerdict(is_fever=False)

        samples = [s for s in result.unwrap() if since <= s.timestamp <= now]
        samples.sort(key=lambda s: s.timestamp, reverse=True)

        if not samples:
            self.logger.info("no_temperature_samples", window_minutes=self.config.window_minutes)

        verdict = self.evaluator.evaluate(samples)
        self.logger.info(
            "fever_check_completed",
            is_fever=verdict.is_fever,
            rule=verdict.rule,
            samples=verdict.sample_count,
        )
        return verdict
