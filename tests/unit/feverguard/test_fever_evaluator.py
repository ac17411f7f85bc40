"""
Tests for fever classification and the fever monitor.

Testing philosophy:
- Rules are checked on the literal windows clinicians reason about
- Property-based tests pin the acute spike rule for any window tail
- The monitor is driven through a test double, never a real sensor
"""

from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from feverguard.config import FeverConfig
from feverguard.domain.models import TemperatureReading, TemperatureSample, TemperatureUnit
from feverguard.services.fever_evaluator import FeverEvaluator, FeverMonitor
from feverguard.services.temperature_store import Result, TemperatureRecorder

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def window(*values: float, step_minutes: int = 5) -> list[TemperatureSample]:
    """Samples newest first, spaced step_minutes apart going back from NOW."""
    return [
        TemperatureSample(value_fahrenheit=v, timestamp=NOW - timedelta(minutes=i * step_minutes))
        for i, v in enumerate(values)
    ]


@pytest.fixture
def evaluator() -> FeverEvaluator:
    return FeverEvaluator()


class TestFeverRules:
    def test_empty_window_is_not_fever(self, evaluator: FeverEvaluator) -> None:
        verdict = evaluator.evaluate([])
        assert verdict.is_fever is False
        assert verdict.sample_count == 0

    def test_normal_temperatures(self, evaluator: FeverEvaluator) -> None:
        assert not evaluator.evaluate(window(98.6, 99.0, 98.7)).is_fever

    def test_single_spike_reading(self, evaluator: FeverEvaluator) -> None:
        verdict = evaluator.evaluate(window(101.5))
        assert verdict.is_fever
        assert verdict.rule == "acute_spike"

    def test_spike_ignores_older_values(self, evaluator: FeverEvaluator) -> None:
        verdict = evaluator.evaluate(window(101.5, 98.6, 102.0, 99.1))
        assert verdict.is_fever
        assert verdict.rule == "acute_spike"

    def test_spike_threshold_is_inclusive(self, evaluator: FeverEvaluator) -> None:
        assert evaluator.evaluate(window(101.0, 97.0)).is_fever

    def test_sustained_elevation(self, evaluator: FeverEvaluator) -> None:
        verdict = evaluator.evaluate(window(100.5, 100.6, 100.8))
        assert verdict.is_fever
        assert verdict.rule == "sustained_elevation"
        assert verdict.sample_count == 3

    def test_sustained_threshold_is_inclusive(self, evaluator: FeverEvaluator) -> None:
        assert evaluator.evaluate(window(100.4, 100.4)).is_fever

    def test_mixed_window_is_not_fever(self, evaluator: FeverEvaluator) -> None:
        verdict = evaluator.evaluate(window(99.5, 100.9, 100.3))
        assert not verdict.is_fever
        assert verdict.rule is None
        assert verdict.latest_value_f == pytest.approx(99.5)

    def test_older_spike_does_not_count(self, evaluator: FeverEvaluator) -> None:
        assert not evaluator.evaluate(window(100.0, 102.5)).is_fever

    def test_bare_values_helper(self, evaluator: FeverEvaluator) -> None:
        assert evaluator.evaluate_values([100.5, 100.6, 100.8]) is True
        assert evaluator.evaluate_values([99.5, 100.9, 100.3]) is False
        assert evaluator.evaluate_values([]) is False

    def test_custom_thresholds(self) -> None:
        evaluator = FeverEvaluator(FeverConfig(spike_threshold_f=100.0, sustained_threshold_f=99.5))
        assert evaluator.evaluate(window(100.0)).is_fever
        assert evaluator.evaluate(window(99.6, 99.5)).is_fever

    @given(
        latest=st.floats(min_value=101.0, max_value=110.0),
        rest=st.lists(st.floats(min_value=90.0, max_value=110.0), max_size=20),
    )
    def test_spike_rule_holds_for_any_tail(self, latest: float, rest: list[float]) -> None:
        assert FeverEvaluator().evaluate(window(latest, *rest)).is_fever

    def test_verdict_serializes_with_camel_case(self, evaluator: FeverEvaluator) -> None:
        payload = evaluator.evaluate(window(101.5)).model_dump(by_alias=True)
        assert payload["isFever"] is True
        assert payload["rule"] == "acute_spike"


class MockHealthDataFetcher:
    """Test double that implements HealthDataFetcher protocol."""

    def __init__(self, samples: list[TemperatureSample] | None = None, should_fail: bool = False):
        self.samples = samples or []
        self.should_fail = should_fail
        self.last_since: datetime | None = None

    async def query_temperature_data(
        self, since: datetime
    ) -> Result[list[TemperatureSample], Exception]:
        self.last_since = since
        if self.should_fail:
            return Result.err(ConnectionError("health store unavailable"))
        return Result.ok(list(self.samples))


class TestFeverMonitor:
    async def test_no_data(self) -> None:
        monitor = FeverMonitor(MockHealthDataFetcher(), clock=lambda: NOW)
        verdict = await monitor.check_for_fever()
        assert verdict.is_fever is False

    async def test_fetch_failure_is_not_fever(self) -> None:
        fetcher = MockHealthDataFetcher(window(102.0), should_fail=True)
        monitor = FeverMonitor(fetcher, clock=lambda: NOW)

        verdict = await monitor.check_for_fever()

        assert verdict.is_fever is False

    async def test_queries_last_hour(self) -> None:
        fetcher = MockHealthDataFetcher()
        monitor = FeverMonitor(fetcher, clock=lambda: NOW)

        await monitor.check_for_fever()

        assert fetcher.last_since == NOW - timedelta(hours=1)

    async def test_sorts_unordered_samples_newest_first(self) -> None:
        samples = window(101.5, 98.6)
        fetcher = MockHealthDataFetcher(list(reversed(samples)))
        monitor = FeverMonitor(fetcher, clock=lambda: NOW)

        verdict = await monitor.check_for_fever()

        assert verdict.is_fever
        assert verdict.rule == "acute_spike"

    async def test_drops_samples_outside_window(self) -> None:
        stale = TemperatureSample(value_fahrenheit=98.0, timestamp=NOW - timedelta(hours=3))
        fetcher = MockHealthDataFetcher([*window(100.5, 100.6), stale])
        monitor = FeverMonitor(fetcher, clock=lambda: NOW)

        verdict = await monitor.check_for_fever()

        assert verdict.is_fever
        assert verdict.rule == "sustained_elevation"
        assert verdict.sample_count == 2

    async def test_reads_from_recorder_with_celsius_readings(self) -> None:
        recorder = TemperatureRecorder(clock=lambda: NOW)
        recorder.record(
            TemperatureReading(value=38.5, unit=TemperatureUnit.CELSIUS, timestamp=NOW)
        )
        monitor = FeverMonitor(recorder, clock=lambda: NOW)

        verdict = await monitor.check_for_fever()

        # 38.5 °C is 101.3 °F
        assert verdict.is_fever
        assert verdict.latest_value_f == pytest.approx(101.3)
