"""
Tests for ANC computation, severity bands and the lab history.
"""

from datetime import UTC, datetime, timedelta

import pytest

from feverguard.config import NeutropeniaConfig
from feverguard.domain.errors import DateError
from feverguard.domain.measurements import LabPanel, LabTestType
from feverguard.domain.models import NeutropeniaCategory
from feverguard.services.neutropenia import LabHistory, NeutropeniaClassifier, compute_anc

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def panel(neutrophils: float | None, wbc: float | None, days_ago: int = 1) -> LabPanel:
    values: dict[LabTestType, float] = {LabTestType.HEMOGLOBIN: 11.2}
    if neutrophils is not None:
        values[LabTestType.NEUTROPHILS] = neutrophils
    if wbc is not None:
        values[LabTestType.WHITE_BLOOD_CELL] = wbc
    return LabPanel(date=NOW - timedelta(days=days_ago), values=values)


@pytest.fixture
def classifier() -> NeutropeniaClassifier:
    return NeutropeniaClassifier(clock=lambda: NOW)


class TestClassify:
    @pytest.mark.parametrize(
        "neutrophils,wbc,expected_anc,expected_category",
        [
            (40.0, 4000, 1600.0, NeutropeniaCategory.NORMAL),
            (5.0, 4000, 200.0, NeutropeniaCategory.SEVERE),
            (2.0, 4000, 80.0, NeutropeniaCategory.PROFOUND),
            (12.5, 4000, 500.0, NeutropeniaCategory.NORMAL),
            (2.5, 4000, 100.0, NeutropeniaCategory.SEVERE),
            (0.0, 4000, 0.0, NeutropeniaCategory.PROFOUND),
        ],
    )
    def test_anc_bands(
        self,
        classifier: NeutropeniaClassifier,
        neutrophils: float,
        wbc: float,
        expected_anc: float,
        expected_category: NeutropeniaCategory,
    ) -> None:
        result = classifier.classify(panel(neutrophils, wbc))

        assert result is not None
        assert result.anc_value == pytest.approx(expected_anc)
        assert result.category is expected_category

    def test_band_edges_on_raw_values(self, classifier: NeutropeniaClassifier) -> None:
        assert classifier.categorize(500.0) is NeutropeniaCategory.NORMAL
        assert classifier.categorize(499.99) is NeutropeniaCategory.SEVERE
        assert classifier.categorize(100.0) is NeutropeniaCategory.SEVERE
        assert classifier.categorize(99.99) is NeutropeniaCategory.PROFOUND

    @pytest.mark.parametrize("neutrophils,wbc", [(None, 4000), (40.0, None), (None, None)])
    def test_missing_inputs_yield_no_result(
        self, classifier: NeutropeniaClassifier, neutrophils: float | None, wbc: float | None
    ) -> None:
        assert classifier.classify(panel(neutrophils, wbc)) is None

    def test_future_panel_rejected_at_classification(self) -> None:
        recorded = panel(40.0, 4000, days_ago=0)
        classifier = NeutropeniaClassifier(clock=lambda: NOW - timedelta(days=2))

        with pytest.raises(DateError):
            classifier.classify(recorded)

    def test_result_keeps_panel_date_and_serializes(
        self, classifier: NeutropeniaClassifier
    ) -> None:
        result = classifier.classify(panel(5.0, 4000, days_ago=3))

        assert result is not None
        assert result.panel_date == NOW - timedelta(days=3)
        payload = result.model_dump(mode="json", by_alias=True)
        assert payload["ancValue"] == pytest.approx(200.0)
        assert payload["category"] == "Severe"

    def test_custom_bands(self) -> None:
        classifier = NeutropeniaClassifier(
            NeutropeniaConfig(normal_min_anc=1000, severe_min_anc=500), clock=lambda: NOW
        )
        result = classifier.classify(panel(20.0, 4000))

        assert result is not None
        assert result.category is NeutropeniaCategory.SEVERE

    def test_compute_anc(self) -> None:
        assert compute_anc(40.0, 4000) == pytest.approx(1600.0)


class TestCategory:
    def test_rank_orders_severity(self) -> None:
        ranks = [c.rank for c in NeutropeniaCategory]
        assert ranks == sorted(ranks)
        assert NeutropeniaCategory.PROFOUND.rank > NeutropeniaCategory.SEVERE.rank

    def test_labels(self) -> None:
        assert NeutropeniaCategory.NORMAL.label == "Normal"
        assert NeutropeniaCategory.SEVERE.label == "Severe Neutropenia"
        assert NeutropeniaCategory.PROFOUND.label == "Profound Neutropenia"
        assert not NeutropeniaCategory.NORMAL.is_neutropenic
        assert NeutropeniaCategory.SEVERE.is_neutropenic


class TestLabHistory:
    @pytest.fixture
    def history(self, classifier: NeutropeniaClassifier) -> LabHistory:
        return LabHistory(classifier)

    def test_empty_history(self, history: LabHistory) -> None:
        assert history.latest() is None
        assert history.latest_anc() is None
        assert history.is_stale(NOW)

    def test_latest_by_draw_date(self, history: LabHistory) -> None:
        history.add(panel(2.0, 4000, days_ago=1))
        history.add(panel(40.0, 4000, days_ago=5))

        latest = history.latest_anc()

        assert latest is not None
        assert latest.category is NeutropeniaCategory.PROFOUND

    def test_latest_panel_without_inputs_means_no_anc(self, history: LabHistory) -> None:
        history.add(panel(40.0, 4000, days_ago=5))
        history.add(panel(None, None, days_ago=1))

        assert history.latest_anc() is None

    def test_update_and_delete(self, history: LabHistory) -> None:
        history.add(panel(40.0, 4000, days_ago=2))
        assert history.update(0, panel(5.0, 4000, days_ago=2))

        latest = history.latest_anc()
        assert latest is not None
        assert latest.category is NeutropeniaCategory.SEVERE

        assert history.delete(0)
        assert len(history) == 0
        assert not history.delete(0)
        assert not history.update(3, panel(5.0, 4000))

    def test_staleness(self, history: LabHistory) -> None:
        history.add(panel(40.0, 4000, days_ago=3))
        assert not history.is_stale(NOW)

        history.delete(0)
        history.add(panel(40.0, 4000, days_ago=8))
        assert history.is_stale(NOW)
