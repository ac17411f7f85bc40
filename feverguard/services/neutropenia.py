"""
Absolute neutrophil count and neutropenia severity.

ANC = (neutrophils% / 100) * white blood cell count, banded as
Normal (>= 500), Severe (100 to < 500) and Profound (< 100) by default.
A panel lacking either input yields no result; that is missing data,
not an error.
"""

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

import structlog

from feverguard.config import NeutropeniaConfig
from feverguard.domain.measurements import LabPanel, align_now, ensure_not_future
from feverguard.domain.models import ANCResult, NeutropeniaCategory

logger = structlog.get_logger(__name__)


def compute_anc(neutrophils_percent: float, white_blood_cell_count: float) -> float:
    return (neutrophils_percent / 100.0) * white_blood_cell_count


class NeutropeniaClassifier:
    """Computes ANC from a lab panel and places it in a severity band."""

    def __init__(
        self,
        config: NeutropeniaConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or NeutropeniaConfig()
        self._clock = clock
        self.logger = logger.bind(component="neutropenia_classifier")

    def categorize(self, anc_value: float) -> NeutropeniaCategory:
        if anc_value >= self.config.normal_min_anc:
            return NeutropeniaCategory.NORMAL
        if anc_value >= self.config.severe_min_anc:
            return NeutropeniaCategory.SEVERE
        return NeutropeniaCategory.PROFOUND

    def classify(self, panel: LabPanel) -> ANCResult | None:
        """
        Classify one panel.

        Raises:
            DateError: the panel is dated after the current time.
        """
        now = self._clock() if self._clock else None
        ensure_not_future(panel.date, now)

        neutrophils = panel.neutrophils_percent
        wbc = panel.white_blood_cell_count
        if neutrophils is None or wbc is None:
            self.logger.debug(
                "anc_inputs_missing",
                has_neutrophils=neutrophils is not None,
                has_wbc=wbc is not None,
            )
            return None

        anc_value = compute_anc(neutrophils, wbc)
        result = ANCResult(
            anc_value=anc_value, category=self.categorize(anc_value), panel_date=panel.date
        )
        self.logger.info(
            "anc_classified", anc_value=round(anc_value, 1), category=result.category.value
        )
        return result


class LabHistory:
    """
    In-memory collection of recorded lab panels, most recent draw first.

    Only the latest panel decides the current ANC, even when it lacks the
    inputs and an older panel has them.
    """

    def __init__(
        self,
        classifier: NeutropeniaClassifier | None = None,
        panels: Iterable[LabPanel] = (),
    ) -> None:
        self.classifier = classifier or NeutropeniaClassifier()
        self._panels: list[LabPanel] = []
        self.logger = logger.bind(component="lab_history")
        for panel in panels:
            self.add(panel)

    def __len__(self) -> int:
        return len(self._panels)

    @property
    def panels(self) -> list[LabPanel]:
        return list(self._panels)

    def _sort(self) -> None:
        self._panels.sort(key=lambda p: p.date, reverse=True)

    def add(self, panel: LabPanel) -> None:
        self._panels.append(panel)
        self._sort()
        self.logger.info("lab_panel_added", date=panel.date.isoformat(), tests=len(panel.values))

    def update(self, index: int, panel: LabPanel) -> bool:
        if not 0 <= index < len(self._panels):
            return False
        self._panels[index] = panel
        self._sort()
        return True

    def delete(self, index: int) -> bool:
        if not 0 <= index < len(self._panels):
            return False
        del self._panels[index]
        return True

    def latest(self) -> LabPanel | None:
        return self._panels[0] if self._panels else None

    def latest_anc(self) -> ANCResult | None:
        panel = self.latest()
        if panel is None:
            return None
        return self.classifier.classify(panel)

    def is_stale(self, now: datetime | None = None) -> bool:
        """True when there is no panel or the latest is older than the configured limit."""
        panel = self.latest()
        if panel is None:
            return True
        max_age = timedelta(days=self.classifier.config.lab_stale_after_days)
        return align_now(panel.date, now) - panel.date >= max_age

