"""
Host-side pipeline that threads data between the evaluation components.

This demonstrates the complete end-to-end risk check:
1. Decode sensor frames and record readings in the rolling window
2. Classify the last hour of temperatures for fever
3. Classify the latest lab panel for neutropenia
4. Compose both verdicts and dispatch at most one alert per episode
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime

import structlog

from feverguard.config import AppConfig, get_config
from feverguard.domain.measurements import LabPanel
from feverguard.domain.models import ANCResult, TemperatureReading
from feverguard.services.fever_evaluator import FeverMonitor
from feverguard.services.neutropenia import LabHistory, NeutropeniaClassifier
from feverguard.services.risk_composer import NotificationHandler, RiskComposer, RiskDecision
from feverguard.services.sensor_decoder import SensorFrameDecoder
from feverguard.services.temperature_store import HealthDataFetcher, TemperatureRecorder

logger = structlog.get_logger(__name__)


class RiskMonitoringService:
    """
    Orchestrates sensor ingestion, fever and ANC classification, and alerting.

    The fever monitor reads from the local recorder unless another
    HealthDataFetcher is supplied.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        fetcher: HealthDataFetcher | None = None,
        handlers: list[NotificationHandler] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or get_config()
        self._clock = clock or (lambda: datetime.now(UTC))
        self.logger = logger.bind(component="risk_monitoring")

        self.decoder = SensorFrameDecoder()
        self.recorder = TemperatureRecorder(
            max_samples=self.config.sensor.reading_buffer_size, clock=self._clock
        )
        self.fever_monitor = FeverMonitor(
            fetcher or self.recorder, config=self.config.fever, clock=self._clock
        )
        self.labs = LabHistory(NeutropeniaClassifier(self.config.neutropenia, clock=self._clock))
        self.composer = RiskComposer(self.config.alerts, handlers=handlers)

        self._is_running = False

    @property
    def no_measurement_warning(self) -> bool:
        return self.recorder.no_measurement_warning

    def handle_sensor_frame(self, frame: bytes) -> TemperatureReading | None:
        """Decode and record one frame; a frame without a reading raises the warning flag."""
        reading = self.decoder.decode(frame)
        if reading is None:
            self.recorder.record_missing()
            return None
        self.recorder.record(reading)
        return reading

    async def ingest_frame(self, frame: bytes) -> RiskDecision | None:
        """Record a frame and, when it held a reading, run a risk check."""
        if self.handle_sensor_frame(frame) is None:
            return None
        return await self.run_risk_check()

    def add_lab_panel(self, panel: LabPanel) -> ANCResult | None:
        self.labs.add(panel)
        return self.labs.latest_anc()

    async def run_risk_check(self) -> RiskDecision:
        fever = await self.fever_monitor.check_for_fever()
        anc = self.labs.latest_anc()
        decision = self.composer.evaluate(fever, anc.category if anc else None)

        self.logger.info(
            "risk_check_completed",
            status=decision.status.value,
            is_fever=fever.is_fever,
            anc_value=round(anc.anc_value, 1) if anc else None,
            alert_fired=decision.fired,
            phase=decision.phase.value,
        )
        if self.labs.is_stale(self._clock()):
            self.logger.info(
                "lab_update_due", stale_after_days=self.config.neutropenia.lab_stale_after_days
            )
        return decision

    def acknowledge(self) -> bool:
        """Reset the alert episode after the care team has been contacted."""
        return self.composer.reset()

    async def run_continuous_monitoring(self) -> AsyncIterator[RiskDecision]:
        """Yield a decision every configured interval until stopped."""
        interval = self.config.sensor.check_interval_seconds
        self.logger.info("continuous_monitoring_starting", interval=interval)
        self._is_running = True

        try:
            while self._is_running:
                started = asyncio.get_running_loop().time()
                yield await self.run_risk_check()

                elapsed = asyncio.get_running_loop().time() - started
                sleep_time = max(0.0, interval - elapsed)
                if sleep_time > 0:
                    await asyncio.sleep(sleep_time)
        except asyncio.CancelledError:
            self.logger.info("continuous_monitoring_cancelled")
            raise
        finally:
            self._is_running = False

    async def stop(self) -> None:
        self.logger.info("stopping_monitoring_service")
        self._is_running = False
