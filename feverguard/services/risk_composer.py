"""
Composite febrile neutropenia decision with alert de-duplication.

Two states:

    QUIET ---(fever and abnormal ANC)---> ALERTED   emits one alert
    ALERTED ---(condition still holds)--> ALERTED   emits nothing
    any ------------(reset)-------------> QUIET

The alert flag is only cleared by an explicit reset, never because the
fever or ANC returned to normal. Missing ANC data is reported as
insufficient data and leaves the state untouched.
"""

import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

import structlog

from feverguard.config import AlertConfig
from feverguard.domain.models import FeverVerdict, NeutropeniaCategory

logger = structlog.get_logger(__name__)


class RiskStatus(str, Enum):
    """Composite display label for the current risk."""

    FEBRILE_NEUTROPENIA = "Febrile Neutropenia"
    FEVER = "Fever"
    NEUTROPENIA = "Your last result shows that you are neutropenic"
    NO_FEVER = "No fever detected"
    INSUFFICIENT_DATA = "No ANC Data"

    @property
    def is_alerting(self) -> bool:
        return self is RiskStatus.FEBRILE_NEUTROPENIA


class AlertPhase(str, Enum):
    QUIET = "quiet"
    ALERTED = "alerted"


@dataclass
class AlertState:
    """Whether an alert was already issued for the open episode."""

    episode_alert_sent: bool = False
    alerted_at: datetime | None = None

    @property
    def phase(self) -> AlertPhase:
        return AlertPhase.ALERTED if self.episode_alert_sent else AlertPhase.QUIET


@dataclass(frozen=True)
class AlertEvent:
    """A notification request for the delivery layer."""

    timestamp: datetime
    title: str
    body: str
    condition: RiskStatus
    category: NeutropeniaCategory


@dataclass(frozen=True)
class RiskDecision:
    """Outcome of one composition."""

    status: RiskStatus
    phase: AlertPhase
    alert: AlertEvent | None = None
    suppressed: bool = False
    evaluated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def fired(self) -> bool:
        return self.alert is not None


NotificationHandler = Callable[[AlertEvent], None]


def composite_status(fever: bool, category: NeutropeniaCategory | None) -> RiskStatus:
    """Combine a fever verdict and an ANC category into one label."""
    if category is None:
        return RiskStatus.INSUFFICIENT_DATA
    if fever and category.is_neutropenic:
        return RiskStatus.FEBRILE_NEUTROPENIA
    if fever:
        return RiskStatus.FEVER
    if category.is_neutropenic:
        return RiskStatus.NEUTROPENIA
    return RiskStatus.NO_FEVER


class RiskComposer:
    """
    Owns the alert state and decides whether a composite risk fires.

    The check-and-transition runs under a lock, so evaluators racing from
    different threads cannot both observe QUIET and both fire. Handlers are
    called after the lock is released, only by the caller that won.
    """

    def __init__(
        self,
        config: AlertConfig | None = None,
        handlers: list[NotificationHandler] | None = None,
        state: AlertState | None = None,
    ) -> None:
        self.config = config or AlertConfig()
        self.handlers: list[NotificationHandler] = list(handlers or [])
        self._state = state or AlertState()
        self._lock = threading.Lock()
        self.alert_history: deque[AlertEvent] = deque(maxlen=self.config.history_size)
        self.logger = logger.bind(component="risk_composer")

    @property
    def state(self) -> AlertState:
        with self._lock:
            return AlertState(self._state.episode_alert_sent, self._state.alerted_at)

    @property
    def is_alerted(self) -> bool:
        return self.state.episode_alert_sent

    def add_handler(self, handler: NotificationHandler) -> None:
        self.handlers.append(handler)

    def evaluate(
        self, fever: FeverVerdict | bool, category: NeutropeniaCategory | None
    ) -> RiskDecision:
        status = composite_status(bool(fever), category)

        if category is None or not status.is_alerting:
            self.logger.debug("risk_evaluated", status=status.value)
            return RiskDecision(status=status, phase=self.state.phase)

        with self._lock:
            if self._state.episode_alert_sent:
                alert = None
            else:
                alert = self._build_alert(status, category)
                self._state.episode_alert_sent = True
                self._state.alerted_at = alert.timestamp
                self.alert_history.append(alert)

        if alert is None:
            self.logger.info(
                "alert_suppressed", status=status.value, reason="episode_already_alerted"
            )
            return RiskDecision(status=status, phase=AlertPhase.ALERTED, suppressed=True)

        self.logger.warning("alert_raised", status=status.value, category=category.value)
        self.dispatch(alert)
        return RiskDecision(status=status, phase=AlertPhase.ALERTED, alert=alert)

    def reset(self) -> bool:
        """Close the current episode. Returns True if an alert had been sent."""
        with self._lock:
            was_alerted = self._state.episode_alert_sent
            self._state.episode_alert_sent = False
            self._state.alerted_at = None
        self.logger.info("alert_state_reset", was_alerted=was_alerted)
        return was_alerted

    def dispatch(self, alert: AlertEvent) -> None:
        """Hand an alert to every handler; one failing handler does not stop the rest."""
        for handler in self.handlers:
            try:
                handler(alert)
            except Exception as e:
                self.logger.error("alert_dispatch_failed", error=str(e), alert_title=alert.title)

    def _build_alert(self, status: RiskStatus, category: NeutropeniaCategory) -> AlertEvent:
        return AlertEvent(
            timestamp=datetime.now(UTC),
            title=self.config.title,
            body=self.config.body_template.format(condition=status.value),
            condition=status,
            category=category,
        )
