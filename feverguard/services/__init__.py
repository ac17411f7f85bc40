"""
Core services for risk evaluation.

This package contains the sensor decoder, the fever and neutropenia
classifiers, alert composition, and the pipeline that connects them.
"""

from .fever_evaluator import FeverEvaluator, FeverMonitor
from .neutropenia import LabHistory, NeutropeniaClassifier, compute_anc
from .risk_composer import (
    AlertEvent,
    AlertPhase,
    AlertState,
    RiskComposer,
    RiskDecision,
    RiskStatus,
    composite_status,
)
from .risk_monitoring import RiskMonitoringService
from .sensor_decoder import SensorFrameDecoder, decode
from .temperature_store import HealthDataFetcher, Result, TemperatureRecorder

__all__ = [
    "AlertEvent",
    "AlertPhase",
    "AlertState",
    "FeverEvaluator",
    "FeverMonitor",
    "HealthDataFetcher",
    "LabHistory",
    "NeutropeniaClassifier",
    "Result",
    "RiskComposer",
    "RiskDecision",
    "RiskMonitoringService",
    "RiskStatus",
    "SensorFrameDecoder",
    "TemperatureRecorder",
    "composite_status",
    "compute_anc",
    "decode",
]
