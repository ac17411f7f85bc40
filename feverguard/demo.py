"""
Scripted walk through the full risk pipeline.

Demonstrates:
1. Decoding sensor frames, including an off-body frame
2. Recording lab panels and classifying ANC
3. Fever detection by acute spike
4. A single alert per episode, and the explicit reset

Run with: python -m feverguard.demo
"""

import asyncio
from datetime import UTC, datetime, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from feverguard.config import get_config
from feverguard.domain.errors import DataError
from feverguard.domain.measurements import LabPanel, LabTestType
from feverguard.observability import configure_logging
from feverguard.services.risk_composer import AlertEvent, RiskDecision
from feverguard.services.risk_monitoring import RiskMonitoringService
from feverguard.services.sensor_decoder import OFF_BODY_MANTISSA, encode_frame

console = Console()


def console_alert_handler(alert: AlertEvent) -> None:
    """Development alert handler that prints to console."""
    console.print(
        Panel(
            f"{alert.body}\nANC category: {alert.category.label}\n"
            f"Time: {alert.timestamp.strftime('%Y-%m-%d %H:%M:%S UTC')}",
            title=f"ALERT - {alert.title}",
            style="bold red",
        )
    )


def _decision_row(table: Table, step: str, decision: RiskDecision | None) -> None:
    if decision is None:
        table.add_row(step, "no reading", "-", "-")
        return
    outcome = "fired" if decision.fired else ("suppressed" if decision.suppressed else "-")
    table.add_row(step, decision.status.value, decision.phase.value, outcome)


async def run_demo() -> None:
    config = get_config()
    configure_logging(config.logging)

    service = RiskMonitoringService(config, handlers=[console_alert_handler])
    now = datetime.now(UTC)

    console.print(Panel("Recording lab panels", style="blue"))
    try:
        service.add_lab_panel(
            LabPanel(
                date=now + timedelta(days=1),
                values={LabTestType.NEUTROPHILS: 5.0, LabTestType.WHITE_BLOOD_CELL: 4000},
            )
        )
    except DataError as e:
        console.print(f"Rejected future-dated panel: {e.error_message}", style="yellow")

    anc = service.add_lab_panel(
        LabPanel(
            date=now - timedelta(days=1),
            values={LabTestType.NEUTROPHILS: 5.0, LabTestType.WHITE_BLOOD_CELL: 4000},
        )
    )
    if anc:
        console.print(f"ANC {anc.anc_value:.0f} -> {anc.category.label}", style="green")

    console.print(Panel("Streaming sensor frames", style="blue"))
    table = Table(title="Risk checks")
    table.add_column("Frame", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Phase", style="yellow")
    table.add_column("Alert", style="red")

    frames = [
        ("36.50 °C", encode_frame(3650, -2)),
        ("off-body", encode_frame(OFF_BODY_MANTISSA, 0)),
        ("101.5 °F", encode_frame(1015, -1, fahrenheit=True)),
        ("102.0 °F", encode_frame(1020, -1, fahrenheit=True)),
    ]
    for label, frame in frames:
        decision = await service.ingest_frame(frame)
        _decision_row(table, label, decision)

    console.print(table)
    console.print(f"No-measurement warning active: {service.no_measurement_warning}")

    console.print(Panel("Care team acknowledged, resetting episode", style="blue"))
    service.acknowledge()
    decision = await service.run_risk_check()
    console.print(f"After reset: {decision.status.value}, alert fired again: {decision.fired}")


if __name__ == "__main__":
    try:
        asyncio.run(run_demo())
    except KeyboardInterrupt:
        console.print("\nDemo stopped by user", style="yellow")
