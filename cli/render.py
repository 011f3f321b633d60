from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import typer

_SEVERITY_COLORS = {
    "critical": typer.colors.RED,
    "high": typer.colors.BRIGHT_RED,
    "medium": typer.colors.YELLOW,
    "low": typer.colors.BLUE,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fmt(value: Optional[float], digits: int = 2) -> str:
    if value is None:
        return "-"
    return f"{value:.{digits}f}"


def render_simulation(payload: Dict[str, Any]) -> None:
    echo_heading("Simulation")
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("interval_seconds", payload.get("interval_seconds")),
            ("started_at", payload.get("started_at")),
            ("started_by", payload.get("started_by")),
            ("ticks_dispatched", payload.get("ticks_dispatched")),
            ("failed_ticks", payload.get("failed_ticks", 0)),
        ]
    )
    for failure in payload.get("recent_failures") or []:
        typer.secho(
            f"  ! tick {failure.get('tick')} at {failure.get('occurred_at')}: {failure.get('reason')}",
            fg=typer.colors.YELLOW,
        )


def render_readings(readings: List[Dict[str, Any]]) -> None:
    echo_heading("Batch Readings")
    if not readings:
        typer.echo("No batch readings found.")
        return
    for reading in readings:
        typer.echo(
            f"  - {reading.get('batch_id')} @ {reading.get('timestamp')}: "
            f"temperature={_fmt(reading.get('temperature'))} "
            f"pressure={_fmt(reading.get('pressure'), 3)} "
            f"ph={_fmt(reading.get('ph'))} "
            f"viscosity={_fmt(reading.get('viscosity'), 0)}"
        )


def render_alerts(alerts: List[Dict[str, Any]]) -> None:
    echo_heading("Alerts")
    if not alerts:
        typer.echo("No alerts found.")
        return
    for alert in alerts:
        severity = str(alert.get("severity"))
        typer.secho(f"  [{severity}] ", fg=_SEVERITY_COLORS.get(severity), nl=False)
        status = "acknowledged" if alert.get("acknowledged") else "open"
        typer.echo(
            f"{alert.get('title')} ({status}) batch={alert.get('batch_id')} "
            f"{alert.get('parameter_type')}={_fmt(alert.get('parameter_value'))} "
            f"threshold={_fmt(alert.get('threshold_value'))} id={alert.get('id')}"
        )


def render_summary(payload: Dict[str, Any]) -> None:
    echo_heading("Dashboard Summary")
    echo_key_values(
        [
            ("total_batches", payload.get("total_batches")),
            ("active_alerts", payload.get("active_alerts")),
            ("critical_issues", payload.get("critical_issues")),
            ("highest_open_severity", payload.get("highest_open_severity") or "-"),
            ("simulation", payload.get("simulation")),
        ]
    )
    latest = payload.get("latest_reading")
    typer.echo()
    echo_heading("Latest Reading")
    if latest:
        render_readings([latest])
    else:
        typer.echo("No batch readings found.")
