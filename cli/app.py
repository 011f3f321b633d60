from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_alerts, render_readings, render_simulation, render_summary


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the batch quality monitor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Monitor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    user_id: Optional[str] = typer.Option(
        None, "--user-id", "-u", help="Session user id (defaults to QM_USER_ID env)."
    ),
    email: Optional[str] = typer.Option(
        None, "--email", "-e", help="Alert notification email (defaults to QM_USER_EMAIL env)."
    ),
    role: Optional[str] = typer.Option(
        None, "--role", "-r", help="Session role: admin, operator or viewer (defaults to QM_USER_ROLE env)."
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        timeout=timeout,
        user_id=user_id,
        email=email,
        role=role,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show whether the simulation is running."""
    state = _get_state(ctx)
    render_simulation(state.client.simulation_state())


@app.command("start")
def start_command(ctx: typer.Context) -> None:
    """Start the simulated reading generator."""
    state = _get_state(ctx)
    payload = state.client.start_simulation()
    typer.secho("Simulation started.", fg=typer.colors.GREEN)
    render_simulation(payload)


@app.command("stop")
def stop_command(ctx: typer.Context) -> None:
    """Stop the simulated reading generator."""
    state = _get_state(ctx)
    payload = state.client.stop_simulation()
    typer.secho("Simulation stopped.", fg=typer.colors.YELLOW)
    render_simulation(payload)


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Number of readings."),
) -> None:
    """List the most recent batch readings."""
    state = _get_state(ctx)
    render_readings(state.client.list_readings(limit))


@app.command("alerts")
def alerts_command(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Number of alerts."),
) -> None:
    """List the most recent alerts."""
    state = _get_state(ctx)
    render_alerts(state.client.list_alerts(limit))


@app.command("ack")
def acknowledge_command(
    ctx: typer.Context,
    alert_id: str = typer.Argument(..., help="Identifier of the alert to acknowledge."),
) -> None:
    """Acknowledge an alert."""
    state = _get_state(ctx)
    payload = state.client.acknowledge_alert(alert_id)
    typer.secho(f"Alert {payload.get('id')} acknowledged.", fg=typer.colors.GREEN)


@app.command("summary")
def summary_command(ctx: typer.Context) -> None:
    """Show the dashboard KPI summary."""
    state = _get_state(ctx)
    render_summary(state.client.summary())
