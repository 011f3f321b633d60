from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.client import ApiClient
from cli.config import load_config


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.calls: List[tuple[str, Any]] = []
        self.state: Dict[str, Any] = {
            "status": "stopped",
            "interval_seconds": 3.0,
            "started_at": None,
            "started_by": None,
            "ticks_dispatched": 0,
        }
        self.closed = False

    def simulation_state(self) -> Dict[str, Any]:
        self.calls.append(("state", None))
        return self.state

    def start_simulation(self) -> Dict[str, Any]:
        self.calls.append(("start", None))
        return {**self.state, "status": "running", "started_by": self.config.user_id}

    def stop_simulation(self) -> Dict[str, Any]:
        self.calls.append(("stop", None))
        return self.state

    def list_readings(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        self.calls.append(("readings", limit))
        return [
            {
                "batch_id": "BATCH-1",
                "timestamp": "2024-01-01T00:00:00Z",
                "temperature": 88.123,
                "pressure": 2.2,
                "ph": 7.5,
                "viscosity": 1300.4,
            }
        ]

    def list_alerts(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        self.calls.append(("alerts", limit))
        return [
            {
                "id": "alert-1",
                "title": "High Temperature Alert",
                "severity": "critical",
                "batch_id": "BATCH-1",
                "parameter_type": "Temperature",
                "parameter_value": 96.0,
                "threshold_value": 90.0,
                "acknowledged": False,
            }
        ]

    def acknowledge_alert(self, alert_id: str) -> Dict[str, Any]:
        self.calls.append(("ack", alert_id))
        return {"id": alert_id, "acknowledged": True}

    def summary(self) -> Dict[str, Any]:
        self.calls.append(("summary", None))
        return {
            "total_batches": 4,
            "active_alerts": 2,
            "critical_issues": 1,
            "simulation": "running",
            "latest_reading": None,
        }

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    holder: Dict[str, StubClient] = {}

    def factory(config):
        holder["client"] = StubClient(config)
        return holder["client"]

    monkeypatch.setattr("cli.app.ApiClient", factory)

    class Proxy:
        def __getattr__(self, name: str) -> Any:
            return getattr(holder["client"], name)

    return Proxy()  # type: ignore[return-value]


def test_start_passes_session_options(stub, runner: CliRunner) -> None:
    result = runner.invoke(
        app, ["--user-id", "user-1", "--email", "qa@example.com", "--role", "operator", "start"]
    )

    assert result.exit_code == 0
    assert "Simulation started." in result.stdout
    assert "status: running" in result.stdout
    assert stub.config.user_id == "user-1"
    assert stub.config.email == "qa@example.com"
    assert stub.config.role == "operator"
    assert stub.calls == [("start", None)]
    assert stub.closed is True


def test_alerts_command_renders_rows(stub, runner: CliRunner) -> None:
    result = runner.invoke(app, ["alerts", "--limit", "5"])

    assert result.exit_code == 0
    assert "[critical]" in result.stdout
    assert "High Temperature Alert (open)" in result.stdout
    assert "threshold=90.00" in result.stdout
    assert stub.calls == [("alerts", 5)]


def test_readings_command_formats_values(stub, runner: CliRunner) -> None:
    result = runner.invoke(app, ["readings"])

    assert result.exit_code == 0
    assert "BATCH-1" in result.stdout
    assert "temperature=88.12" in result.stdout
    assert "viscosity=1300" in result.stdout


def test_summary_and_ack_commands(stub, runner: CliRunner) -> None:
    result = runner.invoke(app, ["summary"])
    assert result.exit_code == 0
    assert "critical_issues: 1" in result.stdout
    assert "highest_open_severity: -" in result.stdout
    assert "No batch readings found." in result.stdout

    result = runner.invoke(app, ["ack", "alert-1"])
    assert result.exit_code == 0
    assert "Alert alert-1 acknowledged." in result.stdout


def test_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://monitor.test/")
    monkeypatch.setenv("QM_USER_ID", "env-user")
    monkeypatch.setenv("QM_USER_ROLE", "admin")
    monkeypatch.delenv("QM_USER_EMAIL", raising=False)

    config = load_config()

    assert config.base_url == "http://monitor.test"
    assert config.session_headers() == {"X-User-Id": "env-user", "X-User-Role": "admin"}


def test_api_client_reports_http_errors(runner: CliRunner, monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["X-User-Role"] == "viewer"
        return httpx.Response(403, json={"detail": "Role 'viewer' may not control the simulation."})

    transport = httpx.MockTransport(handler)
    real_client = httpx.Client

    def client_factory(*args, **kwargs):
        return real_client(*args, transport=transport, **kwargs)

    monkeypatch.setattr("cli.client.httpx.Client", client_factory)

    result = runner.invoke(app, ["--user-id", "u", "--role", "viewer", "start"])

    assert result.exit_code == 1
    assert "403" in result.output
    assert "may not control the simulation" in result.output


def test_api_client_sends_limit_param(monkeypatch) -> None:
    seen: List[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, json=[])

    transport = httpx.MockTransport(handler)
    real_client = httpx.Client
    monkeypatch.setattr(
        "cli.client.httpx.Client",
        lambda *args, **kwargs: real_client(*args, transport=transport, **kwargs),
    )

    client = ApiClient(load_config(base_url="http://monitor.test"))
    try:
        assert client.list_readings(limit=7) == []
    finally:
        client.close()

    assert seen[0].path == "/readings"
    assert seen[0].params["limit"] == "7"


def test_status_shows_recent_tick_failures(runner: CliRunner, monkeypatch) -> None:
    def factory(config):
        client = StubClient(config)
        client.state.update(
            status="running",
            failed_ticks=1,
            recent_failures=[
                {
                    "tick": 4,
                    "occurred_at": "2024-01-01T00:00:12Z",
                    "reason": "readings table unavailable",
                }
            ],
        )
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "failed_ticks: 1" in result.stdout
    assert "tick 4 at 2024-01-01T00:00:12Z: readings table unavailable" in result.stdout
