from __future__ import annotations

from typing import Any, Dict, List, NoReturn, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the quality monitor service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout,
            headers=config.session_headers(),
        )

    def close(self) -> None:
        self._client.close()

    def simulation_state(self) -> Dict[str, Any]:
        return self._request("GET", "/simulation")

    def start_simulation(self) -> Dict[str, Any]:
        return self._request("POST", "/simulation/start")

    def stop_simulation(self) -> Dict[str, Any]:
        return self._request("POST", "/simulation/stop")

    def list_readings(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._request("GET", "/readings", params=_limit_params(limit))

    def list_alerts(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._request("GET", "/alerts", params=_limit_params(limit))

    def acknowledge_alert(self, alert_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/alerts/{alert_id}/acknowledge")

    def summary(self) -> Dict[str, Any]:
        return self._request("GET", "/dashboard/summary")

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self._client.request(method, path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> NoReturn:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _limit_params(limit: Optional[int]) -> Optional[Dict[str, Any]]:
    return {"limit": limit} if limit is not None else None
