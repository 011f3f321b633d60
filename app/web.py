from __future__ import annotations

from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from app.session import get_session
from datastore.telemetry_store import TelemetryStore, build_default_store
from errors import AuthorizationError, StoreError
from models.records import SessionProfile
from services.dashboard import DashboardAggregator
from services.severity import severity_display
from services.simulation import SimulationController, authorize_control, build_default_simulation
from settings import get_settings


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
templates.env.globals["severity_display"] = severity_display

# Rows shown in the alert table; the summary still covers every fetched alert.
_ALERT_ROWS = 10


def get_store() -> TelemetryStore:
    return build_default_store()


def get_simulation() -> SimulationController:
    return build_default_simulation()


def _back_to_dashboard(notice: str, level: str = "info") -> RedirectResponse:
    query = urlencode({"notice": notice, "level": level})
    return RedirectResponse(url=f"/ui?{query}", status_code=status.HTTP_303_SEE_OTHER)


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    notice: Optional[str] = None,
    level: str = "info",
    session: Optional[SessionProfile] = Depends(get_session),
    store: TelemetryStore = Depends(get_store),
    simulation: SimulationController = Depends(get_simulation),
) -> HTMLResponse:
    settings = get_settings()
    try:
        readings = store.list_readings(settings.readings_fetch_limit)
        alerts = store.list_alerts(settings.alerts_fetch_limit)
    except StoreError as exc:
        return templates.TemplateResponse(
            request,
            "ui/error.html",
            {"request": request, "title": "Error loading data", "detail": str(exc)},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    state = simulation.state()
    return templates.TemplateResponse(
        request,
        "ui/dashboard.html",
        {
            "request": request,
            "session": session,
            "can_control": session is not None and session.can_control,
            "readings": readings,
            "alerts": alerts[:_ALERT_ROWS],
            "summary": DashboardAggregator().summarize(readings, alerts, state.status),
            "simulation": state,
            "notice": notice,
            "level": level,
        },
    )


@router.post("/ui/simulation/start", name="ui_start_simulation")
async def ui_start_simulation(
    session: Optional[SessionProfile] = Depends(get_session),
    simulation: SimulationController = Depends(get_simulation),
) -> RedirectResponse:
    try:
        simulation.start(session)
    except AuthorizationError as exc:
        return _back_to_dashboard(str(exc), level="error")
    return _back_to_dashboard("Simulation started: mock data generation and monitoring active.")


@router.post("/ui/simulation/stop", name="ui_stop_simulation")
async def ui_stop_simulation(
    session: Optional[SessionProfile] = Depends(get_session),
    simulation: SimulationController = Depends(get_simulation),
) -> RedirectResponse:
    try:
        authorize_control(session)
    except AuthorizationError as exc:
        return _back_to_dashboard(str(exc), level="error")
    simulation.stop()
    return _back_to_dashboard("Simulation stopped: mock data generation paused.")
