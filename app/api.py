"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import Alert, BatchReading, DashboardSummary, SimulationState
from app.session import require_controller, require_session
from datastore.telemetry_store import TelemetryStore, build_default_store
from errors import AuthorizationError, StoreError
from models.records import SessionProfile
from services.dashboard import DashboardAggregator
from services.simulation import SimulationController, build_default_simulation
from settings import get_settings

router = APIRouter()

_MAX_FETCH_LIMIT = 500


def get_store() -> TelemetryStore:
    return build_default_store()


def get_simulation() -> SimulationController:
    return build_default_simulation()


def _store_unavailable(exc: StoreError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(exc),
    )


@router.get(
    "/readings",
    response_model=list[BatchReading],
    summary="List the most recent batch readings, newest first.",
)
async def list_readings(
    limit: int | None = Query(None, ge=1, le=_MAX_FETCH_LIMIT),
    store: TelemetryStore = Depends(get_store),
) -> list[BatchReading]:
    try:
        return store.list_readings(limit or get_settings().readings_fetch_limit)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc


@router.get(
    "/alerts",
    response_model=list[Alert],
    summary="List the most recent alerts, newest first.",
)
async def list_alerts(
    limit: int | None = Query(None, ge=1, le=_MAX_FETCH_LIMIT),
    store: TelemetryStore = Depends(get_store),
) -> list[Alert]:
    try:
        return store.list_alerts(limit or get_settings().alerts_fetch_limit)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc


@router.post(
    "/alerts/{alert_id}/acknowledge",
    response_model=Alert,
    summary="Acknowledge an alert.",
)
async def acknowledge_alert(
    alert_id: str,
    _session: SessionProfile = Depends(require_controller),
    store: TelemetryStore = Depends(get_store),
) -> Alert:
    try:
        alert = store.acknowledge_alert(alert_id)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    if alert is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Alert {alert_id!r} not found.",
        )
    return alert


@router.get(
    "/simulation",
    response_model=SimulationState,
    summary="Report whether the simulation is running.",
)
async def simulation_state(
    simulation: SimulationController = Depends(get_simulation),
) -> SimulationState:
    return simulation.state()


@router.post(
    "/simulation/start",
    response_model=SimulationState,
    summary="Start generating and evaluating synthetic batch readings.",
)
async def start_simulation(
    session: SessionProfile = Depends(require_session),
    simulation: SimulationController = Depends(get_simulation),
) -> SimulationState:
    try:
        return simulation.start(session)
    except AuthorizationError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(exc),
        ) from exc


@router.post(
    "/simulation/stop",
    response_model=SimulationState,
    summary="Stop scheduling new simulation ticks.",
)
async def stop_simulation(
    _session: SessionProfile = Depends(require_controller),
    simulation: SimulationController = Depends(get_simulation),
) -> SimulationState:
    return simulation.stop()


@router.get(
    "/dashboard/summary",
    response_model=DashboardSummary,
    summary="KPI figures over the most recent readings and alerts.",
)
async def dashboard_summary(
    store: TelemetryStore = Depends(get_store),
    simulation: SimulationController = Depends(get_simulation),
) -> DashboardSummary:
    settings = get_settings()
    try:
        readings = store.list_readings(settings.readings_fetch_limit)
        alerts = store.list_alerts(settings.alerts_fetch_limit)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return DashboardAggregator().summarize(readings, alerts, simulation.state().status)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status and /ui for the dashboard."}
