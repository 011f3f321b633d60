"""Simulation control surface: a Stopped/Running state machine driving tick work."""

from __future__ import annotations

import logging
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from functools import lru_cache
from threading import Condition, Event, Lock, Thread
from typing import Deque, List, Optional, Set

from app.schemas import SimulationState, SimulationStatus, TickFailure
from datastore.telemetry_store import build_default_store
from errors import AuthorizationError
from models.records import SessionProfile
from services.mailer import build_default_mailer
from services.pipeline import TickPipeline, TickResult
from settings import get_settings

logger = logging.getLogger(__name__)

# Failures kept for display; older ones are only in the log.
_RECENT_FAILURES = 5


def authorize_control(session: Optional[SessionProfile]) -> SessionProfile:
    """Raise ``AuthorizationError`` unless ``session`` may start or stop the simulation."""
    if session is None or not session.authenticated:
        raise AuthorizationError("User must be authenticated to control the simulation.")
    if not session.can_control:
        raise AuthorizationError(
            f"Role {session.role.value!r} may not control the simulation."
        )
    return session


def authorize_start(session: Optional[SessionProfile]) -> SessionProfile:
    session = authorize_control(session)
    if not session.email:
        raise AuthorizationError("A profile email is required for alert notifications.")
    return session


class SimulationController:
    """Owns the simulation status, the scheduler thread and the tick worker pool.

    Each tick is submitted to the pool as an independent unit of work, so a slow
    tick may overlap the next one. Stopping only prevents new ticks; ticks
    already submitted run to completion.
    """

    def __init__(self, pipeline: TickPipeline, interval: float = 3.0, workers: int = 4) -> None:
        if interval <= 0:
            raise ValueError("Simulation interval must be positive.")
        self.pipeline = pipeline
        self.interval = interval
        self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="simulation-tick")
        self._lock = Lock()
        self._idle = Condition(self._lock)
        self._status = SimulationStatus.stopped
        self._stop_event: Optional[Event] = None
        self._session: Optional[SessionProfile] = None
        self._started_at: Optional[datetime] = None
        self._ticks = 0
        self._failed_ticks = 0
        self._failures: Deque[TickFailure] = deque(maxlen=_RECENT_FAILURES)
        self._futures: Set[Future[TickResult]] = set()

    def start(self, session: Optional[SessionProfile]) -> SimulationState:
        session = authorize_start(session)
        with self._lock:
            if self._status is SimulationStatus.running:
                return self._snapshot()

            stop_event = Event()
            scheduler = Thread(
                target=self._run_schedule,
                args=(session, stop_event),
                name="simulation-scheduler",
                daemon=True,
            )
            self._stop_event = stop_event
            self._session = session
            self._started_at = datetime.now(timezone.utc)
            self._ticks = 0
            self._failed_ticks = 0
            self._failures.clear()
            self._status = SimulationStatus.running
            scheduler.start()
            logger.info(
                "Simulation started",
                extra={"user_id": session.user_id, "status": self._status.value},
            )
            return self._snapshot()

    def stop(self) -> SimulationState:
        with self._lock:
            if self._status is SimulationStatus.stopped:
                return self._snapshot()
            if self._stop_event is not None:
                self._stop_event.set()
            self._status = SimulationStatus.stopped
            self._stop_event = None
            self._session = None
            self._started_at = None
            logger.info("Simulation stopped", extra={"status": self._status.value})
            return self._snapshot()

    def is_running(self) -> bool:
        with self._lock:
            return self._status is SimulationStatus.running

    def state(self) -> SimulationState:
        with self._lock:
            return self._snapshot()

    def wait_for_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every submitted tick has finished; ``False`` on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: not self._futures, timeout=timeout)

    def shutdown(self) -> None:
        """Stop scheduling and release executor resources during application shutdown."""
        self.stop()
        self.executor.shutdown(wait=False, cancel_futures=True)

    def _snapshot(self) -> SimulationState:
        return SimulationState(
            status=self._status,
            interval_seconds=self.interval,
            started_at=self._started_at,
            started_by=self._session.user_id if self._session else None,
            ticks_dispatched=self._ticks,
            failed_ticks=self._failed_ticks,
            recent_failures=list(self._failures),
        )

    def _run_schedule(self, session: SessionProfile, stop_event: Event) -> None:
        while not stop_event.wait(self.interval):
            if not self._submit_tick(session, stop_event):
                return

    def _submit_tick(self, session: SessionProfile, stop_event: Event) -> bool:
        with self._lock:
            # A stop may land between the wait timing out and this submission.
            if stop_event.is_set():
                return False
            try:
                future = self.executor.submit(self.pipeline.run_tick, session)
            except RuntimeError:
                logger.error(
                    "Tick executor is shut down; ending simulation schedule",
                    extra={"reason": "executor shutdown"},
                )
                return False
            self._ticks += 1
            tick = self._ticks
            self._futures.add(future)
        future.add_done_callback(lambda f, number=tick: self._finish_tick(f, number))
        return True

    def _finish_tick(self, future: Future[TickResult], tick: int) -> None:
        try:
            self._report_tick(future, tick)
        finally:
            with self._idle:
                self._futures.discard(future)
                self._idle.notify_all()

    def _report_tick(self, future: Future[TickResult], tick: int) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Simulation tick failed",
                exc_info=exc,
                extra={"tick": tick, "reason": str(exc)},
            )
            self._record_failures(tick, [str(exc) or type(exc).__name__])
            return
        result = future.result()
        logger.debug(
            "Simulation tick finished",
            extra={
                "tick": tick,
                "batch_id": result.reading.batch_id if result.reading else None,
                "alert_count": result.alerts_persisted,
            },
        )
        if result.errors:
            logger.warning(
                "Simulation tick reported failures",
                extra={"tick": tick, "reason": "; ".join(result.errors)},
            )
            self._record_failures(tick, result.errors)

    def _record_failures(self, tick: int, reasons: List[str]) -> None:
        with self._lock:
            self._failed_ticks += 1
            self._failures.extend(TickFailure(tick=tick, reason=reason) for reason in reasons)


@lru_cache
def build_default_simulation(
    interval: Optional[float] = None,
    workers: Optional[int] = None,
) -> SimulationController:
    """Factory that wires the controller with the default store and mailer."""
    settings = get_settings()
    pipeline = TickPipeline(store=build_default_store(), mailer=build_default_mailer())
    return SimulationController(
        pipeline=pipeline,
        interval=interval or settings.simulation_interval,
        workers=workers or settings.simulation_workers,
    )
