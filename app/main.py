from __future__ import annotations
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api import router
from app.web import router as web_router
from datastore.telemetry_store import build_default_store
from logging_config import configure_logging
from services.mailer import build_default_mailer
from services.simulation import build_default_simulation


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    simulation = build_default_simulation()
    try:
        yield
    finally:
        simulation.shutdown()
        build_default_simulation.cache_clear()
        if build_default_mailer.cache_info().currsize:
            close = getattr(build_default_mailer(), "close", None)
            if close is not None:
                close()
        build_default_mailer.cache_clear()
        build_default_store.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Batch Quality Monitor",
        description="Batch telemetry dashboard with threshold alerts and a simulated reading generator.",
        version="0.1.0",
        lifespan=lifespan,
    )
    static_dir = Path(__file__).resolve().parent / "static"
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
