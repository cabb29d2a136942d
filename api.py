"""FastAPI entrypoint for Apex Signals."""

from __future__ import annotations

import logging
import os
from typing import Dict

import env  # noqa: F401

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import router
from scheduler import start_scheduler

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


app = FastAPI(
    title="Apex Signals API",
    version="1.0.0",
    description="Technical + sentiment trading signals for a watchlist dashboard",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}


app.include_router(router)
app.include_router(router, prefix="/api")
app.add_api_route("/api/healthz", health_check, methods=["GET"], response_model=Dict[str, str])


@app.on_event("startup")
async def _start_background_jobs() -> None:
    if not _parse_bool(os.getenv("SCHEDULER_ENABLED"), default=False):
        return
    app.state.scheduler = start_scheduler()


@app.on_event("shutdown")
async def _stop_background_jobs() -> None:
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("Signal scheduler stopped.")
