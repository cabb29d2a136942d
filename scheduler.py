"""
Periodic signal refresh.

Uses APScheduler to re-run the tracked-symbol update on a fixed interval
(``SIGNAL_REFRESH_MINUTES``, default 30) and logs a text summary for each
ticker that refreshed.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from backend.app.services.signals import update_tracked_signals

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_MINUTES = 30


def _refresh_minutes() -> int:
    raw = os.getenv("SIGNAL_REFRESH_MINUTES")
    if raw is None:
        return DEFAULT_REFRESH_MINUTES
    try:
        return max(1, int(raw))
    except ValueError:
        return DEFAULT_REFRESH_MINUTES


async def run_signal_update() -> Dict[str, Any]:
    """Refresh tracked signals once and log the outcome per symbol."""
    payload = await update_tracked_signals()
    for item in payload["results"]:
        if item["status"] == "success":
            logger.info("%s refreshed", item["symbol"])
        else:
            logger.warning("%s %s: %s", item["symbol"], item["status"], item.get("error"))
    return payload


def start_scheduler(minutes: int | None = None) -> AsyncIOScheduler:
    interval = minutes or _refresh_minutes()
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        run_signal_update,
        trigger="interval",
        minutes=interval,
        id="signal_refresh_job",
        replace_existing=True,
        max_instances=1,
        misfire_grace_time=300,
        coalesce=True,
    )
    scheduler.start()
    logger.info("Signal scheduler started, every %d minutes", interval)
    return scheduler


async def main() -> None:
    await run_signal_update()


if __name__ == "__main__":
    asyncio.run(main())
