"""Refresh tracked signals once, or print live signals without storing them."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import List

# Make the project root importable when run as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import env  # noqa: F401,E402

from backend.app.services.signals import compute_live_signal, tracked_symbols  # noqa: E402
from engine.report import render  # noqa: E402
from scheduler import run_signal_update  # noqa: E402

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Update Apex signals for the tracked tickers.")
    parser.add_argument("symbols", nargs="*", help="Tickers for --live (defaults to the tracked list)")
    parser.add_argument(
        "--live",
        action="store_true",
        help="Compute and print signals instead of writing them to the store",
    )
    parser.add_argument("--sentiment", action="store_true", help="Include LLM sentiment in --live mode")
    return parser.parse_args()


async def print_live_signals(symbols: List[str], with_sentiment: bool) -> None:
    for symbol in symbols:
        live = await compute_live_signal(symbol, with_sentiment=with_sentiment)
        if live is None:
            logger.warning("No market data for %s", symbol)
            continue
        print(render(symbol, live.signal))


def main() -> None:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    args = parse_args()
    if args.live:
        symbols = [symbol.upper() for symbol in args.symbols] or tracked_symbols()
        asyncio.run(print_live_signals(symbols, args.sentiment))
        return
    payload = asyncio.run(run_signal_update())
    print(json.dumps(payload["summary"], indent=2))


if __name__ == "__main__":
    main()
