"""
Watchlist persistence.

Stored as a JSON file (``WATCHLIST_PATH``, default ``data/watchlist.json``);
symbols are upper-cased, unique and keep insertion order.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

DEFAULT_WATCHLIST_PATH = Path("data/watchlist.json")


def watchlist_path() -> Path:
    raw = os.getenv("WATCHLIST_PATH")
    return Path(raw) if raw else DEFAULT_WATCHLIST_PATH


@dataclass
class Watchlist:
    symbols: List[str] = field(default_factory=list)
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def add(self, symbol: str) -> bool:
        symbol = symbol.strip().upper()
        if not symbol or symbol in self.symbols:
            return False
        self.symbols.append(symbol)
        self.updated_at = datetime.now(timezone.utc)
        return True

    def remove(self, symbol: str) -> bool:
        norm = symbol.strip().upper()
        if norm not in self.symbols:
            return False
        self.symbols = [item for item in self.symbols if item != norm]
        self.updated_at = datetime.now(timezone.utc)
        return True

    def extend(self, symbols: Iterable[str]) -> None:
        for symbol in symbols:
            self.add(symbol)

    def replace(self, symbols: Iterable[str]) -> None:
        self.symbols = []
        self.extend(symbols)
        self.updated_at = datetime.now(timezone.utc)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol.strip().upper() in self.symbols

    def to_dict(self) -> dict:
        return {
            "symbols": self.symbols,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Watchlist":
        updated_raw = data.get("updated_at")
        if updated_raw:
            updated_at = datetime.fromisoformat(updated_raw)
            if updated_at.tzinfo is None:
                updated_at = updated_at.replace(tzinfo=timezone.utc)
        else:
            updated_at = datetime.now(timezone.utc)
        watchlist = cls(updated_at=updated_at)
        watchlist.extend(data.get("symbols") or [])
        watchlist.updated_at = updated_at
        return watchlist


def load_watchlist(path: Path | None = None) -> Watchlist:
    """Read the watchlist; a missing file is an empty list."""
    target = path or watchlist_path()
    if not target.exists():
        return Watchlist()
    data = json.loads(target.read_text(encoding="utf-8"))
    return Watchlist.from_dict(data)


def save_watchlist(watchlist: Watchlist, path: Path | None = None) -> None:
    target = path or watchlist_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(watchlist.to_dict(), ensure_ascii=False, indent=2)
    target.write_text(payload, encoding="utf-8")
