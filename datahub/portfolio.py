"""Owned-asset portfolio, persisted next to the watchlist as JSON."""

from __future__ import annotations

import json
import os
import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_OWNED_ASSETS_PATH = Path("data/owned_assets.json")
ASSET_TYPES = ("stock", "etf", "index", "crypto")
EDITABLE_FIELDS = ("symbol", "name", "type", "shares", "avg_cost", "purchase_date", "notes")
REQUIRED_FIELDS = ("symbol", "name", "type", "shares", "avg_cost", "purchase_date")


def owned_assets_path() -> Path:
    raw = os.getenv("OWNED_ASSETS_PATH")
    return Path(raw) if raw else DEFAULT_OWNED_ASSETS_PATH


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class OwnedAsset:
    id: str
    symbol: str
    name: str
    type: str
    shares: float
    avg_cost: float
    purchase_date: str
    notes: Optional[str] = None
    added_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    @property
    def cost_basis(self) -> float:
        return self.shares * self.avg_cost

    def market_value(self, price: float) -> float:
        return self.shares * price

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Portfolio:
    """Ordered collection of owned assets; a symbol may appear in several lots."""

    def __init__(self, assets: Optional[List[OwnedAsset]] = None) -> None:
        self.assets: List[OwnedAsset] = list(assets or [])

    def add(
        self,
        symbol: str,
        name: str,
        type: str,
        shares: float,
        avg_cost: float,
        purchase_date: str | date,
        notes: Optional[str] = None,
    ) -> OwnedAsset:
        if type not in ASSET_TYPES:
            raise ValueError(f"unknown asset type: {type}")
        if isinstance(purchase_date, date):
            purchase_date = purchase_date.isoformat()
        asset = OwnedAsset(
            id=f"asset-{uuid.uuid4().hex[:12]}",
            symbol=symbol.strip().upper(),
            name=name,
            type=type,
            shares=float(shares),
            avg_cost=float(avg_cost),
            purchase_date=purchase_date,
            notes=notes,
        )
        self.assets.append(asset)
        return asset

    def update(self, asset_id: str, **changes: Any) -> Optional[OwnedAsset]:
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"fields cannot be updated: {sorted(unknown)}")
        missing = sorted(name for name in REQUIRED_FIELDS if name in changes and changes[name] is None)
        if missing:
            raise ValueError(f"fields cannot be null: {missing}")
        if "type" in changes and changes["type"] not in ASSET_TYPES:
            raise ValueError(f"unknown asset type: {changes['type']}")
        if "symbol" in changes:
            changes["symbol"] = str(changes["symbol"]).strip().upper()
            if not changes["symbol"]:
                raise ValueError("symbol cannot be blank")
        for index, asset in enumerate(self.assets):
            if asset.id == asset_id:
                updated = replace(asset, **changes, updated_at=_now())
                self.assets[index] = updated
                return updated
        return None

    def remove(self, asset_id: str) -> bool:
        remaining = [asset for asset in self.assets if asset.id != asset_id]
        removed = len(remaining) != len(self.assets)
        self.assets = remaining
        return removed

    def get(self, asset_id: str) -> Optional[OwnedAsset]:
        return next((asset for asset in self.assets if asset.id == asset_id), None)

    def by_symbol(self, symbol: str) -> List[OwnedAsset]:
        norm = symbol.strip().upper()
        return [asset for asset in self.assets if asset.symbol == norm]

    @property
    def total_invested(self) -> float:
        return sum(asset.cost_basis for asset in self.assets)

    @property
    def unique_symbols(self) -> List[str]:
        return list(dict.fromkeys(asset.symbol for asset in self.assets))

    def to_dict(self) -> Dict[str, Any]:
        return {"assets": [asset.to_dict() for asset in self.assets]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Portfolio":
        return cls([OwnedAsset(**item) for item in data.get("assets") or []])


def load_portfolio(path: Path | None = None) -> Portfolio:
    target = path or owned_assets_path()
    if not target.exists():
        return Portfolio()
    return Portfolio.from_dict(json.loads(target.read_text(encoding="utf-8")))


def save_portfolio(portfolio: Portfolio, path: Path | None = None) -> None:
    target = path or owned_assets_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(portfolio.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
