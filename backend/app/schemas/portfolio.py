from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from datahub.portfolio import OwnedAsset

AssetType = Literal["stock", "etf", "index", "crypto"]


class WatchlistRequest(BaseModel):
    symbols: List[str] = Field(default_factory=list)


class WatchlistModifyRequest(BaseModel):
    symbol: str


class WatchlistResponse(BaseModel):
    symbols: List[str]
    updatedAt: datetime


class OwnedAssetCreate(BaseModel):
    symbol: str
    name: str
    type: AssetType = "stock"
    shares: float = Field(..., gt=0)
    avgCost: float = Field(..., ge=0)
    purchaseDate: date
    notes: Optional[str] = None


class OwnedAssetUpdate(BaseModel):
    symbol: Optional[str] = None
    name: Optional[str] = None
    type: Optional[AssetType] = None
    shares: Optional[float] = Field(None, gt=0)
    avgCost: Optional[float] = Field(None, ge=0)
    purchaseDate: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("symbol", "name", "type", "shares", "avgCost", "purchaseDate")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    def to_changes(self) -> dict:
        """Only the fields the client actually sent, in snake_case."""
        sent = self.model_dump(exclude_unset=True)
        renames = {"avgCost": "avg_cost", "purchaseDate": "purchase_date"}
        changes = {renames.get(key, key): value for key, value in sent.items()}
        if isinstance(changes.get("purchase_date"), date):
            changes["purchase_date"] = changes["purchase_date"].isoformat()
        return changes


class OwnedAssetOut(BaseModel):
    id: str
    symbol: str
    name: str
    type: AssetType
    shares: float
    avgCost: float
    purchaseDate: str
    notes: Optional[str] = None
    addedAt: str
    updatedAt: str

    @classmethod
    def from_asset(cls, asset: OwnedAsset) -> "OwnedAssetOut":
        return cls(
            id=asset.id,
            symbol=asset.symbol,
            name=asset.name,
            type=asset.type,
            shares=asset.shares,
            avgCost=asset.avg_cost,
            purchaseDate=asset.purchase_date,
            notes=asset.notes,
            addedAt=asset.added_at,
            updatedAt=asset.updated_at,
        )


class OwnedAssetsResponse(BaseModel):
    assets: List[OwnedAssetOut] = Field(default_factory=list)
    totalInvested: float = 0.0
    uniqueSymbols: List[str] = Field(default_factory=list)
