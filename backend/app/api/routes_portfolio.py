from __future__ import annotations

from fastapi import APIRouter, HTTPException

from backend.app.api.deps import normalize_symbols
from backend.app.schemas import (
    OwnedAssetCreate,
    OwnedAssetOut,
    OwnedAssetsResponse,
    OwnedAssetUpdate,
    WatchlistModifyRequest,
    WatchlistRequest,
    WatchlistResponse,
)
from datahub.portfolio import Portfolio, load_portfolio, save_portfolio
from datahub.watchlist import Watchlist, load_watchlist, save_watchlist

router = APIRouter()


def _watchlist_response(watchlist: Watchlist) -> WatchlistResponse:
    return WatchlistResponse(symbols=watchlist.symbols, updatedAt=watchlist.updated_at)


def _assets_response(portfolio: Portfolio) -> OwnedAssetsResponse:
    return OwnedAssetsResponse(
        assets=[OwnedAssetOut.from_asset(asset) for asset in portfolio.assets],
        totalInvested=portfolio.total_invested,
        uniqueSymbols=portfolio.unique_symbols,
    )


@router.get("/watchlist", response_model=WatchlistResponse, tags=["watchlist"])
async def get_watchlist() -> WatchlistResponse:
    return _watchlist_response(load_watchlist())


@router.put("/watchlist", response_model=WatchlistResponse, tags=["watchlist"])
async def replace_watchlist(payload: WatchlistRequest) -> WatchlistResponse:
    watchlist = Watchlist()
    watchlist.replace(normalize_symbols(payload.symbols))
    save_watchlist(watchlist)
    return _watchlist_response(watchlist)


@router.post("/watchlist", response_model=WatchlistResponse, tags=["watchlist"])
async def add_watchlist_symbol(payload: WatchlistModifyRequest) -> WatchlistResponse:
    if not payload.symbol.strip():
        raise HTTPException(status_code=400, detail="Symbol is required")
    watchlist = load_watchlist()
    if watchlist.add(payload.symbol):
        save_watchlist(watchlist)
    return _watchlist_response(watchlist)


@router.delete("/watchlist/{symbol}", response_model=WatchlistResponse, tags=["watchlist"])
async def remove_watchlist_symbol(symbol: str) -> WatchlistResponse:
    watchlist = load_watchlist()
    if not watchlist.remove(symbol):
        raise HTTPException(status_code=404, detail=f"{symbol.upper()} is not on the watchlist")
    save_watchlist(watchlist)
    return _watchlist_response(watchlist)


@router.get("/owned-assets", response_model=OwnedAssetsResponse, tags=["owned-assets"])
async def list_owned_assets() -> OwnedAssetsResponse:
    return _assets_response(load_portfolio())


@router.post("/owned-assets", response_model=OwnedAssetOut, status_code=201, tags=["owned-assets"])
async def add_owned_asset(payload: OwnedAssetCreate) -> OwnedAssetOut:
    if not payload.symbol.strip():
        raise HTTPException(status_code=400, detail="Symbol is required")
    portfolio = load_portfolio()
    asset = portfolio.add(
        symbol=payload.symbol,
        name=payload.name,
        type=payload.type,
        shares=payload.shares,
        avg_cost=payload.avgCost,
        purchase_date=payload.purchaseDate,
        notes=payload.notes,
    )
    save_portfolio(portfolio)
    return OwnedAssetOut.from_asset(asset)


@router.patch("/owned-assets/{asset_id}", response_model=OwnedAssetOut, tags=["owned-assets"])
async def update_owned_asset(asset_id: str, payload: OwnedAssetUpdate) -> OwnedAssetOut:
    portfolio = load_portfolio()
    try:
        asset = portfolio.update(asset_id, **payload.to_changes())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if asset is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    save_portfolio(portfolio)
    return OwnedAssetOut.from_asset(asset)


@router.delete("/owned-assets/{asset_id}", response_model=OwnedAssetsResponse, tags=["owned-assets"])
async def remove_owned_asset(asset_id: str) -> OwnedAssetsResponse:
    portfolio = load_portfolio()
    if not portfolio.remove(asset_id):
        raise HTTPException(status_code=404, detail="Asset not found")
    save_portfolio(portfolio)
    return _assets_response(portfolio)
