from fastapi import APIRouter

from backend.app.api.routes_market import router as market_router
from backend.app.api.routes_portfolio import router as portfolio_router
from backend.app.api.routes_signals import router as signals_router

router = APIRouter()
router.include_router(signals_router)
router.include_router(market_router)
router.include_router(portfolio_router)

__all__ = ["router"]
