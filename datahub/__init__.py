"""Market data access, indicators and user preferences for Apex Signals."""

from .cache import Cache, MemoryCache  # noqa: F401
from .fetcher import (  # noqa: F401
    get_history_closes,
    get_news,
    get_news_headlines,
    get_performances,
    get_quote,
    get_quotes,
    get_sparklines,
    search_crypto,
    search_tickers,
)
from .indicators import MacdSignalMode, calculate_technicals  # noqa: F401
from .portfolio import OwnedAsset, Portfolio, load_portfolio, save_portfolio  # noqa: F401
from .providers import MarketData, MarketDataProvider, ProviderError, YFinanceProvider  # noqa: F401
from .watchlist import Watchlist, load_watchlist, save_watchlist  # noqa: F401

__all__ = [
    "Cache",
    "MacdSignalMode",
    "MarketData",
    "MarketDataProvider",
    "MemoryCache",
    "OwnedAsset",
    "Portfolio",
    "ProviderError",
    "Watchlist",
    "YFinanceProvider",
    "calculate_technicals",
    "get_history_closes",
    "get_news",
    "get_news_headlines",
    "get_performances",
    "get_quote",
    "get_quotes",
    "get_sparklines",
    "load_portfolio",
    "load_watchlist",
    "save_portfolio",
    "save_watchlist",
    "search_crypto",
    "search_tickers",
]
