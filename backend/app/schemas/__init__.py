from .signal import (
    CronResponse,
    CronSummary,
    CronSymbolResult,
    LiveSignalResponse,
    RefreshSentimentRequest,
    RefreshSentimentResponse,
    SentimentHistoryEntry,
    SentimentHistoryResponse,
    SentimentOut,
    SignalOut,
    StoredSignal,
    StoredSignals,
    TechnicalsOut,
)
from .market import MarketDataOut, NewsItem, PerformanceOut, SearchResult
from .portfolio import (
    OwnedAssetCreate,
    OwnedAssetOut,
    OwnedAssetsResponse,
    OwnedAssetUpdate,
    WatchlistModifyRequest,
    WatchlistRequest,
    WatchlistResponse,
)

__all__ = [
    "CronResponse",
    "CronSummary",
    "CronSymbolResult",
    "LiveSignalResponse",
    "RefreshSentimentRequest",
    "RefreshSentimentResponse",
    "SentimentHistoryEntry",
    "SentimentHistoryResponse",
    "SentimentOut",
    "SignalOut",
    "StoredSignal",
    "StoredSignals",
    "TechnicalsOut",
    "MarketDataOut",
    "NewsItem",
    "PerformanceOut",
    "SearchResult",
    "OwnedAssetCreate",
    "OwnedAssetOut",
    "OwnedAssetsResponse",
    "OwnedAssetUpdate",
    "WatchlistModifyRequest",
    "WatchlistRequest",
    "WatchlistResponse",
]
