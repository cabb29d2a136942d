from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pymongo import DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from engine.models import SentimentResult

logger = logging.getLogger(__name__)

QUERY_CHUNK_SIZE = 10
MAX_STORED_HEADLINES = 10


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class SignalStore:
    """Latest per-ticker signal documents plus a sentiment history, in MongoDB.

    Collections: ``tickers`` (one document per symbol, ``_id`` is the
    symbol), ``sentiments`` (latest analysis per symbol) and
    ``sentiment_history`` (append-only). Reads log and degrade to empty
    results; writes raise ``PyMongoError`` to the caller.
    """

    def __init__(self, database: Optional[Database] = None) -> None:
        self.enabled = database is not None or _parse_bool(os.getenv("SIGNAL_STORE_ENABLED"), default=False)
        self.mongo_uri = os.getenv("SIGNAL_STORE_MONGO_URI", os.getenv("MONGO_URI", "mongodb://localhost:27017"))
        self.mongo_db = os.getenv("SIGNAL_STORE_MONGO_DB", os.getenv("MONGO_DB", "apex_signals"))
        self._db: Optional[Database] = database
        if not self.enabled:
            logger.info("Signal store disabled.")

    def _get_db(self) -> Optional[Database]:
        if not self.enabled:
            return None
        if self._db is not None:
            return self._db
        try:
            client = MongoClient(self.mongo_uri, serverSelectionTimeoutMS=2000)
            client.admin.command("ping")
            database = client[self.mongo_db]
            database["sentiment_history"].create_index([("symbol", 1), ("analyzedAt", DESCENDING)])
            self._db = database
        except PyMongoError as exc:  # pragma: no cover - connection failure
            logger.warning("MongoDB not available for signal store: %s", exc)
            self._db = None
        return self._db

    def _collection(self, name: str) -> Optional[Collection]:
        database = self._get_db()
        return database[name] if database is not None else None

    @property
    def available(self) -> bool:
        return self._get_db() is not None

    async def save_ticker(self, symbol: str, document: Dict[str, Any]) -> None:
        collection = self._collection("tickers")
        if collection is None:
            return
        payload = {**document, "symbol": symbol, "lastUpdated": datetime.now(timezone.utc)}
        await asyncio.to_thread(collection.replace_one, {"_id": symbol}, payload, True)

    async def get_signals(self, symbols: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        """Stored ``signal``/``sentiment`` pairs keyed by symbol; unknown symbols are absent."""
        collection = self._collection("tickers")
        if collection is None:
            return {}

        def _fetch(chunk: List[str]) -> List[Dict[str, Any]]:
            return list(collection.find({"_id": {"$in": chunk}}))

        results: Dict[str, Dict[str, Any]] = {}
        symbols = list(symbols)
        for i in range(0, len(symbols), QUERY_CHUNK_SIZE):
            chunk = symbols[i:i + QUERY_CHUNK_SIZE]
            try:
                docs = await asyncio.to_thread(_fetch, chunk)
            except PyMongoError as exc:
                logger.info("Signal query skipped for %s: %s", chunk, exc)
                continue
            for doc in docs:
                results[str(doc["_id"])] = {
                    "signal": doc.get("signal"),
                    "sentiment": doc.get("sentiment"),
                    "updatedAt": doc.get("lastUpdated"),
                }
        return results

    async def store_sentiment(
        self,
        symbol: str,
        sentiment: SentimentResult,
        headlines: Sequence[str],
    ) -> Optional[datetime]:
        """Record the latest analysis and append it to the history; returns the timestamp."""
        latest = self._collection("sentiments")
        history = self._collection("sentiment_history")
        if latest is None or history is None:
            return None
        now = datetime.now(timezone.utc)
        entry = {**sentiment.to_dict(), "analyzedAt": now, "headlinesCount": len(headlines)}

        def _write() -> None:
            latest.replace_one(
                {"_id": symbol},
                {**entry, "symbol": symbol, "headlines": list(headlines[:MAX_STORED_HEADLINES])},
                upsert=True,
            )
            history.insert_one({**entry, "symbol": symbol})

        await asyncio.to_thread(_write)
        logger.info("Stored sentiment for %s", symbol)
        return now

    async def get_sentiment(self, symbol: str) -> Optional[Dict[str, Any]]:
        collection = self._collection("sentiments")
        if collection is None:
            return None
        try:
            return await asyncio.to_thread(collection.find_one, {"_id": symbol})
        except PyMongoError as exc:
            logger.warning("Failed to read sentiment for %s: %s", symbol, exc)
            return None

    async def get_sentiment_history(self, symbol: str, max_entries: int = 30) -> List[Dict[str, Any]]:
        collection = self._collection("sentiment_history")
        if collection is None:
            return []

        def _fetch() -> List[Dict[str, Any]]:
            cursor = collection.find({"symbol": symbol}).sort("analyzedAt", DESCENDING).limit(max_entries)
            entries = []
            for doc in cursor:
                doc["_id"] = str(doc.get("_id"))
                entries.append(doc)
            return entries

        try:
            return await asyncio.to_thread(_fetch)
        except PyMongoError as exc:
            logger.warning("Failed to read sentiment history for %s: %s", symbol, exc)
            return []


signal_store = SignalStore()
