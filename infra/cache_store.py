"""
Layered cache: in-process memory, then Redis, then MongoDB.

Redis and MongoDB are switched on through .env (``REDIS_ENABLED``,
``MONGO_ENABLED``). Values are stored as JSON text in the remote tiers, so
only JSON-serialisable payloads (quotes, close lists, search hits) go through
here.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import redis
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from datahub.cache import MemoryCache

logger = logging.getLogger(__name__)


def _parse_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class RedisAdapter:
    """Redis tier."""

    def __init__(self) -> None:
        self.enabled = _parse_bool("REDIS_ENABLED", False)
        self.client = None
        if not self.enabled:
            return
        host = os.getenv("REDIS_HOST", "127.0.0.1")
        port = _parse_int("REDIS_PORT", 6379)
        db_index = _parse_int("REDIS_DB", 0)
        try:
            self.client = redis.Redis(host=host, port=port, db=db_index)
            self.client.ping()
        except redis.RedisError as exc:  # pragma: no cover - remote unreachable
            logger.warning("Redis unavailable, disabling: %s", exc)
            self.client = None
            self.enabled = False

    def get(self, key: str) -> Optional[str]:
        if not self.enabled or self.client is None:
            return None
        try:
            raw = self.client.get(key)
        except redis.RedisError as exc:  # pragma: no cover
            logger.debug("Redis read failed %s: %s", key, exc)
            return None
        if raw is None:
            return None
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return str(raw)

    def set(self, key: str, payload: str, ttl: int) -> None:
        if not self.enabled or self.client is None:
            return
        try:
            self.client.setex(key, ttl, payload)
        except redis.RedisError as exc:  # pragma: no cover
            logger.debug("Redis write failed %s: %s", key, exc)


class MongoAdapter:
    """MongoDB tier; expiry handled by a TTL index on ``expires_at``."""

    def __init__(self) -> None:
        self.enabled = _parse_bool("MONGO_ENABLED", False)
        self.collection = None
        if not self.enabled:
            return
        uri = os.getenv("MONGO_URI", "mongodb://localhost:27017")
        db_name = os.getenv("MONGO_DB", "apex_signals")
        coll_name = os.getenv("MONGO_CACHE_COLLECTION", "cache")
        try:
            client = MongoClient(uri, serverSelectionTimeoutMS=2000)
            client.admin.command("ping")
            self.collection = client[db_name][coll_name]
            self.collection.create_index("expires_at", expireAfterSeconds=0)
        except PyMongoError as exc:  # pragma: no cover - remote unreachable
            logger.warning("MongoDB unavailable, disabling: %s", exc)
            self.collection = None
            self.enabled = False

    def get(self, key: str) -> Optional[str]:
        if not self.enabled or self.collection is None:
            return None
        try:
            doc = self.collection.find_one({"_id": key})
        except PyMongoError as exc:  # pragma: no cover
            logger.debug("MongoDB read failed %s: %s", key, exc)
            return None
        if not doc:
            return None
        expires_at = doc.get("expires_at")
        if isinstance(expires_at, datetime):
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at < datetime.now(timezone.utc):
                return None
        return doc.get("payload")

    def set(self, key: str, payload: str, ttl: int) -> None:
        if not self.enabled or self.collection is None:
            return
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl)
        doc = {"payload": payload, "expires_at": expires_at}
        try:
            self.collection.update_one({"_id": key}, {"$set": doc}, upsert=True)
        except PyMongoError as exc:  # pragma: no cover
            logger.debug("MongoDB write failed %s: %s", key, exc)


class CacheManager:
    """Cache implementation handed to the fetcher by default."""

    def __init__(
        self,
        memory: Optional[MemoryCache] = None,
        redis_adapter: Optional[RedisAdapter] = None,
        mongo_adapter: Optional[MongoAdapter] = None,
    ) -> None:
        self.enabled = _parse_bool("CACHE_ENABLED", True)
        self.memory = memory or MemoryCache(default_ttl=_parse_int("TTL_QUOTE", 60))
        self.redis = redis_adapter or RedisAdapter()
        self.mongo = mongo_adapter or MongoAdapter()

        self.ttl_quote = _parse_int("TTL_QUOTE", 60)
        self.ttl_history = _parse_int("TTL_HISTORY", 3600)
        self.ttl_search = _parse_int("TTL_SEARCH", 21600)

    def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        value = self.memory.get(key)
        if value is not None:
            return value
        payload = self.redis.get(key)
        if payload is None:
            payload = self.mongo.get(key)
        if payload is None:
            return None
        try:
            value = json.loads(payload)
        except json.JSONDecodeError as exc:
            logger.debug("Cache payload is not JSON %s: %s", key, exc)
            return None
        self.memory.put(key, value)
        return value

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl_value = self.ttl_quote if ttl is None else ttl
        if not self.enabled or ttl_value <= 0:
            return
        self.memory.put(key, value, ttl_value)
        if not (self.redis.enabled or self.mongo.enabled):
            return
        try:
            text = json.dumps(value, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as exc:
            logger.debug("Cache value not serialisable %s: %s", key, exc)
            return
        self.redis.set(key, text, ttl_value)
        self.mongo.set(key, text, ttl_value)


cache_manager = CacheManager()
