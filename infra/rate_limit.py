"""
Process-wide rate limiting: a token bucket per upstream plus a minimum gap
between repeated calls for the same symbol and endpoint.

Limits come from .env (``YF_MAX_RPM``, ``YF_PER_SYMBOL_MIN_INTERVAL``,
``LLM_MAX_RPM``). An rpm of 0 disables limiting for that upstream.
"""

from __future__ import annotations

import asyncio
import os
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional

DEFAULT_YF_RPM = 60
DEFAULT_YF_SYMBOL_INTERVAL = 1.0
DEFAULT_LLM_RPM = 30


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(int(raw), 0)
    except ValueError:
        return default


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(float(raw), 0.0)
    except ValueError:
        return default


@dataclass
class LimitConfig:
    provider: str
    rpm: int
    per_symbol_interval: float = 0.0

    @property
    def enabled(self) -> bool:
        return self.rpm > 0


class TokenBucket:
    """Async token bucket refilled continuously at ``refill_rate`` tokens/s."""

    def __init__(self, capacity: int, refill_rate: float) -> None:
        self.capacity = capacity
        self.tokens = float(capacity)
        self.refill_rate = refill_rate
        self.updated_at = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        while True:
            async with self._lock:
                now = time.monotonic()
                elapsed = now - self.updated_at
                self.updated_at = now
                if elapsed > 0:
                    self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
                if self.tokens >= 1.0:
                    self.tokens -= 1.0
                    return
                wait_for = (1.0 - self.tokens) / self.refill_rate
            await asyncio.sleep(min(max(wait_for, 0.05), 5.0))


class SymbolGate:
    """Enforces ``min_interval`` seconds between calls sharing a key."""

    def __init__(self, min_interval: float) -> None:
        self.min_interval = min_interval
        self._last_seen: Dict[str, float] = {}
        self._lock = asyncio.Lock()

    async def wait(self, key: str) -> None:
        if self.min_interval <= 0:
            return
        while True:
            async with self._lock:
                now = time.monotonic()
                last = self._last_seen.get(key)
                if last is None or now - last >= self.min_interval:
                    self._last_seen[key] = now
                    return
                remaining = self.min_interval - (now - last)
            await asyncio.sleep(min(max(remaining, 0.05), self.min_interval))


class RateLimiter:
    def __init__(self, configs: Dict[str, LimitConfig]) -> None:
        self._configs = {name.lower(): config for name, config in configs.items()}
        self._buckets: Dict[str, TokenBucket] = {}
        self._gates: Dict[str, SymbolGate] = {}

    def _bucket_for(self, config: LimitConfig) -> TokenBucket:
        bucket = self._buckets.get(config.provider)
        if bucket is None:
            bucket = TokenBucket(max(config.rpm, 1), config.rpm / 60.0)
            self._buckets[config.provider] = bucket
        return bucket

    def _gate_for(self, config: LimitConfig) -> SymbolGate:
        gate = self._gates.get(config.provider)
        if gate is None:
            gate = SymbolGate(config.per_symbol_interval)
            self._gates[config.provider] = gate
        return gate

    @asynccontextmanager
    async def limit(
        self,
        provider: str,
        symbol: Optional[str] = None,
        endpoint: str = "default",
    ) -> AsyncIterator[None]:
        config = self._configs.get(provider.lower())
        if config is None or not config.enabled:
            yield
            return

        await self._bucket_for(config).acquire()
        if symbol and config.per_symbol_interval > 0:
            await self._gate_for(config).wait(f"{endpoint}:{symbol.upper()}")
        yield

    @classmethod
    def from_env(cls) -> "RateLimiter":
        configs = {
            "yfinance": LimitConfig(
                provider="yfinance",
                rpm=_parse_int("YF_MAX_RPM", DEFAULT_YF_RPM),
                per_symbol_interval=_parse_float("YF_PER_SYMBOL_MIN_INTERVAL", DEFAULT_YF_SYMBOL_INTERVAL),
            ),
            "llm": LimitConfig(provider="llm", rpm=_parse_int("LLM_MAX_RPM", DEFAULT_LLM_RPM)),
        }
        return cls(configs)


rate_limiter = RateLimiter.from_env()
