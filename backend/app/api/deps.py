from __future__ import annotations

from typing import List, Optional

from fastapi import HTTPException, Query


def normalize_symbols(symbols: Optional[List[str]]) -> List[str]:
    if not symbols:
        return []
    cleaned: List[str] = []
    for symbol in symbols:
        norm = symbol.strip().upper()
        if norm and norm not in cleaned:
            cleaned.append(norm)
    return cleaned


def symbols_param(symbols: Optional[str] = Query(None, description="Comma-separated tickers, e.g. AAPL,MSFT")) -> List[str]:
    """Required ``symbols`` query parameter split into unique upper-case tickers."""
    if not symbols:
        raise HTTPException(status_code=400, detail="Missing symbols parameter")
    cleaned = normalize_symbols(symbols.split(","))
    if not cleaned:
        raise HTTPException(status_code=400, detail="No valid symbols provided")
    return cleaned
