"""Watchlist and owned-asset persistence."""

from datetime import date

import pytest

from datahub.portfolio import Portfolio, load_portfolio, save_portfolio
from datahub.watchlist import Watchlist, load_watchlist, save_watchlist


def test_watchlist_normalises_and_dedupes():
    watchlist = Watchlist()
    assert watchlist.add(" aapl ") is True
    assert watchlist.add("AAPL") is False
    assert watchlist.add("") is False
    watchlist.extend(["msft", "nvda"])
    assert watchlist.symbols == ["AAPL", "MSFT", "NVDA"]
    assert "msft" in watchlist
    assert watchlist.remove("Msft") is True
    assert watchlist.remove("MSFT") is False


def test_watchlist_round_trip(tmp_path):
    path = tmp_path / "watchlist.json"
    assert load_watchlist(path).symbols == []
    watchlist = Watchlist()
    watchlist.replace(["tsla", "amd"])
    save_watchlist(watchlist, path)
    loaded = load_watchlist(path)
    assert loaded.symbols == ["TSLA", "AMD"]
    assert loaded.updated_at == watchlist.updated_at


def test_watchlist_path_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("WATCHLIST_PATH", str(tmp_path / "nested" / "wl.json"))
    watchlist = Watchlist()
    watchlist.add("GOOGL")
    save_watchlist(watchlist)
    assert (tmp_path / "nested" / "wl.json").exists()
    assert load_watchlist().symbols == ["GOOGL"]


def test_portfolio_totals():
    portfolio = Portfolio()
    portfolio.add("aapl", "Apple Inc.", "stock", 10, 150.0, date(2024, 1, 5))
    portfolio.add("AAPL", "Apple Inc.", "stock", 5, 180.0, "2024-03-01")
    portfolio.add("BTC-USD", "Bitcoin", "crypto", 0.5, 40000.0, "2024-02-01", notes="cold wallet")
    assert portfolio.total_invested == pytest.approx(10 * 150 + 5 * 180 + 0.5 * 40000)
    assert portfolio.unique_symbols == ["AAPL", "BTC-USD"]
    assert len(portfolio.by_symbol("aapl")) == 2
    assert portfolio.assets[0].purchase_date == "2024-01-05"
    assert portfolio.assets[2].market_value(50000.0) == 25000.0


def test_portfolio_update_and_remove():
    portfolio = Portfolio()
    asset = portfolio.add("MSFT", "Microsoft", "stock", 3, 300.0, "2024-01-02")
    updated = portfolio.update(asset.id, shares=4, notes="added on dip")
    assert updated.shares == 4
    assert updated.notes == "added on dip"
    assert updated.added_at == asset.added_at
    assert portfolio.get(asset.id) == updated
    assert portfolio.update("asset-missing", shares=1) is None
    with pytest.raises(ValueError):
        portfolio.update(asset.id, id="asset-other")
    with pytest.raises(ValueError):
        portfolio.update(asset.id, type="bond")
    assert portfolio.remove(asset.id) is True
    assert portfolio.remove(asset.id) is False


def test_portfolio_update_rejects_null_and_blank_values():
    portfolio = Portfolio()
    asset = portfolio.add("AMD", "AMD", "stock", 5, 120.0, "2024-02-01")
    with pytest.raises(ValueError):
        portfolio.update(asset.id, shares=None)
    with pytest.raises(ValueError):
        portfolio.update(asset.id, symbol="   ")
    assert portfolio.get(asset.id) == asset
    assert portfolio.update(asset.id, notes=None).notes is None


def test_portfolio_rejects_unknown_type():
    with pytest.raises(ValueError):
        Portfolio().add("X", "X", "bond", 1, 1.0, "2024-01-01")


def test_portfolio_round_trip(tmp_path):
    path = tmp_path / "owned.json"
    portfolio = Portfolio()
    asset = portfolio.add("SPY", "SPDR S&P 500", "etf", 2, 500.0, "2024-04-01")
    save_portfolio(portfolio, path)
    loaded = load_portfolio(path)
    assert loaded.assets == [asset]
    assert load_portfolio(tmp_path / "missing.json").assets == []
