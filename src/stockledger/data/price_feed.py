from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

import yfinance as yf

from stockledger.models.stock import Stock

logger = logging.getLogger(__name__)

# Yahoo Finance symbol suffix by listing country (name or ISO code, lower-cased).
_SUFFIXES: dict[str, str] = {
    "united states": "",
    "us": "",
    "malaysia": ".KL",
    "my": ".KL",
    "singapore": ".SI",
    "sg": ".SI",
    "hong kong": ".HK",
    "hk": ".HK",
    "united kingdom": ".L",
    "gb": ".L",
    "australia": ".AX",
    "au": ".AX",
}


def _to_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    return result if result.is_finite() else None


def yahoo_symbol(stock: Stock) -> str:
    """Yahoo Finance symbol for a stock.

    Bursa Malaysia listings are quoted by their numeric code, so ``5031`` in
    Malaysia becomes ``5031.KL``. Unlisted countries fall back to the bare ticker.
    """
    suffix = _SUFFIXES.get(stock.country.strip().lower())
    if suffix is None:
        logger.debug("No symbol suffix for country %r, using %s", stock.country, stock.ticker)
        return stock.ticker.upper()
    return f"{stock.ticker.upper()}{suffix}"


class PriceFeed:
    """Current share prices from yfinance, cached for a few minutes."""

    def __init__(self, cache_minutes: int = 15) -> None:
        self._cache: dict[str, tuple[Decimal, datetime]] = {}
        self._cache_ttl = timedelta(minutes=cache_minutes)

    def get_current_price(self, symbol: str) -> Decimal | None:
        """Latest price for a Yahoo symbol, or None when it cannot be fetched."""
        cached = self._get_cached(symbol)
        if cached is not None:
            return cached

        try:
            info = yf.Ticker(symbol).info
        except Exception:
            logger.exception("Error fetching price for %s", symbol)
            return None

        price = _to_decimal(
            (info or {}).get("currentPrice") or (info or {}).get("regularMarketPrice")
        )
        if price is None:
            logger.warning("No price returned for %s", symbol)
            return None
        self._cache[symbol] = (price, datetime.now(UTC))
        return price

    def get_stock_price(self, stock: Stock) -> Decimal | None:
        return self.get_current_price(yahoo_symbol(stock))

    def clear_cache(self) -> None:
        self._cache.clear()

    def _get_cached(self, key: str) -> Decimal | None:
        if key in self._cache:
            value, cached_at = self._cache[key]
            if datetime.now(UTC) - cached_at < self._cache_ttl:
                return value
            del self._cache[key]
        return None
