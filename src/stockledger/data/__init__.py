from __future__ import annotations

from stockledger.data.price_feed import PriceFeed, yahoo_symbol

__all__ = ["PriceFeed", "yahoo_symbol"]
