from __future__ import annotations

from stockledger.models.financials import (
    DerivedField,
    FinancialHistory,
    MetricKey,
    RawField,
    YearlyDerivedMetrics,
    YearlyRawFacts,
    YearRecord,
)
from stockledger.models.investment import (
    InvestmentAction,
    InvestmentSnapshot,
    InvestmentSnapshotCalculated,
    ProfitVersusPer,
    ScreeningVerdict,
    StockType,
    ValueWithChange,
)
from stockledger.models.stock import Exchange, Stock
from stockledger.models.trend import ChangeKind, PercentageChange, ValueRange

__all__ = [
    # financials
    "RawField",
    "DerivedField",
    "MetricKey",
    "YearlyRawFacts",
    "YearlyDerivedMetrics",
    "YearRecord",
    "FinancialHistory",
    # investment
    "StockType",
    "InvestmentAction",
    "ScreeningVerdict",
    "InvestmentSnapshot",
    "InvestmentSnapshotCalculated",
    "ValueWithChange",
    "ProfitVersusPer",
    # stock
    "Stock",
    "Exchange",
    # trend
    "ChangeKind",
    "PercentageChange",
    "ValueRange",
]
