from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any, Iterator

logger = logging.getLogger(__name__)


class RawField(StrEnum):
    """Line items entered per year. Values match YearlyRawFacts attributes."""

    # per share
    SHARE_PRICE_AT_REPORT_DATE = "share_price_at_report_date"
    MAX_SHARE_PRICE = "max_share_price"
    MIN_SHARE_PRICE = "min_share_price"
    EARNINGS_PER_SHARE = "earnings_per_share"
    DIVIDEND_PER_SHARE = "dividend_per_share"
    # profit and loss
    REVENUE = "revenue"
    GROSS_PROFIT = "gross_profit"
    PROFIT_BEFORE_TAX = "profit_before_tax"
    PROFIT_AFTER_TAX = "profit_after_tax"
    PROFIT_AFTER_TAX_FOR_SHAREHOLDERS = "profit_after_tax_for_shareholders"
    # current assets
    CASH = "cash"
    INVENTORIES = "inventories"
    RECEIVABLES = "receivables"
    INVESTMENTS_IN_SECURITIES = "investments_in_securities"
    OTHER_CURRENT_ASSETS = "other_current_assets"
    # non-current assets
    PROPERTY_PLANT_EQUIPMENT = "property_plant_equipment"
    LAND_AND_REAL_ESTATE = "land_and_real_estate"
    INVESTMENTS_SUBSIDIARIES = "investments_subsidiaries"
    INTANGIBLE_ASSETS = "intangible_assets"
    NON_CURRENT_INVESTMENTS = "non_current_investments"
    OTHER_NON_CURRENT_ASSETS = "other_non_current_assets"
    # current liabilities
    BORROWINGS = "borrowings"
    PAYABLES = "payables"
    LEASE_LIABILITIES = "lease_liabilities"
    TAX_LIABILITIES = "tax_liabilities"
    OTHER_CURRENT_LIABILITIES = "other_current_liabilities"
    # non-current liabilities
    LONG_TERM_DEBTS = "long_term_debts"
    LONG_TERM_LEASE_LIABILITIES = "long_term_lease_liabilities"
    DEFERRED_TAX_LIABILITIES = "deferred_tax_liabilities"
    OTHER_NON_CURRENT_LIABILITIES = "other_non_current_liabilities"
    # equity
    SHARE_CAPITAL = "share_capital"
    RETAINED_EARNINGS = "retained_earnings"
    RESERVES = "reserves"
    NON_CONTROLLING_INTERESTS = "non_controlling_interests"
    # cash flow
    NET_CASH_FROM_OPERATING_ACTIVITIES = "net_cash_from_operating_activities"
    INVESTMENTS_IN_PPE = "investments_in_ppe"
    INVESTMENTS_IN_SUBSIDIARIES = "investments_in_subsidiaries"
    INVESTMENTS_IN_ACQUISITIONS = "investments_in_acquisitions"


class DerivedField(StrEnum):
    """Metrics computed per year. Values match YearlyDerivedMetrics attributes."""

    NUMBER_OF_SHARES = "number_of_shares"
    AVERAGE_SHARE_PRICE = "average_share_price"
    PRICE_EARNINGS_RATIO_REPORT_DATE = "price_earnings_ratio_report_date"
    PRICE_EARNINGS_RATIO_MAX = "price_earnings_ratio_max"
    PRICE_EARNINGS_RATIO_MIN = "price_earnings_ratio_min"
    DIVIDEND_AMOUNT = "dividend_amount"
    DIVIDEND_YIELD = "dividend_yield"
    DIVIDEND_PAYOUT_RATIO = "dividend_payout_ratio"
    GROSS_MARGIN = "gross_margin"
    PROFIT_BEFORE_TAX_MARGIN = "profit_before_tax_margin"
    PROFIT_AFTER_TAX_FOR_SHAREHOLDERS_MARGIN = "profit_after_tax_for_shareholders_margin"
    TOTAL_CURRENT_ASSETS = "total_current_assets"
    TOTAL_NON_CURRENT_ASSETS = "total_non_current_assets"
    TOTAL_ASSETS = "total_assets"
    TOTAL_CURRENT_LIABILITIES = "total_current_liabilities"
    TOTAL_NON_CURRENT_LIABILITIES = "total_non_current_liabilities"
    TOTAL_LIABILITIES = "total_liabilities"
    NET_CASH = "net_cash"
    NET_NET_CASH = "net_net_cash"
    NET_CURRENT_ASSETS = "net_current_assets"
    NET_NET_CURRENT_ASSETS = "net_net_current_assets"
    NET_TANGIBLE_ASSETS = "net_tangible_assets"
    DEBT_TO_EQUITY_RATIO = "debt_to_equity_ratio"
    EQUITY_ATTRIBUTABLE_TO_SHAREHOLDERS = "equity_attributable_to_shareholders"
    TOTAL_EQUITY = "total_equity"
    TOTAL_LIABILITIES_AND_EQUITY = "total_liabilities_and_equity"
    FREE_CASH_FLOW = "free_cash_flow"


MetricKey = RawField | DerivedField


def to_decimal(value: Any, name: str = "value") -> Decimal | None:
    """Convert a stored or entered number to Decimal. None and "" stay absent."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name}: expected a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"{name}: expected a number, got {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"{name}: expected a finite number, got {value!r}")
    return result


@dataclass(frozen=True)
class YearlyRawFacts:
    # per share
    share_price_at_report_date: Decimal | None = None
    max_share_price: Decimal | None = None
    min_share_price: Decimal | None = None
    earnings_per_share: Decimal | None = None
    dividend_per_share: Decimal | None = None
    # profit and loss
    revenue: Decimal | None = None
    gross_profit: Decimal | None = None
    profit_before_tax: Decimal | None = None
    profit_after_tax: Decimal | None = None
    profit_after_tax_for_shareholders: Decimal | None = None
    # current assets
    cash: Decimal | None = None
    inventories: Decimal | None = None
    receivables: Decimal | None = None
    investments_in_securities: Decimal | None = None
    other_current_assets: Decimal | None = None
    # non-current assets
    property_plant_equipment: Decimal | None = None
    land_and_real_estate: Decimal | None = None
    investments_subsidiaries: Decimal | None = None
    intangible_assets: Decimal | None = None
    non_current_investments: Decimal | None = None
    other_non_current_assets: Decimal | None = None
    # current liabilities
    borrowings: Decimal | None = None
    payables: Decimal | None = None
    lease_liabilities: Decimal | None = None
    tax_liabilities: Decimal | None = None
    other_current_liabilities: Decimal | None = None
    # non-current liabilities
    long_term_debts: Decimal | None = None
    long_term_lease_liabilities: Decimal | None = None
    deferred_tax_liabilities: Decimal | None = None
    other_non_current_liabilities: Decimal | None = None
    # equity
    share_capital: Decimal | None = None
    retained_earnings: Decimal | None = None
    reserves: Decimal | None = None
    non_controlling_interests: Decimal | None = None
    # cash flow
    net_cash_from_operating_activities: Decimal | None = None
    investments_in_ppe: Decimal | None = None
    investments_in_subsidiaries: Decimal | None = None
    investments_in_acquisitions: Decimal | None = None

    def get(self, key: RawField) -> Decimal | None:
        return getattr(self, key.value)

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> YearlyRawFacts:
        """Build from the persisted {field: number} shape.

        Unknown keys are logged and dropped; non-numeric values raise ValueError.
        """
        known = {f.value for f in RawField}
        values: dict[str, Decimal | None] = {}
        for key, raw in data.items():
            if key not in known:
                logger.warning("Dropping unknown financial field: %s", key)
                continue
            values[key] = to_decimal(raw, key)
        return cls(**values)

    def to_dict(self) -> dict[str, Decimal]:
        """Persisted shape: only entered fields, Decimals kept exact.

        Serialize with ``dumps`` so they are written as strings rather than floats.
        """
        return {
            f.name: value
            for f in fields(self)
            if (value := getattr(self, f.name)) is not None
        }


@dataclass(frozen=True)
class YearlyDerivedMetrics:
    # per share
    number_of_shares: Decimal
    average_share_price: Decimal
    price_earnings_ratio_report_date: Decimal
    price_earnings_ratio_max: Decimal
    price_earnings_ratio_min: Decimal
    dividend_amount: Decimal
    dividend_yield: Decimal
    dividend_payout_ratio: Decimal
    # profit and loss
    gross_margin: Decimal
    profit_before_tax_margin: Decimal
    profit_after_tax_for_shareholders_margin: Decimal
    # assets
    total_current_assets: Decimal
    total_non_current_assets: Decimal
    total_assets: Decimal
    # liabilities
    total_current_liabilities: Decimal
    total_non_current_liabilities: Decimal
    total_liabilities: Decimal
    # asset metrics
    net_cash: Decimal
    net_net_cash: Decimal
    net_current_assets: Decimal
    net_net_current_assets: Decimal
    net_tangible_assets: Decimal
    debt_to_equity_ratio: Decimal
    # equity
    equity_attributable_to_shareholders: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    # cash flow
    free_cash_flow: Decimal

    def get(self, key: DerivedField) -> Decimal:
        return getattr(self, key.value)


@dataclass(frozen=True)
class YearRecord:
    """One year's raw facts together with its derived metrics."""

    year: str
    raw: YearlyRawFacts
    derived: YearlyDerivedMetrics

    def value(self, key: MetricKey) -> Decimal | None:
        if isinstance(key, DerivedField):
            return self.derived.get(key)
        return self.raw.get(key)


class FinancialHistory:
    """Year-label-keyed financial facts for one stock, kept in label order.

    Labels are date strings (fiscal-year-end, e.g. "2023-12-31") and sort
    lexicographically.
    """

    def __init__(self, years: dict[str, YearlyRawFacts] | None = None) -> None:
        self._years: dict[str, YearlyRawFacts] = dict(years or {})

    @property
    def years(self) -> list[str]:
        return sorted(self._years)

    @property
    def latest_year(self) -> str | None:
        years = self.years
        return years[-1] if years else None

    def get(self, year: str) -> YearlyRawFacts | None:
        return self._years.get(year)

    def add_year(self, year: str, facts: YearlyRawFacts | None = None) -> None:
        year = year.strip()
        if not year:
            raise ValueError("Year label must not be empty")
        if year in self._years:
            raise ValueError(f"Year {year} already exists")
        self._years[year] = facts or YearlyRawFacts()

    def set_year(self, year: str, facts: YearlyRawFacts) -> None:
        """Replace (or create) a year's facts."""
        self._years[year] = facts

    def remove_year(self, year: str) -> None:
        if year not in self._years:
            raise KeyError(year)
        del self._years[year]

    def rename_year(self, old: str, new: str) -> None:
        new = new.strip()
        if old not in self._years:
            raise KeyError(old)
        if new == old:
            return
        if not new:
            raise ValueError("Year label must not be empty")
        if new in self._years:
            raise ValueError(f"Year {new} already exists")
        self._years[new] = self._years.pop(old)

    def items(self) -> Iterator[tuple[str, YearlyRawFacts]]:
        for year in self.years:
            yield year, self._years[year]

    def __len__(self) -> int:
        return len(self._years)

    def __contains__(self, year: object) -> bool:
        return year in self._years

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FinancialHistory):
            return NotImplemented
        return self._years == other._years

    def __repr__(self) -> str:
        return f"FinancialHistory(years={self.years!r})"

    @classmethod
    def from_dict(cls, data: dict[str, dict[str, Any]] | None) -> FinancialHistory:
        """Build from the persisted {year_label: {field: number}} shape."""
        history = cls()
        for year, facts in (data or {}).items():
            if not isinstance(facts, dict):
                raise ValueError(f"Year {year}: expected an object of fields")
            history.add_year(year, YearlyRawFacts.from_dict(facts))
        return history

    def to_dict(self) -> dict[str, dict[str, Decimal]]:
        return {year: facts.to_dict() for year, facts in self.items()}


def dumps(data: Any, **kwargs: Any) -> str:
    """json.dumps that writes Decimals as strings so no digits are lost."""
    return json.dumps(data, default=str, **kwargs)
