from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal

from stockledger.metrics.trends import mean, percentage_change_series, range_of, value_range
from stockledger.models.financials import DerivedField, RawField, YearRecord
from stockledger.models.investment import (
    InvestmentSnapshot,
    InvestmentSnapshotCalculated,
    ProfitVersusPer,
    ValueWithChange,
)
from stockledger.models.trend import ChangeKind, PercentageChange

logger = logging.getLogger(__name__)

ZERO = Decimal(0)
HUNDRED = Decimal(100)

PROFIT_KEY = RawField.PROFIT_AFTER_TAX_FOR_SHAREHOLDERS
PER_KEYS = (
    DerivedField.PRICE_EARNINGS_RATIO_REPORT_DATE,
    DerivedField.PRICE_EARNINGS_RATIO_MAX,
    DerivedField.PRICE_EARNINGS_RATIO_MIN,
)


def _ratio(numerator: Decimal | None, denominator: Decimal | None) -> Decimal | None:
    """Division that is unavailable when either side is absent or the divisor is zero."""
    if numerator is None or denominator is None or denominator == ZERO:
        return None
    return numerator / denominator


def _change_vs(current: Decimal | None, reference: Decimal | None) -> Decimal | None:
    """Percentage difference of current against reference."""
    if current is None or reference is None or reference == ZERO:
        return None
    return HUNDRED * (current - reference) / reference


def _latest(records: Mapping[str, YearRecord]) -> YearRecord | None:
    if not records:
        return None
    return records[max(records)]


def current_price_earnings_ratio(snapshot: InvestmentSnapshot) -> Decimal | None:
    return _ratio(snapshot.current_share_price, snapshot.past_4q_earnings_per_share)


def profit_growth_changes(records: Mapping[str, YearRecord]) -> dict[str, PercentageChange]:
    years = sorted(records)
    return percentage_change_series(years, records, PROFIT_KEY)


def profit_dividend_per_ratio(
    cagr_profit: PercentageChange,
    average_dividend: Decimal | None,
    current_per: Decimal | None,
) -> Decimal | None:
    """(CAGR profit growth % + average dividend yield %) / current P/E.

    Unavailable without a CAGR value or a positive current P/E. A missing
    average dividend counts as zero.
    """
    if not cagr_profit.is_cagr or cagr_profit.value is None:
        return None
    if current_per is None or current_per <= ZERO:
        return None
    dividend = average_dividend if average_dividend is not None else ZERO
    return (cagr_profit.value + dividend) / current_per


def evaluate(
    snapshot: InvestmentSnapshot,
    records: Mapping[str, YearRecord],
) -> InvestmentSnapshotCalculated:
    """Compare the current snapshot against the derived yearly history.

    ``records`` is the output of ``derive_history``. An empty history is
    fine: every history-dependent value comes back unavailable.
    """
    years = sorted(records)
    latest = _latest(records)

    # net profit margin vs latest year
    margin = _ratio(snapshot.past_4q_net_profit, snapshot.past_4q_revenue)
    margin = margin * HUNDRED if margin is not None else None
    latest_margin = (
        latest.derived.profit_after_tax_for_shareholders_margin if latest else None
    )
    net_profit_margin = ValueWithChange(margin, _change_vs(margin, latest_margin))

    # share count vs latest year (dilution)
    shares = _ratio(snapshot.past_4q_net_profit, snapshot.past_4q_earnings_per_share)
    latest_shares = latest.derived.number_of_shares if latest else None
    number_of_shares = ValueWithChange(shares, _change_vs(shares, latest_shares))

    current_per = current_price_earnings_ratio(snapshot)
    average_dividend = mean(years, records, DerivedField.DIVIDEND_YIELD)

    changes = profit_growth_changes(records)
    cagr_profit = changes[years[0]] if years else PercentageChange.unavailable()
    if not cagr_profit.is_cagr:
        cagr_profit = PercentageChange.unavailable()
    profit_vs_per = ProfitVersusPer(
        cagr_profit=cagr_profit,
        profit_growth_range=range_of(
            c.value for c in changes.values() if c.kind == ChangeKind.YEAR_OVER_YEAR
        ),
        per_range=value_range(years, records, PER_KEYS),
    )

    result = InvestmentSnapshotCalculated(
        net_profit_margin=net_profit_margin,
        number_of_shares=number_of_shares,
        price_earnings_ratio=current_per,
        average_dividend=average_dividend,
        profit_vs_per=profit_vs_per,
        profit_div_vs_per=profit_dividend_per_ratio(cagr_profit, average_dividend, current_per),
    )
    logger.debug(
        "Evaluated snapshot over %d years: profit_div_vs_per=%s",
        len(years), result.profit_div_vs_per,
    )
    return result
