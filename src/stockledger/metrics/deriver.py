from __future__ import annotations

import logging
from decimal import Decimal

from stockledger.models.financials import (
    FinancialHistory,
    YearlyDerivedMetrics,
    YearlyRawFacts,
    YearRecord,
)

logger = logging.getLogger(__name__)

ZERO = Decimal(0)
HUNDRED = Decimal(100)
TWO = Decimal(2)


def _v(value: Decimal | None) -> Decimal:
    """Absent line items count as zero."""
    return value if value is not None else ZERO


def _safe_div(numerator: Decimal | None, denominator: Decimal | None) -> Decimal:
    """Division returning zero when the denominator is absent or zero."""
    if denominator is None or denominator == ZERO:
        return ZERO
    return _v(numerator) / denominator


def _sum(*values: Decimal | None) -> Decimal:
    return sum((_v(v) for v in values), ZERO)


def derive_year(facts: YearlyRawFacts) -> YearlyDerivedMetrics:
    """Compute one year's derived metrics from that year's raw facts only.

    Totals treat missing line items as zero. Ratios whose denominator is
    missing or zero come out as zero, so the result is always fully populated.
    """
    f = facts
    eps = f.earnings_per_share

    number_of_shares = _safe_div(f.profit_after_tax_for_shareholders, eps)
    average_share_price = (_v(f.max_share_price) + _v(f.min_share_price)) / TWO

    total_current_assets = _sum(
        f.cash,
        f.inventories,
        f.receivables,
        f.investments_in_securities,
        f.other_current_assets,
    )
    total_non_current_assets = _sum(
        f.property_plant_equipment,
        f.land_and_real_estate,
        f.investments_subsidiaries,
        f.intangible_assets,
        f.non_current_investments,
        f.other_non_current_assets,
    )
    total_assets = total_current_assets + total_non_current_assets

    total_current_liabilities = _sum(
        f.borrowings,
        f.payables,
        f.lease_liabilities,
        f.tax_liabilities,
        f.other_current_liabilities,
    )
    total_non_current_liabilities = _sum(
        f.long_term_debts,
        f.long_term_lease_liabilities,
        f.deferred_tax_liabilities,
        f.other_non_current_liabilities,
    )
    total_liabilities = total_current_liabilities + total_non_current_liabilities

    equity_attributable = _sum(f.share_capital, f.reserves, f.retained_earnings)
    total_equity = equity_attributable + _v(f.non_controlling_interests)

    return YearlyDerivedMetrics(
        # per share
        number_of_shares=number_of_shares,
        average_share_price=average_share_price,
        price_earnings_ratio_report_date=_safe_div(f.share_price_at_report_date, eps),
        price_earnings_ratio_max=_safe_div(f.max_share_price, eps),
        price_earnings_ratio_min=_safe_div(f.min_share_price, eps),
        dividend_amount=_v(f.dividend_per_share) * number_of_shares,
        dividend_yield=HUNDRED * _safe_div(f.dividend_per_share, average_share_price),
        dividend_payout_ratio=_safe_div(f.dividend_per_share, eps),
        # profit and loss
        gross_margin=HUNDRED * _safe_div(f.gross_profit, f.revenue),
        profit_before_tax_margin=HUNDRED * _safe_div(f.profit_before_tax, f.revenue),
        profit_after_tax_for_shareholders_margin=(
            HUNDRED * _safe_div(f.profit_after_tax_for_shareholders, f.revenue)
        ),
        # assets
        total_current_assets=total_current_assets,
        total_non_current_assets=total_non_current_assets,
        total_assets=total_assets,
        # liabilities
        total_current_liabilities=total_current_liabilities,
        total_non_current_liabilities=total_non_current_liabilities,
        total_liabilities=total_liabilities,
        # asset metrics
        net_cash=_v(f.cash) - total_current_liabilities,
        net_net_cash=_v(f.cash) - total_liabilities,
        net_current_assets=total_current_assets - total_current_liabilities,
        net_net_current_assets=total_current_assets - total_liabilities,
        net_tangible_assets=(
            total_assets
            - _v(f.intangible_assets)
            - total_liabilities
            - _v(f.non_controlling_interests)
        ),
        debt_to_equity_ratio=_safe_div(total_liabilities, total_equity),
        # equity
        equity_attributable_to_shareholders=equity_attributable,
        total_equity=total_equity,
        total_liabilities_and_equity=total_liabilities + total_equity,
        # cash flow
        free_cash_flow=_v(f.net_cash_from_operating_activities) - _v(f.investments_in_ppe),
    )


def derive_history(history: FinancialHistory) -> dict[str, YearRecord]:
    """Derive every year of a history, keyed by year label in label order."""
    records = {
        year: YearRecord(year=year, raw=facts, derived=derive_year(facts))
        for year, facts in history.items()
    }
    logger.debug("Derived metrics for %d years", len(records))
    return records
