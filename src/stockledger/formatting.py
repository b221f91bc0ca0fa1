"""Display formatting. The only place an unavailable value becomes text."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, localcontext

from stockledger.metrics.catalog import CATALOG, CHART_LEFT_AXIS, CHART_RIGHT_AXIS, SECTIONS, MetricInfo
from stockledger.metrics.trends import percentage_change_series
from stockledger.models.financials import YearRecord
from stockledger.models.investment import (
    InvestmentSnapshot,
    InvestmentSnapshotCalculated,
    ProfitVersusPer,
    ValueWithChange,
)
from stockledger.models.trend import ChangeKind, PercentageChange, ValueRange

UNAVAILABLE = "-"


def format_number(value: Decimal | None, decimals: int = 0) -> str:
    """Thousands-separated number, e.g. 1234567.891 -> "1,234,567.89" at 2 places."""
    if value is None:
        return UNAVAILABLE
    quantum = Decimal(1).scaleb(-decimals)
    with localcontext() as ctx:
        # quantize needs every digit of the result to fit the context precision
        ctx.prec = max(ctx.prec, value.adjusted() + decimals + 2)
        rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{rounded:,.{decimals}f}"


def format_metric(info: MetricInfo, value: Decimal | None) -> str:
    text = format_number(value, info.decimals)
    if value is None or not info.unit:
        return text
    if info.unit == "%":
        return f"{text}%"
    return f"{info.unit}{text}"


def _signed(value: Decimal, decimals: int = 1) -> str:
    text = format_number(value, decimals)
    return f"+{text}" if value > 0 else text


def format_percent(value: Decimal | None, decimals: int = 2) -> str:
    if value is None:
        return UNAVAILABLE
    return f"{format_number(value, decimals)}%"


def format_change(change: PercentageChange) -> str:
    """"+50.0%" for year-over-year, "CAGR = +41.4%" for the earliest year."""
    if change.kind == ChangeKind.UNAVAILABLE or change.value is None:
        return UNAVAILABLE
    text = f"{_signed(change.value)}%"
    if change.kind == ChangeKind.CAGR:
        return f"CAGR = {text}"
    return text


def format_range(value_range: ValueRange | None, unit: str = "", decimals: int = 1) -> str:
    if value_range is None:
        return ""
    low = format_number(value_range.low, decimals)
    high = format_number(value_range.high, decimals)
    return f"{low}{unit} to {high}{unit}"


def format_value_with_change(
    item: ValueWithChange, decimals: int = 2, unit: str = ""
) -> tuple[str, str]:
    """Primary value and its "vs Latest Year" line."""
    primary = format_number(item.value, decimals)
    if item.value is not None and unit:
        primary = f"{primary}{unit}"
    if item.change_vs_latest_year is None:
        return primary, UNAVAILABLE
    return primary, f"{format_number(item.change_vs_latest_year, 2)}% vs Latest Year"


def format_profit_vs_per(bundle: ProfitVersusPer) -> tuple[str, str]:
    """Profit growth line and P/E range line, read side by side."""
    cagr = format_change(bundle.cagr_profit)
    cagr_part = f"{cagr} , " if bundle.cagr_profit.is_cagr else ""
    profit = f"Profit: {cagr_part}Range ({format_range(bundle.profit_growth_range, '%')})"
    per = f"PER Range ({format_range(bundle.per_range)})"
    return profit, per


# ----------------------------------------------------------------------
# Text tables
# ----------------------------------------------------------------------

LABEL_WIDTH = 40
COLUMN_WIDTH = 18


def _row(label: str, cells: list[str]) -> str:
    return f"{label:<{LABEL_WIDTH}}" + "".join(f"{c:>{COLUMN_WIDTH}}" for c in cells)


def render_financial_table(records: Mapping[str, YearRecord]) -> list[str]:
    """Every catalogued metric by year, each followed by its change row."""
    years = sorted(records)
    lines = [_row("Metric", years)]
    for section in SECTIONS:
        lines.append("")
        lines.append(f"[{section.title}]")
        for info in section.metrics:
            lines.append(
                _row(info.label, [format_metric(info, records[y].value(info.key)) for y in years])
            )
            changes = percentage_change_series(years, records, info.key)
            lines.append(_row("  change", [format_change(changes[y]) for y in years]))
    return lines


def render_chart_series(records: Mapping[str, YearRecord]) -> list[str]:
    """Dual-axis chart data as columns: per-share series, then totals."""
    keys = CHART_LEFT_AXIS + CHART_RIGHT_AXIS
    infos = [CATALOG[k] for k in keys]
    header = f"{'Year':<12}" + "".join(f"{i.label:>{COLUMN_WIDTH + 18}}" for i in infos)
    lines = [header]
    for year in sorted(records):
        cells = [format_metric(i, records[year].value(i.key)) for i in infos]
        lines.append(f"{year:<12}" + "".join(f"{c:>{COLUMN_WIDTH + 18}}" for c in cells))
    return lines


def render_summary(
    snapshot: InvestmentSnapshot, calculated: InvestmentSnapshotCalculated
) -> list[str]:
    margin, margin_change = format_value_with_change(calculated.net_profit_margin, unit="%")
    shares, shares_change = format_value_with_change(calculated.number_of_shares, decimals=0)
    profit, per = format_profit_vs_per(calculated.profit_vs_per)
    verdict = calculated.screening_verdict
    ratio = format_number(calculated.profit_div_vs_per, 2)
    if verdict is not None:
        ratio = f"{ratio} ({verdict.value})"

    def _money(v: Decimal | None, decimals: int = 0) -> str:
        return UNAVAILABLE if v is None else f"${format_number(v, decimals)}"

    return [
        f"Date: {snapshot.curr_date.isoformat() if snapshot.curr_date else UNAVAILABLE}",
        f"Current Share Price: {_money(snapshot.current_share_price, 2)}",
        f"Past 4Q Revenue: {_money(snapshot.past_4q_revenue)}",
        f"Past 4Q Net Profit: {_money(snapshot.past_4q_net_profit)}",
        f"Past 4Q EPS: {_money(snapshot.past_4q_earnings_per_share, 4)}",
        "",
        f"Net Profit Margin: {margin} ({margin_change})",
        f"Number of Shares: {shares} ({shares_change})",
        f"P/E: {format_number(calculated.price_earnings_ratio, 2)}",
        f"Average Dividend Yield: {format_percent(calculated.average_dividend)}",
        profit,
        per,
        f"(Profit CAGR + Dividend) / P/E: {ratio}",
        "",
        f"Stock Type: {snapshot.stock_type.label if snapshot.stock_type else UNAVAILABLE}",
        f"Invest: {snapshot.invest.label if snapshot.invest else UNAVAILABLE}",
        f"Reasoning: {snapshot.investment_reasoning or UNAVAILABLE}",
    ]
