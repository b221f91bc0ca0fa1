from __future__ import annotations

from datetime import date
from decimal import Decimal

from stockledger.formatting import (
    UNAVAILABLE,
    format_change,
    format_metric,
    format_number,
    format_percent,
    format_profit_vs_per,
    format_range,
    format_value_with_change,
    render_chart_series,
    render_financial_table,
    render_summary,
)
from stockledger.metrics.catalog import metric_info
from stockledger.metrics.deriver import derive_history
from stockledger.metrics.snapshot import evaluate
from stockledger.models.financials import DerivedField, FinancialHistory, RawField
from stockledger.models.investment import (
    InvestmentAction,
    InvestmentSnapshot,
    ProfitVersusPer,
    StockType,
    ValueWithChange,
)
from stockledger.models.trend import PercentageChange, ValueRange


class TestFormatNumber:
    def test_thousands_separator(self) -> None:
        assert format_number(Decimal("1234567.891"), 2) == "1,234,567.89"

    def test_rounds_half_up(self) -> None:
        assert format_number(Decimal("2.345"), 2) == "2.35"
        assert format_number(Decimal("0.5"), 0) == "1"

    def test_negative(self) -> None:
        assert format_number(Decimal("-1500"), 0) == "-1,500"

    def test_unavailable(self) -> None:
        assert format_number(None) == UNAVAILABLE

    def test_beyond_default_precision(self) -> None:
        assert format_number(Decimal("1e27"), 2) == "1,000,000,000,000,000,000,000,000,000.00"
        assert format_number(Decimal("12345678901234567890123456789.555"), 2) == (
            "12,345,678,901,234,567,890,123,456,789.56"
        )


class TestFormatMetric:
    def test_money(self) -> None:
        assert format_metric(metric_info(RawField.REVENUE), Decimal("1500")) == "$1,500"

    def test_percent(self) -> None:
        assert format_metric(metric_info(DerivedField.GROSS_MARGIN), Decimal("40")) == "40.00%"

    def test_plain_ratio(self) -> None:
        info = metric_info(DerivedField.DEBT_TO_EQUITY_RATIO)
        assert format_metric(info, Decimal("0.678")) == "0.68"

    def test_absent(self) -> None:
        assert format_metric(metric_info(RawField.REVENUE), None) == UNAVAILABLE


class TestFormatChange:
    def test_year_over_year(self) -> None:
        assert format_change(PercentageChange.year_over_year(Decimal("50"))) == "+50.0%"

    def test_negative(self) -> None:
        assert format_change(PercentageChange.year_over_year(Decimal("-33.333"))) == "-33.3%"

    def test_cagr(self) -> None:
        assert format_change(PercentageChange.cagr(Decimal("41.4213"))) == "CAGR = +41.4%"

    def test_unavailable(self) -> None:
        assert format_change(PercentageChange.unavailable()) == UNAVAILABLE

    def test_percent(self) -> None:
        assert format_percent(Decimal("2.3333")) == "2.33%"
        assert format_percent(None) == UNAVAILABLE


class TestFormatRange:
    def test_range(self) -> None:
        assert format_range(ValueRange(Decimal("5"), Decimal("14.25"))) == "5.0 to 14.3"

    def test_range_with_unit(self) -> None:
        assert format_range(ValueRange(Decimal("-10"), Decimal("50")), "%") == "-10.0% to 50.0%"

    def test_no_range(self) -> None:
        assert format_range(None) == ""


class TestFormatBundles:
    def test_value_with_change(self) -> None:
        item = ValueWithChange(Decimal("20"), Decimal("-4.5"))
        assert format_value_with_change(item, unit="%") == ("20.00%", "-4.50% vs Latest Year")

    def test_value_without_change(self) -> None:
        assert format_value_with_change(ValueWithChange(Decimal("3"))) == ("3.00", UNAVAILABLE)

    def test_profit_vs_per(self) -> None:
        bundle = ProfitVersusPer(
            cagr_profit=PercentageChange.cagr(Decimal("41.42")),
            profit_growth_range=ValueRange(Decimal("33.33"), Decimal("50")),
            per_range=ValueRange(Decimal("5"), Decimal("14")),
        )
        profit, per = format_profit_vs_per(bundle)
        assert profit == "Profit: CAGR = +41.4% , Range (33.3% to 50.0%)"
        assert per == "PER Range (5.0 to 14.0)"

    def test_profit_vs_per_empty(self) -> None:
        profit, per = format_profit_vs_per(ProfitVersusPer())
        assert profit == "Profit: Range ()"
        assert per == "PER Range ()"


class TestRenderers:
    def _records(self) -> dict:
        return derive_history(
            FinancialHistory.from_dict(
                {
                    "2022-12-31": {"revenue": 100, "gross_profit": 40, "earnings_per_share": 1},
                    "2023-12-31": {"revenue": 150, "gross_profit": 60, "earnings_per_share": 1.5},
                }
            )
        )

    def test_financial_table(self) -> None:
        lines = render_financial_table(self._records())
        assert "2022-12-31" in lines[0] and "2023-12-31" in lines[0]
        assert "[Profit & Loss]" in lines
        revenue_index = next(i for i, line in enumerate(lines) if line.startswith("Revenue"))
        assert "$150" in lines[revenue_index]
        change_row = lines[revenue_index + 1]
        assert "CAGR = +50.0%" in change_row
        assert change_row.rstrip().endswith("+50.0%")

    def test_chart_series(self) -> None:
        lines = render_chart_series(self._records())
        assert len(lines) == 3
        assert "Earnings Per Share" in lines[0]
        assert lines[2].startswith("2023-12-31")
        assert "$1.50" in lines[2]

    def test_summary(self) -> None:
        snap = InvestmentSnapshot(
            curr_date=date(2024, 6, 30),
            current_share_price=Decimal("30"),
            past_4q_revenue=Decimal("160"),
            past_4q_net_profit=Decimal("32"),
            past_4q_earnings_per_share=Decimal("2"),
            stock_type=StockType.STALWART,
            invest=InvestmentAction.HOLD,
        )
        lines = render_summary(snap, evaluate(snap, self._records()))
        assert lines[0] == "Date: 2024-06-30"
        assert "Current Share Price: $30.00" in lines
        assert "P/E: 15.00" in lines
        assert any(line.startswith("Net Profit Margin: 20.00%") for line in lines)
        assert f"Stock Type: {StockType.STALWART.label}" in lines
        assert f"Reasoning: {UNAVAILABLE}" in lines

    def test_summary_without_data(self) -> None:
        snap = InvestmentSnapshot()
        lines = render_summary(snap, evaluate(snap, {}))
        assert lines[0] == f"Date: {UNAVAILABLE}"
        assert f"P/E: {UNAVAILABLE}" in lines
        assert f"(Profit CAGR + Dividend) / P/E: {UNAVAILABLE}" in lines
