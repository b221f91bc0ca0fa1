"""Display metadata for every metric key, grouped the way the ledger table reads."""

from __future__ import annotations

from dataclasses import dataclass

from stockledger.models.financials import DerivedField, MetricKey, RawField

D = DerivedField
R = RawField


@dataclass(frozen=True)
class MetricInfo:
    key: MetricKey
    label: str
    unit: str = "$"
    decimals: int = 0
    hover_text: str = ""

    @property
    def is_derived(self) -> bool:
        return isinstance(self.key, DerivedField)


@dataclass(frozen=True)
class MetricSection:
    title: str
    metrics: tuple[MetricInfo, ...]


def _m(key: MetricKey, label: str, unit: str = "$", decimals: int = 0, hover_text: str = "") -> MetricInfo:
    return MetricInfo(key=key, label=label, unit=unit, decimals=decimals, hover_text=hover_text)


SECTIONS: tuple[MetricSection, ...] = (
    MetricSection("Per Share", (
        _m(R.SHARE_PRICE_AT_REPORT_DATE, "Share Price at Report Date", decimals=2),
        _m(R.MAX_SHARE_PRICE, "Max Share Price", decimals=2),
        _m(R.MIN_SHARE_PRICE, "Min Share Price", decimals=2),
        _m(D.AVERAGE_SHARE_PRICE, "Average Share Price", decimals=2),
        _m(R.EARNINGS_PER_SHARE, "Earnings Per Share", decimals=2),
        _m(D.NUMBER_OF_SHARES, "Number of Shares", unit="",
           hover_text="Too much dilution is bad. Look for a stable or decreasing share count."),
        _m(D.PRICE_EARNINGS_RATIO_REPORT_DATE, "P/E at Report Date", unit="", decimals=2),
        _m(D.PRICE_EARNINGS_RATIO_MAX, "P/E at Max Price", unit="", decimals=2),
        _m(D.PRICE_EARNINGS_RATIO_MIN, "P/E at Min Price", unit="", decimals=2),
        _m(R.DIVIDEND_PER_SHARE, "Dividend Per Share", decimals=3),
        _m(D.DIVIDEND_AMOUNT, "Dividend Amount"),
        _m(D.DIVIDEND_YIELD, "Dividend Yield", unit="%", decimals=2),
        _m(D.DIVIDEND_PAYOUT_RATIO, "Dividend Payout Ratio", unit="", decimals=2),
    )),
    MetricSection("Profit & Loss", (
        _m(R.REVENUE, "Revenue"),
        _m(R.GROSS_PROFIT, "Gross Profit"),
        _m(D.GROSS_MARGIN, "Gross Margin", unit="%", decimals=2),
        _m(R.PROFIT_BEFORE_TAX, "Profit Before Tax"),
        _m(D.PROFIT_BEFORE_TAX_MARGIN, "Profit Before Tax Margin", unit="%", decimals=2),
        _m(R.PROFIT_AFTER_TAX, "Profit After Tax"),
        _m(R.PROFIT_AFTER_TAX_FOR_SHAREHOLDERS, "Profit After Tax for Shareholders"),
        _m(D.PROFIT_AFTER_TAX_FOR_SHAREHOLDERS_MARGIN, "Net Profit Margin", unit="%", decimals=2),
    )),
    MetricSection("Current Assets", (
        _m(R.CASH, "Cash"),
        _m(R.INVENTORIES, "Inventories"),
        _m(R.RECEIVABLES, "Receivables"),
        _m(R.INVESTMENTS_IN_SECURITIES, "Investments in Securities"),
        _m(R.OTHER_CURRENT_ASSETS, "Other Current Assets"),
        _m(D.TOTAL_CURRENT_ASSETS, "Total Current Assets"),
    )),
    MetricSection("Non-Current Assets", (
        _m(R.PROPERTY_PLANT_EQUIPMENT, "Property, Plant & Equipment"),
        _m(R.LAND_AND_REAL_ESTATE, "Land & Real Estate"),
        _m(R.INVESTMENTS_SUBSIDIARIES, "Investments in Subsidiaries"),
        _m(R.INTANGIBLE_ASSETS, "Intangible Assets"),
        _m(R.NON_CURRENT_INVESTMENTS, "Non-Current Investments"),
        _m(R.OTHER_NON_CURRENT_ASSETS, "Other Non-Current Assets"),
        _m(D.TOTAL_NON_CURRENT_ASSETS, "Total Non-Current Assets"),
        _m(D.TOTAL_ASSETS, "Total Assets"),
    )),
    MetricSection("Current Liabilities", (
        _m(R.BORROWINGS, "Borrowings"),
        _m(R.PAYABLES, "Payables"),
        _m(R.LEASE_LIABILITIES, "Lease Liabilities"),
        _m(R.TAX_LIABILITIES, "Tax Liabilities"),
        _m(R.OTHER_CURRENT_LIABILITIES, "Other Current Liabilities"),
        _m(D.TOTAL_CURRENT_LIABILITIES, "Total Current Liabilities"),
    )),
    MetricSection("Non-Current Liabilities", (
        _m(R.LONG_TERM_DEBTS, "Long-Term Debts"),
        _m(R.LONG_TERM_LEASE_LIABILITIES, "Long-Term Lease Liabilities"),
        _m(R.DEFERRED_TAX_LIABILITIES, "Deferred Tax Liabilities"),
        _m(R.OTHER_NON_CURRENT_LIABILITIES, "Other Non-Current Liabilities"),
        _m(D.TOTAL_NON_CURRENT_LIABILITIES, "Total Non-Current Liabilities"),
        _m(D.TOTAL_LIABILITIES, "Total Liabilities"),
    )),
    MetricSection("Asset Metrics", (
        _m(D.NET_CASH, "Net Cash", hover_text="Cash minus current liabilities."),
        _m(D.NET_NET_CASH, "Net-Net Cash", hover_text="Cash minus total liabilities."),
        _m(D.NET_CURRENT_ASSETS, "Net Current Assets"),
        _m(D.NET_NET_CURRENT_ASSETS, "Net-Net Current Assets",
           hover_text="Current assets minus total liabilities."),
        _m(D.NET_TANGIBLE_ASSETS, "Net Tangible Assets"),
        _m(D.DEBT_TO_EQUITY_RATIO, "Debt to Equity Ratio", unit="", decimals=2),
    )),
    MetricSection("Equity", (
        _m(R.SHARE_CAPITAL, "Share Capital"),
        _m(R.RETAINED_EARNINGS, "Retained Earnings"),
        _m(R.RESERVES, "Reserves"),
        _m(D.EQUITY_ATTRIBUTABLE_TO_SHAREHOLDERS, "Equity Attributable to Shareholders"),
        _m(R.NON_CONTROLLING_INTERESTS, "Non-Controlling Interests"),
        _m(D.TOTAL_EQUITY, "Total Equity"),
        _m(D.TOTAL_LIABILITIES_AND_EQUITY, "Total Liabilities & Equity",
           hover_text="Should equal Total Assets."),
    )),
    MetricSection("Cash Flow", (
        _m(R.NET_CASH_FROM_OPERATING_ACTIVITIES, "Net Cash from Operating Activities"),
        _m(R.INVESTMENTS_IN_PPE, "Investments in PPE"),
        _m(R.INVESTMENTS_IN_SUBSIDIARIES, "Investments in Subsidiaries"),
        _m(R.INVESTMENTS_IN_ACQUISITIONS, "Investments in Acquisitions"),
        _m(D.FREE_CASH_FLOW, "Free Cash Flow"),
    )),
)

CATALOG: dict[MetricKey, MetricInfo] = {
    info.key: info for section in SECTIONS for info in section.metrics
}

# Dual-axis chart: per-share series on the left axis, totals on the right.
CHART_LEFT_AXIS: tuple[MetricKey, ...] = (R.SHARE_PRICE_AT_REPORT_DATE, R.EARNINGS_PER_SHARE)
CHART_RIGHT_AXIS: tuple[MetricKey, ...] = (R.REVENUE, R.PROFIT_AFTER_TAX_FOR_SHAREHOLDERS)


def metric_info(key: MetricKey) -> MetricInfo:
    return CATALOG[key]


def parse_metric_key(name: str) -> MetricKey:
    """Resolve a metric name to its key. Raises ValueError for unknown names."""
    try:
        return RawField(name)
    except ValueError:
        pass
    try:
        return DerivedField(name)
    except ValueError:
        raise ValueError(f"Unknown metric: {name}") from None
