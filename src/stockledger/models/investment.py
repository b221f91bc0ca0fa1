from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any

from stockledger.models.financials import to_decimal
from stockledger.models.trend import PercentageChange, ValueRange

logger = logging.getLogger(__name__)

# profit_div_vs_per thresholds
ACCEPTABLE_RATIO = Decimal("1.5")
GOOD_RATIO = Decimal("2.0")


class StockType(StrEnum):
    SLOW_GROWER = "slow_grower"
    STALWART = "stalwart"
    BAGGERS = "baggers"
    CYCLICALS = "cyclicals"
    TURNAROUND = "turnaround"
    ASSET_PLAY = "asset_play"
    DEAD_STOCK = "dead_stock"

    @property
    def label(self) -> str:
        return _STOCK_TYPE_LABELS[self]


_STOCK_TYPE_LABELS: dict[StockType, str] = {
    StockType.SLOW_GROWER: "Slow Grower: <10% NP Growth",
    StockType.STALWART: "Stalwart/Med Grower: 10-20% NP Growth",
    StockType.BAGGERS: "Baggers/Fast Grower: >20% NP Growth",
    StockType.CYCLICALS: "Cyclicals: Cyclic NP trend",
    StockType.TURNAROUND: "Turnaround: Downtrodden in turnaround plan",
    StockType.ASSET_PLAY: "Asset Play: Have huge hidden assets",
    StockType.DEAD_STOCK: "DEAD Stock: Static or downward NP trend",
}


class InvestmentAction(StrEnum):
    INVEST = "invest"
    NO = "no"
    HOLD = "hold"
    WAIT = "wait"

    @property
    def label(self) -> str:
        return _ACTION_LABELS[self]


_ACTION_LABELS: dict[InvestmentAction, str] = {
    InvestmentAction.INVEST: "Invest NOW",
    InvestmentAction.NO: "No",
    InvestmentAction.HOLD: "Hold if already bought",
    InvestmentAction.WAIT: "Wait for lower price or P/E",
}


class ScreeningVerdict(StrEnum):
    POOR = "POOR"
    ACCEPTABLE = "ACCEPTABLE"
    GOOD = "GOOD"


def _optional_enum(enum_cls: type[StrEnum], value: Any, name: str) -> Any:
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ValueError(f"{name}: unknown value {value!r}") from e


@dataclass
class InvestmentSnapshot:
    """Point-in-time view of a stock and the decision taken on it."""

    curr_date: date | None = None
    current_share_price: Decimal | None = None
    past_4q_revenue: Decimal | None = None
    past_4q_net_profit: Decimal | None = None
    past_4q_earnings_per_share: Decimal | None = None
    stock_type: StockType | None = None
    invest: InvestmentAction | None = None
    investment_reasoning: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InvestmentSnapshot:
        curr_date = data.get("curr_date")
        if isinstance(curr_date, str):
            curr_date = date.fromisoformat(curr_date) if curr_date else None
        return cls(
            curr_date=curr_date,
            current_share_price=to_decimal(data.get("current_share_price"), "current_share_price"),
            past_4q_revenue=to_decimal(data.get("past_4q_revenue"), "past_4q_revenue"),
            past_4q_net_profit=to_decimal(data.get("past_4q_net_profit"), "past_4q_net_profit"),
            past_4q_earnings_per_share=to_decimal(
                data.get("past_4q_earnings_per_share"), "past_4q_earnings_per_share"
            ),
            stock_type=_optional_enum(StockType, data.get("stock_type"), "stock_type"),
            invest=_optional_enum(InvestmentAction, data.get("invest"), "invest"),
            investment_reasoning=data.get("investment_reasoning") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "curr_date": self.curr_date.isoformat() if self.curr_date else None,
            "current_share_price": self.current_share_price,
            "past_4q_revenue": self.past_4q_revenue,
            "past_4q_net_profit": self.past_4q_net_profit,
            "past_4q_earnings_per_share": self.past_4q_earnings_per_share,
            "stock_type": self.stock_type.value if self.stock_type else None,
            "invest": self.invest.value if self.invest else None,
            "investment_reasoning": self.investment_reasoning,
        }


@dataclass(frozen=True)
class ValueWithChange:
    """A current value and its percentage difference versus the latest year."""

    value: Decimal | None = None
    change_vs_latest_year: Decimal | None = None


@dataclass(frozen=True)
class ProfitVersusPer:
    """Long-term profit growth laid beside the historical P/E range."""

    cagr_profit: PercentageChange = field(default_factory=PercentageChange.unavailable)
    profit_growth_range: ValueRange | None = None
    per_range: ValueRange | None = None


@dataclass(frozen=True)
class InvestmentSnapshotCalculated:
    net_profit_margin: ValueWithChange
    number_of_shares: ValueWithChange
    price_earnings_ratio: Decimal | None
    average_dividend: Decimal | None
    profit_vs_per: ProfitVersusPer
    profit_div_vs_per: Decimal | None

    @property
    def screening_verdict(self) -> ScreeningVerdict | None:
        ratio = self.profit_div_vs_per
        if ratio is None:
            return None
        if ratio >= GOOD_RATIO:
            return ScreeningVerdict.GOOD
        if ratio >= ACCEPTABLE_RATIO:
            return ScreeningVerdict.ACCEPTABLE
        return ScreeningVerdict.POOR
