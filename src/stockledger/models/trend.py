from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum


class ChangeKind(StrEnum):
    YEAR_OVER_YEAR = "YEAR_OVER_YEAR"
    CAGR = "CAGR"
    UNAVAILABLE = "UNAVAILABLE"


@dataclass(frozen=True)
class PercentageChange:
    """Signed percentage change for one (year, metric) pair."""

    kind: ChangeKind
    value: Decimal | None = None

    @classmethod
    def unavailable(cls) -> PercentageChange:
        return cls(ChangeKind.UNAVAILABLE)

    @classmethod
    def year_over_year(cls, value: Decimal) -> PercentageChange:
        return cls(ChangeKind.YEAR_OVER_YEAR, value)

    @classmethod
    def cagr(cls, value: Decimal) -> PercentageChange:
        return cls(ChangeKind.CAGR, value)

    @property
    def is_available(self) -> bool:
        return self.kind != ChangeKind.UNAVAILABLE

    @property
    def is_cagr(self) -> bool:
        return self.kind == ChangeKind.CAGR


@dataclass(frozen=True)
class ValueRange:
    low: Decimal
    high: Decimal
