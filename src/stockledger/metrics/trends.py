"""Year-over-year and CAGR changes plus cross-year aggregates."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal

from stockledger.models.financials import MetricKey, YearRecord
from stockledger.models.trend import PercentageChange, ValueRange

logger = logging.getLogger(__name__)

ZERO = Decimal(0)
ONE = Decimal(1)
HUNDRED = Decimal(100)


def _value(all_data: Mapping[str, YearRecord], year: str, key: MetricKey) -> Decimal | None:
    record = all_data.get(year)
    if record is None:
        return None
    return record.value(key)


def percentage_change(
    years: Sequence[str],
    all_data: Mapping[str, YearRecord],
    target_year: str,
    key: MetricKey,
) -> PercentageChange:
    """Percentage change of a metric for one year of an ordered series.

    The earliest year of a multi-year series reports the CAGR from the
    earliest to the latest value:

        CAGR = ((latest / earliest) ** (1 / (n - 1)) - 1) * 100

    which needs both values present and strictly positive. Every other year
    reports the plain change against the preceding year, which needs both
    values present and a non-zero previous value, so a drop to zero is a
    -100% change. Anything else is unavailable.
    """
    try:
        index = list(years).index(target_year)
    except ValueError:
        logger.debug("Year %s not in series, change unavailable", target_year)
        return PercentageChange.unavailable()

    current = _value(all_data, target_year, key)
    n = len(years)

    if index == 0 and n > 1:
        latest = _value(all_data, years[-1], key)
        if current is None or latest is None or current <= ZERO or latest <= ZERO:
            return PercentageChange.unavailable()
        exponent = ONE / Decimal(n - 1)
        cagr = ((latest / current) ** exponent - ONE) * HUNDRED
        return PercentageChange.cagr(cagr)

    if index == 0:
        return PercentageChange.unavailable()

    previous = _value(all_data, years[index - 1], key)
    if current is None or previous is None or previous == ZERO:
        return PercentageChange.unavailable()
    return PercentageChange.year_over_year((current - previous) / previous * HUNDRED)


def percentage_change_series(
    years: Sequence[str],
    all_data: Mapping[str, YearRecord],
    key: MetricKey,
) -> dict[str, PercentageChange]:
    """Change for every year in the series, in series order."""
    return {year: percentage_change(years, all_data, year, key) for year in years}


def _present_values(
    years: Iterable[str],
    all_data: Mapping[str, YearRecord],
    keys: Iterable[MetricKey],
) -> list[Decimal]:
    keys = list(keys)
    values: list[Decimal] = []
    for year in years:
        for key in keys:
            value = _value(all_data, year, key)
            if value is not None:
                values.append(value)
    return values


def mean(
    years: Iterable[str],
    all_data: Mapping[str, YearRecord],
    key: MetricKey,
) -> Decimal | None:
    """Arithmetic mean of a metric over the years where it is present."""
    values = _present_values(years, all_data, [key])
    if not values:
        return None
    return sum(values, ZERO) / Decimal(len(values))


def value_range(
    years: Iterable[str],
    all_data: Mapping[str, YearRecord],
    keys: Iterable[MetricKey],
) -> ValueRange | None:
    """(min, max) across every present value of the given metrics."""
    return range_of(_present_values(years, all_data, keys))


def range_of(values: Iterable[Decimal | None]) -> ValueRange | None:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return ValueRange(low=min(present), high=max(present))
