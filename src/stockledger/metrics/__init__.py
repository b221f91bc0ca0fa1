from stockledger.metrics.catalog import CATALOG, SECTIONS, MetricInfo, MetricSection, metric_info
from stockledger.metrics.deriver import derive_history, derive_year
from stockledger.metrics.snapshot import evaluate
from stockledger.metrics.trends import (
    mean,
    percentage_change,
    percentage_change_series,
    value_range,
)

__all__ = [
    "CATALOG",
    "SECTIONS",
    "MetricInfo",
    "MetricSection",
    "derive_history",
    "derive_year",
    "evaluate",
    "mean",
    "metric_info",
    "percentage_change",
    "percentage_change_series",
    "value_range",
]
