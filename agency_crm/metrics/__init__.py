"""
Metrics and Ratios

Agent performance is tracked as a funnel:
leads → calls → contacts → scheduled → sits → sales, with annual
premium (AP) written per sale.

This module provides:
- Ratio calculation (conversion percentages and AP per unit)
- Hierarchical aggregation across teams
- Time periods and trend comparison
"""

from .ratios import Ratio, RatioCalculator, calculate_ratios, ratio_map, format_cents
from .aggregation import (
    TeamAggregateSummary,
    sum_records,
    aggregate_member,
    aggregate_team,
    aggregate_forest,
    summarize_team
)
from .trends import (
    TimePeriod,
    PeriodWindow,
    MetricTrend,
    period_window,
    load_period_records,
    calculate_trends
)

__all__ = [
    "Ratio",
    "RatioCalculator",
    "calculate_ratios",
    "ratio_map",
    "format_cents",
    "TeamAggregateSummary",
    "sum_records",
    "aggregate_member",
    "aggregate_team",
    "aggregate_forest",
    "summarize_team",
    "TimePeriod",
    "PeriodWindow",
    "MetricTrend",
    "period_window",
    "load_period_records",
    "calculate_trends"
]
