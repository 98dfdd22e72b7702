"""
Time Periods and Trends

Resolves the dashboard time period (24h, 7d, 30d, custom) to a date window,
folds daily rows into per-user records for that window, and compares the
window against the one immediately before it.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Optional

from ..core.entities import DailyMetric, METRIC_FIELDS, MetricRecord


class TimePeriod(str, Enum):
    """Dashboard time periods."""
    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"
    CUSTOM = "custom"


PERIOD_DAYS = {
    TimePeriod.DAY: 1,
    TimePeriod.WEEK: 7,
    TimePeriod.MONTH: 30,
}


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive date window."""
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def previous(self) -> "PeriodWindow":
        """Window of equal length ending the day before this one starts."""
        end = self.start - timedelta(days=1)
        return PeriodWindow(start=end - timedelta(days=self.days - 1), end=end)


@dataclass
class MetricTrend:
    """Change of one metric between two windows."""
    metric_name: str
    current: int = 0
    previous: int = 0
    change_percent: Decimal = Decimal("0.0")
    trend_direction: str = "stable"  # improving, declining, stable


def period_window(
    period,
    today: Optional[date] = None,
    custom_range: Optional[tuple] = None
) -> PeriodWindow:
    """
    Current window for a time period.

    24h is today, 7d and 30d end today and include it. A custom period
    needs a (start, end) range.
    """
    period = TimePeriod(period)
    today = today or date.today()

    if period is TimePeriod.CUSTOM:
        if not custom_range or None in custom_range:
            raise ValueError("Custom period requires a (start, end) date range")
        start, end = custom_range
        if start > end:
            raise ValueError(f"Custom range starts after it ends: {start} > {end}")
        return PeriodWindow(start=start, end=end)

    days = PERIOD_DAYS[period]
    return PeriodWindow(start=today - timedelta(days=days - 1), end=today)


def records_by_user(rows: Iterable[DailyMetric], window: Optional[PeriodWindow] = None) -> dict:
    """Sum daily rows into one MetricRecord per user."""
    totals: dict[str, MetricRecord] = {}
    for row in rows:
        if window is not None and not window.contains(row.day):
            continue
        totals[row.user_id] = totals.get(row.user_id, MetricRecord()) + row.record
    return totals


def load_period_records(gateway, user_ids: Iterable[str], window: PeriodWindow) -> dict:
    """Fetch the window's daily rows for users and sum them per user."""
    rows = gateway.fetch_daily_metrics(list(user_ids), start=window.start, end=window.end)
    return records_by_user(rows, window)


def change_percent(current: int, previous: int) -> Decimal:
    """
    Percent change from previous to current, one decimal.

    From zero, any activity counts as +100%.
    """
    if not previous:
        return Decimal("100.0") if current else Decimal("0.0")
    value = (Decimal(current) - Decimal(previous)) / Decimal(previous) * 100
    return value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def calculate_trends(current: MetricRecord, previous: MetricRecord) -> dict[str, MetricTrend]:
    """Per-metric trend between two records."""
    trends = {}
    for name in METRIC_FIELDS:
        now, before = getattr(current, name), getattr(previous, name)
        delta = change_percent(now, before)
        if delta > 0:
            direction = "improving"
        elif delta < 0:
            direction = "declining"
        else:
            direction = "stable"
        trends[name] = MetricTrend(
            metric_name=name,
            current=now,
            previous=before,
            change_percent=delta,
            trend_direction=direction
        )
    return trends
