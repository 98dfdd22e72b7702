"""
Tests for time periods and trends
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from agency_crm.core.entities import DailyMetric, MetricRecord
from agency_crm.metrics.trends import (
    PeriodWindow,
    TimePeriod,
    calculate_trends,
    change_percent,
    load_period_records,
    period_window,
    records_by_user
)

TODAY = date(2026, 10, 19)


@pytest.mark.parametrize("period,days", [("24h", 1), ("7d", 7), ("30d", 30)])
def test_period_windows_end_today(period, days):
    window = period_window(period, today=TODAY)

    assert window.end == TODAY
    assert window.days == days
    assert window.start == TODAY - timedelta(days=days - 1)


def test_previous_window_is_adjacent_and_equal_length():
    window = period_window(TimePeriod.WEEK, today=TODAY)

    before = window.previous()

    assert before.end == window.start - timedelta(days=1)
    assert before.days == window.days
    assert not before.contains(window.start)


def test_custom_period():
    window = period_window("custom", custom_range=(date(2026, 1, 1), date(2026, 1, 31)))

    assert window.days == 31
    with pytest.raises(ValueError):
        period_window("custom")
    with pytest.raises(ValueError):
        period_window("custom", custom_range=(date(2026, 2, 1), date(2026, 1, 1)))


def test_unknown_period_rejected():
    with pytest.raises(ValueError):
        period_window("90d", today=TODAY)


def test_records_by_user_filters_window():
    rows = [
        DailyMetric("a", TODAY, MetricRecord(leads=1)),
        DailyMetric("a", TODAY - timedelta(days=1), MetricRecord(leads=2)),
        DailyMetric("a", TODAY - timedelta(days=10), MetricRecord(leads=100)),
        DailyMetric("b", TODAY, MetricRecord(sales=1)),
    ]

    totals = records_by_user(rows, PeriodWindow(TODAY - timedelta(days=6), TODAY))

    assert totals["a"].leads == 3
    assert totals["b"].sales == 1


def test_load_period_records(gateway):
    window = period_window("24h", today=TODAY)

    totals = load_period_records(gateway, ["a", "b", "zz"], window)

    assert set(totals) == {"a", "b"}
    assert totals["b"].leads == 30


def test_change_percent():
    assert change_percent(15, 10) == Decimal("50.0")
    assert change_percent(5, 10) == Decimal("-50.0")
    assert change_percent(1, 3) == Decimal("-66.7")
    assert change_percent(4, 0) == Decimal("100.0")
    assert change_percent(0, 0) == Decimal("0.0")


def test_calculate_trends_directions():
    trends = calculate_trends(MetricRecord(leads=20, sales=1), MetricRecord(leads=10, sales=2))

    assert trends["leads"].trend_direction == "improving"
    assert trends["sales"].trend_direction == "declining"
    assert trends["calls"].trend_direction == "stable"
    assert trends["leads"].previous == 10
    assert list(trends) == ["leads", "calls", "contacts", "scheduled", "sits", "sales", "ap"]
