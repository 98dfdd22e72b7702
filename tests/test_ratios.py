"""
Tests for the ratio calculator
- Funnel percentages and AP-per-unit currency values
- Zero-denominator defaults
- Rounding and formatting
"""

from decimal import Decimal

import pytest

from agency_crm.core.entities import MetricRecord
from agency_crm.metrics.ratios import (
    RatioCalculator,
    calculate_ratios,
    dollars_per,
    format_cents,
    format_currency,
    percentage,
    ratio_map
)

LEAD_RATIOS = ("Lead to Contact", "Lead to Scheduled", "Lead to Sits", "Lead to Sales")


@pytest.fixture
def sample_record():
    return MetricRecord(leads=100, contacts=40, scheduled=20, sits=15, sales=5, ap=250000)


def test_reference_record(sample_record):
    """Known record produces the expected headline ratios."""
    ratios = ratio_map(sample_record)

    assert ratios["Lead to Contact"] == "40.0%"
    assert ratios["Lead to Sales"] == "5.0%"
    assert ratios["AP per Lead"] == "$25.00"
    assert ratios["AP per Sale"] == "$500.00"


def test_ratio_order_is_fixed():
    labels = [ratio.label for ratio in calculate_ratios(MetricRecord())]

    assert len(labels) == 18
    assert labels[:4] == list(LEAD_RATIOS)
    assert labels[8] == "AP per Call"
    assert labels[-1] == "AP per Sale"
    assert len(set(labels)) == len(labels)


def test_zero_leads_defaults():
    """With no leads every lead-based ratio is the zero default."""
    record = MetricRecord(leads=0, calls=10, contacts=5, sales=2, ap=10000)
    ratios = ratio_map(record)

    for label in LEAD_RATIOS:
        assert ratios[label] == "0.0%"
    assert ratios["AP per Lead"] == "$0.00"
    # Other denominators are unaffected
    assert ratios["Calls to Contact"] == "50.0%"


def test_empty_record_never_raises():
    ratios = calculate_ratios(MetricRecord())

    for ratio in ratios:
        assert ratio.value in ("0.0%", "$0.00")
        assert ratio.raw == 0


def test_percentage_rounds_half_up():
    assert percentage(1, 3) == Decimal("33.3")
    assert percentage(2, 3) == Decimal("66.7")
    # 6.25% rounds up
    assert percentage(1, 16) == Decimal("6.3")


def test_dollars_per_rounds_half_up_to_cents():
    # $10.00 over 3 = 3.333...
    assert dollars_per(1000, 3) == Decimal("3.33")
    # $0.05 over 2 = 0.025 -> 0.03
    assert dollars_per(5, 2) == Decimal("0.03")
    assert dollars_per(12345, 0) == Decimal("0.00")


def test_currency_formatting():
    assert format_currency(Decimal("1234.5")) == "$1,234.50"
    assert format_currency(Decimal("0")) == "$0.00"
    assert format_cents(123456789) == "$1,234,567.89"


def test_raw_values_are_exposed():
    calculator = RatioCalculator()
    ratios = {r.label: r for r in calculator.calculate(MetricRecord(leads=4, contacts=1, ap=1000))}

    assert ratios["Lead to Contact"].raw == Decimal("25.0")
    assert ratios["AP per Lead"].raw == Decimal("2.50")


def test_calculation_is_pure(sample_record):
    before = sample_record.to_dict()

    first = ratio_map(sample_record)
    second = ratio_map(sample_record)

    assert first == second
    assert sample_record.to_dict() == before
