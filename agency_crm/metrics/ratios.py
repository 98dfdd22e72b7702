"""
Ratio Calculator

Maps a MetricRecord to the ordered set of conversion ratios shown on the
metrics dashboard:
- Conversion percentages between funnel stages (lead → contact → ... → sale)
- Dollars of annual premium per funnel unit (AP per lead, per sit, ...)

All arithmetic is done with Decimal and every division is guarded, so a
zero denominator renders as "0.0%" or "$0.00" instead of raising or
producing NaN.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from ..core.entities import MetricRecord, MetricType


CENTS_PER_DOLLAR = Decimal(100)
ONE_DECIMAL = Decimal("0.1")
TWO_DECIMALS = Decimal("0.01")


class RatioKind(Enum):
    PERCENTAGE = "percentage"
    CURRENCY = "currency"


@dataclass(frozen=True)
class RatioDefinition:
    """Definition of a derived ratio."""
    label: str
    kind: RatioKind
    numerator: MetricType
    denominator: MetricType


@dataclass(frozen=True)
class Ratio:
    """A computed ratio with its display value."""
    label: str
    value: str
    raw: Decimal = Decimal(0)  # percent, or dollars for currency ratios


def percentage(numerator: int, denominator: int) -> Decimal:
    """numerator / denominator * 100, rounded half-up to one decimal."""
    if not denominator:
        return Decimal("0.0")
    value = Decimal(numerator) / Decimal(denominator) * 100
    return value.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


def dollars_per(ap_cents: int, denominator: int) -> Decimal:
    """AP in dollars per unit, rounded half-up to cents."""
    if not denominator:
        return Decimal("0.00")
    value = Decimal(ap_cents) / CENTS_PER_DOLLAR / Decimal(denominator)
    return value.quantize(TWO_DECIMALS, rounding=ROUND_HALF_UP)


def format_percentage(value: Decimal) -> str:
    return f"{value.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)}%"


def format_currency(dollars: Decimal) -> str:
    dollars = Decimal(dollars).quantize(TWO_DECIMALS, rounding=ROUND_HALF_UP)
    sign = "-" if dollars < 0 else ""
    return f"{sign}${abs(dollars):,.2f}"


def format_cents(cents: int) -> str:
    """Format an amount held in cents as USD."""
    return format_currency(Decimal(cents) / CENTS_PER_DOLLAR)


class RatioCalculator:
    """
    Computes the dashboard ratios for a metric record.

    The ratio order is fixed and matches the ratio grid.
    """

    def __init__(self):
        self._ratios = self._define_ratios()

    def _define_ratios(self) -> list[RatioDefinition]:
        pct, cur = RatioKind.PERCENTAGE, RatioKind.CURRENCY
        m = MetricType
        return [
            RatioDefinition("Lead to Contact", pct, m.CONTACTS, m.LEADS),
            RatioDefinition("Lead to Scheduled", pct, m.SCHEDULED, m.LEADS),
            RatioDefinition("Lead to Sits", pct, m.SITS, m.LEADS),
            RatioDefinition("Lead to Sales", pct, m.SALES, m.LEADS),
            RatioDefinition("Calls to Contact", pct, m.CONTACTS, m.CALLS),
            RatioDefinition("Calls to Scheduled", pct, m.SCHEDULED, m.CALLS),
            RatioDefinition("Calls to Sits", pct, m.SITS, m.CALLS),
            RatioDefinition("Calls to Sales", pct, m.SALES, m.CALLS),
            RatioDefinition("AP per Call", cur, m.AP, m.CALLS),
            RatioDefinition("Contact to Scheduled", pct, m.SCHEDULED, m.CONTACTS),
            RatioDefinition("Contact to Sits", pct, m.SITS, m.CONTACTS),
            RatioDefinition("Contact to Sales", pct, m.SALES, m.CONTACTS),
            RatioDefinition("AP per Contact", cur, m.AP, m.CONTACTS),
            RatioDefinition("AP per Lead", cur, m.AP, m.LEADS),
            RatioDefinition("Scheduled to Sits", pct, m.SITS, m.SCHEDULED),
            RatioDefinition("Sits to Sales", pct, m.SALES, m.SITS),
            RatioDefinition("AP per Sit", cur, m.AP, m.SITS),
            RatioDefinition("AP per Sale", cur, m.AP, m.SALES),
        ]

    @property
    def definitions(self) -> list[RatioDefinition]:
        return list(self._ratios)

    def calculate(self, record: MetricRecord) -> list[Ratio]:
        """Ordered ratios for a record."""
        return [self._compute(definition, record) for definition in self._ratios]

    def calculate_map(self, record: MetricRecord) -> dict[str, str]:
        """Same ratios keyed by label."""
        return {ratio.label: ratio.value for ratio in self.calculate(record)}

    def _compute(self, definition: RatioDefinition, record: MetricRecord) -> Ratio:
        numerator = record.get(definition.numerator)
        denominator = record.get(definition.denominator)

        if definition.kind is RatioKind.CURRENCY:
            raw = dollars_per(numerator, denominator)
            return Ratio(definition.label, format_currency(raw), raw)

        raw = percentage(numerator, denominator)
        return Ratio(definition.label, format_percentage(raw), raw)


_default_calculator = RatioCalculator()


# Convenience functions
def calculate_ratios(record: MetricRecord) -> list[Ratio]:
    """Ordered (label, value) ratios for a record."""
    return _default_calculator.calculate(record)


def ratio_map(record: MetricRecord) -> dict[str, str]:
    """Ratios for a record keyed by label."""
    return _default_calculator.calculate_map(record)
