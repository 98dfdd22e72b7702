"""
Success Calculator

What-if projection for an agent or team: starting from a lead count and
four conversion-rate sliders, project contacts, scheduled appointments,
sits, sales and annual premium by sequential multiplication.

Each stage is rounded half-up to a whole count before feeding the next,
so 50 leads at 30% / 40% / 60% / 50% project to 15 contacts, 6 scheduled,
4 sits and 2 sales. Projected AP uses the historical average AP per sale.

Pure and stateless: recompute on every slider change.
"""

from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..core.entities import MetricRecord
from ..metrics.ratios import format_cents


@dataclass(frozen=True)
class SliderBounds:
    minimum: int
    maximum: int

    def clamp(self, value):
        return max(self.minimum, min(self.maximum, value))


LEADS_BOUNDS = SliderBounds(5, 100)
CONTACT_RATE_BOUNDS = SliderBounds(10, 90)
SCHEDULED_RATE_BOUNDS = SliderBounds(10, 90)
SIT_RATE_BOUNDS = SliderBounds(20, 95)
CLOSE_RATE_BOUNDS = SliderBounds(10, 80)

# Starting rates when history has no denominator to derive them from
DEFAULT_CONTACT_RATE = Decimal(30)
DEFAULT_SCHEDULED_RATE = Decimal(40)
DEFAULT_SIT_RATE = Decimal(60)
DEFAULT_CLOSE_RATE = Decimal(50)


def _round_count(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _historical_rate(numerator: int, denominator: int, default: Decimal) -> Decimal:
    if not denominator:
        return default
    return Decimal(numerator) / Decimal(denominator) * 100


@dataclass(frozen=True)
class SuccessCalculatorInputs:
    """Slider positions. Rates are percentages in [0, 100]."""
    leads: int
    contact_rate: Decimal = DEFAULT_CONTACT_RATE
    scheduled_rate: Decimal = DEFAULT_SCHEDULED_RATE
    sit_rate: Decimal = DEFAULT_SIT_RATE
    close_rate: Decimal = DEFAULT_CLOSE_RATE

    def __post_init__(self):
        if isinstance(self.leads, bool) or not isinstance(self.leads, int):
            raise ValueError(f"leads must be an integer, got {self.leads!r}")
        if self.leads < 0:
            raise ValueError(f"leads must be >= 0, got {self.leads}")

        for name in ("contact_rate", "scheduled_rate", "sit_rate", "close_rate"):
            rate = Decimal(str(getattr(self, name)))
            if rate < 0 or rate > 100:
                raise ValueError(f"{name} must be between 0 and 100, got {rate}")
            object.__setattr__(self, name, rate)

    @classmethod
    def from_history(cls, record: MetricRecord) -> "SuccessCalculatorInputs":
        """Seed the sliders from historical conversion, clamped to slider bounds."""
        return cls(
            leads=LEADS_BOUNDS.clamp(record.leads),
            contact_rate=CONTACT_RATE_BOUNDS.clamp(
                _historical_rate(record.contacts, record.leads, DEFAULT_CONTACT_RATE)),
            scheduled_rate=SCHEDULED_RATE_BOUNDS.clamp(
                _historical_rate(record.scheduled, record.contacts, DEFAULT_SCHEDULED_RATE)),
            sit_rate=SIT_RATE_BOUNDS.clamp(
                _historical_rate(record.sits, record.scheduled, DEFAULT_SIT_RATE)),
            close_rate=CLOSE_RATE_BOUNDS.clamp(
                _historical_rate(record.sales, record.sits, DEFAULT_CLOSE_RATE))
        )


@dataclass(frozen=True)
class SuccessProjection:
    """Projected funnel counts and annual premium."""
    inputs: SuccessCalculatorInputs
    contacts: int
    scheduled: int
    sits: int
    sales: int
    average_ap_per_sale: int  # cents
    ap: int  # cents

    @property
    def ap_display(self) -> str:
        return format_cents(self.ap)

    def to_dict(self) -> dict:
        return {
            "leads": self.inputs.leads,
            "contacts": self.contacts,
            "scheduled": self.scheduled,
            "sits": self.sits,
            "sales": self.sales,
            "average_ap_per_sale": self.average_ap_per_sale,
            "ap": self.ap,
            "ap_display": self.ap_display,
        }


def historical_ap_per_sale(record: Optional[MetricRecord]) -> int:
    """
    Average AP per sale in cents.

    Without sales the whole AP total stands in for one sale.
    """
    if record is None:
        return 0
    if record.sales > 0:
        return _round_count(Decimal(record.ap) / Decimal(record.sales))
    return record.ap


def project(
    inputs: SuccessCalculatorInputs,
    history: Optional[MetricRecord] = None
) -> SuccessProjection:
    """Project the funnel for the given slider positions."""
    contacts = _round_count(inputs.leads * inputs.contact_rate / 100)
    scheduled = _round_count(contacts * inputs.scheduled_rate / 100)
    sits = _round_count(scheduled * inputs.sit_rate / 100)
    sales = _round_count(sits * inputs.close_rate / 100)

    per_sale = historical_ap_per_sale(history)
    return SuccessProjection(
        inputs=inputs,
        contacts=contacts,
        scheduled=scheduled,
        sits=sits,
        sales=sales,
        average_ap_per_sale=per_sale,
        ap=sales * per_sale
    )


class SuccessCalculator:
    """Projection bound to one member's (or team's) historical record."""

    def __init__(self, history: Optional[MetricRecord] = None):
        self.history = history or MetricRecord()

    def initial_inputs(self) -> SuccessCalculatorInputs:
        return SuccessCalculatorInputs.from_history(self.history)

    def project(self, inputs: Optional[SuccessCalculatorInputs] = None, **changes) -> SuccessProjection:
        """
        Project from explicit inputs, or from history adjusted by `changes`.

        Example:
            calculator.project(close_rate=60)
        """
        inputs = inputs or self.initial_inputs()
        if changes:
            inputs = replace(inputs, **changes)
        return project(inputs, self.history)
