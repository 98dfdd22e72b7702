"""
What-if projections over agent metrics.
"""

from .success_calculator import (
    SuccessCalculator,
    SuccessCalculatorInputs,
    SuccessProjection,
    historical_ap_per_sale,
    project
)

__all__ = [
    "SuccessCalculator",
    "SuccessCalculatorInputs",
    "SuccessProjection",
    "historical_ap_per_sale",
    "project"
]
