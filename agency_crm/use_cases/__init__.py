"""
Use Case Implementations

Team performance: the manager's hierarchical team view with aggregates,
ratios and trends.

Metric entry: an agent's daily counters, persisted on every change.

Team capacity: member limits per manager tier.
"""

from .team_performance import MemberRow, TeamPerformanceReport, TeamPerformanceUseCase, TeamReport
from .metric_entry import MetricEntryUseCase
from .team_capacity import TeamCapacity, TeamCapacityUseCase

__all__ = [
    "MemberRow",
    "TeamPerformanceReport",
    "TeamPerformanceUseCase",
    "TeamReport",
    "MetricEntryUseCase",
    "TeamCapacity",
    "TeamCapacityUseCase"
]
