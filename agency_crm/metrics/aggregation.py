"""
Hierarchical Aggregator

Sums metric records across a team subtree. Summation is element-wise,
associative and commutative, so traversal order never changes the result.

Membership is assumed to form a tree: a member placed twice in the forest
is counted twice.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from ..core.entities import MemberNode, MetricRecord, TeamNode


@dataclass
class TeamAggregateSummary:
    """Aggregated figures for one team subtree."""
    team_id: str = ""
    team_name: str = ""
    record: MetricRecord = field(default_factory=MetricRecord)
    member_count: int = 0
    team_count: int = 1
    depth: int = 0
    average_ap_per_sale: int = 0  # cents


def sum_records(records: Iterable[MetricRecord]) -> MetricRecord:
    """Element-wise sum. The empty sum is the zero record."""
    total = MetricRecord()
    for record in records:
        total = total + record
    return total


def aggregate_member(node: MemberNode) -> MetricRecord:
    """Post-order sum of a member's own record and all subordinates."""
    return sum_records(
        [node.record] + [aggregate_member(child) for child in node.subordinates]
    )


def aggregate_team(team: TeamNode) -> MetricRecord:
    """Manager record (when resolved) plus every member subtree."""
    parts = [aggregate_member(member) for member in team.members]
    if team.manager is not None:
        parts.insert(0, aggregate_member(team.manager))
    return sum_records(parts)


def aggregate_forest(teams: Iterable[TeamNode]) -> MetricRecord:
    """Organisation-level total across every team in the forest."""
    return sum_records(aggregate_team(team) for team in teams)


def average_ap_per_sale(record: MetricRecord) -> int:
    """Average AP per sale in cents, rounded half-up; 0 without sales."""
    if not record.sales:
        return 0
    value = Decimal(record.ap) / Decimal(record.sales)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def summarize_team(team: TeamNode) -> TeamAggregateSummary:
    """Aggregate record plus member/team counts for a team node."""
    record = aggregate_team(team)
    nodes = list(team.walk())

    # Every member with subordinates heads a nested team
    nested_teams = sum(
        1 for member in team.members for node in member.walk() if node.subordinates
    )

    return TeamAggregateSummary(
        team_id=team.id,
        team_name=team.name,
        record=record,
        member_count=len(nodes),
        team_count=1 + nested_teams,
        depth=max((node.level for node in nodes), default=0),
        average_ap_per_sale=average_ap_per_sale(record)
    )
