"""
Tests for hierarchical aggregation
- Every member counted exactly once in a tree
- Associativity across partitions
- Idempotence and team summaries
"""

from itertools import combinations

import pytest

from agency_crm.core.entities import MemberNode, MetricRecord, Profile, TeamNode
from agency_crm.metrics.aggregation import (
    aggregate_forest,
    aggregate_member,
    aggregate_team,
    average_ap_per_sale,
    sum_records,
    summarize_team
)


def node(profile_id, level=0, subordinates=None, **counts):
    return MemberNode(
        profile=Profile(id=profile_id),
        record=MetricRecord(**counts),
        subordinates=subordinates or [],
        level=level
    )


@pytest.fixture
def team_m():
    """M manages A and B; A manages C."""
    c = node("c", level=1, leads=1000)
    a = node("a", subordinates=[c], leads=100)
    b = node("b", leads=10)
    return TeamNode(id="t-m", name="M", manager=node("m", leads=1), members=[a, b])


def test_each_member_counted_once(team_m):
    total = aggregate_team(team_m)

    # Distinct powers of ten expose any double count or omission
    assert total.leads == 1111


def test_member_subtree(team_m):
    a = team_m.members[0]

    assert aggregate_member(a).leads == 1100
    assert aggregate_member(a.subordinates[0]).leads == 1000


def test_manager_optional():
    team = TeamNode(id="t", name="No manager", members=[node("x", leads=2), node("y", leads=3)])

    assert aggregate_team(team).leads == 5


def test_associative_over_partitions():
    records = [MetricRecord(leads=i, calls=2 * i, ap=100 * i) for i in range(1, 6)]
    direct = sum_records(records)

    for size in range(len(records) + 1):
        for left_idx in combinations(range(len(records)), size):
            left = [records[i] for i in left_idx]
            right = [records[i] for i in range(len(records)) if i not in left_idx]
            assert sum_records([sum_records(left), sum_records(right)]) == direct


def test_subteams_sum_to_combined_team():
    members = [node("a", leads=3, sales=1), node("b", leads=5), node("c", leads=7, ap=900)]
    combined = TeamNode(id="all", members=members)
    first = TeamNode(id="one", members=members[:1])
    second = TeamNode(id="two", members=members[1:])

    assert aggregate_forest([first, second]) == aggregate_team(combined)


def test_idempotent(team_m):
    first = aggregate_team(team_m)
    second = aggregate_team(team_m)

    assert first == second
    assert team_m.members[0].record.leads == 100


def test_empty_sum_is_zero():
    assert sum_records([]) == MetricRecord()
    assert aggregate_forest([]) == MetricRecord()


def test_duplicate_member_counted_twice():
    shared = node("dup", leads=4)
    team = TeamNode(id="t", members=[shared, shared])

    assert aggregate_team(team).leads == 8


def test_average_ap_per_sale():
    assert average_ap_per_sale(MetricRecord(sales=3, ap=100000)) == 33333
    assert average_ap_per_sale(MetricRecord(sales=2, ap=5)) == 3
    assert average_ap_per_sale(MetricRecord(ap=5000)) == 0


def test_summarize_team(team_m):
    team_m.members[0].record.sales = 2
    team_m.members[0].record.ap = 90000

    summary = summarize_team(team_m)

    assert summary.team_id == "t-m"
    assert summary.member_count == 4
    assert summary.team_count == 2
    assert summary.depth == 1
    assert summary.record.leads == 1111
    assert summary.average_ap_per_sale == 45000
