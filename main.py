#!/usr/bin/env python3
"""
Agency CRM - Main Demo

Runs the metrics and team hierarchy pipeline against a small seeded
organisation (or against Supabase when SUPABASE_BACKEND=supabase):
1. Agent metric entry (persisted on every change)
2. Team performance report (hierarchy, aggregates, ratios, trends)
3. Success Calculator projection
4. Team capacity check
"""

from datetime import date, timedelta
import sys

from agency_crm.config import BackendType, configure_logging, get_gateway, get_settings
from agency_crm.data.gateway import DAILY_METRICS, PROFILES, TEAM_MEMBERS, TEAMS, USER_ROLES, InMemoryGateway
from agency_crm.metrics.ratios import format_cents
from agency_crm.projection import SuccessCalculator
from agency_crm.use_cases import MetricEntryUseCase, TeamCapacityUseCase, TeamPerformanceUseCase


def seed(gateway: InMemoryGateway, today: date) -> None:
    """Manager M (gold) runs a team of A and B; A runs a sub-team with C."""
    gateway.insert(
        PROFILES,
        {"id": "m", "email": "maria@agency.test", "first_name": "Maria", "last_name": "Lopez",
         "role": "manager_pro_gold"},
        {"id": "a", "email": "alex@agency.test", "first_name": "Alex", "last_name": "Reed",
         "role": "manager", "manager_id": "m"},
        {"id": "b", "email": "bea@agency.test", "first_name": "Bea", "last_name": "Kim",
         "role": "agent", "manager_id": "m"},
        {"id": "c", "email": "cole@agency.test", "first_name": "Cole", "last_name": "Park",
         "role": "agent", "manager_id": "a"},
    )
    gateway.insert(
        USER_ROLES,
        {"user_id": "m", "role": "manager_pro_gold"},
        {"user_id": "a", "role": "manager"},
    )
    gateway.insert(
        TEAMS,
        {"id": "t-maria", "name": "Lopez Agency", "manager": "maria@agency.test"},
        {"id": "t-alex", "name": "Reed Squad", "manager": "alex@agency.test"},
    )
    gateway.insert(
        TEAM_MEMBERS,
        {"team_id": "t-maria", "user_id": "a", "role": "manager"},
        {"team_id": "t-maria", "user_id": "b", "role": "agent"},
        {"team_id": "t-alex", "user_id": "c", "role": "agent"},
    )

    yesterday = today - timedelta(days=1)
    for user_id, day, leads, calls, contacts, scheduled, sits, sales, ap in [
        ("m", today, 20, 40, 8, 4, 3, 1, 60000),
        ("a", today, 35, 70, 14, 7, 5, 2, 110000),
        ("b", today, 25, 50, 10, 5, 4, 1, 45000),
        ("c", today, 20, 45, 8, 4, 3, 1, 35000),
        ("a", yesterday, 30, 60, 12, 6, 4, 1, 50000),
        ("b", yesterday, 20, 40, 6, 3, 2, 1, 40000),
    ]:
        gateway.insert(DAILY_METRICS, {
            "user_id": user_id, "date": day.isoformat(),
            "leads": leads, "calls": calls, "contacts": contacts, "scheduled": scheduled,
            "sits": sits, "sales": sales, "ap": ap,
        })


def run_metric_entry_demo(gateway, today: date):
    print("=" * 60)
    print("METRIC ENTRY")
    print("=" * 60)
    print()

    entry = MetricEntryUseCase(gateway, user_id="b", day=today)
    entry.load()
    print(f"Loaded today's record for Bea: {entry.record.to_dict()}")

    entry.increment("leads")
    entry.increment("ap")
    entry.decrement("calls")
    entry.set_value("sales", 2)
    print(f"After edits: {entry.record.to_dict()}")
    print(f"AP now: {format_cents(entry.record.ap)}")
    print()

    for note in entry.notifications.drain():
        print(f"  [{note.variant.value}] {note.title}: {note.description}")
    print()


def run_team_report_demo(gateway, today: date):
    print("=" * 60)
    print("TEAM PERFORMANCE (viewer: Maria, gold tier)")
    print("=" * 60)
    print()

    report = TeamPerformanceUseCase(gateway).team_report("m", period="7d", today=today)
    print(f"Period: {report.period.value} ({report.window.start} to {report.window.end})")
    print(f"Max depth: {report.max_depth}  Flat view: {report.is_flat}")
    print()

    for team in report.teams:
        summary = team.summary
        print(f"{summary.team_name}: {summary.member_count} people, "
              f"{summary.team_count} teams, depth {summary.depth}")
        print(f"{'Member':<20} {'Lvl':<4} {'Leads':<7} {'Sales':<7} {'AP':<12} {'Subtree AP':<12}")
        print("-" * 60)
        for row in team.members:
            name = ("* " if row.is_manager else "  " * (row.level + 1)) + row.name
            print(f"{name:<20} {row.level:<4} {row.record.leads:<7} {row.record.sales:<7} "
                  f"{row.ap_display:<12} {format_cents(row.subtree.ap):<12}")
        print()

    print("Organisation ratios:")
    for label in ("Lead to Contact", "Lead to Sales", "AP per Lead", "AP per Sale"):
        print(f"  {label:<22} {report.ratios[label]}")
    print()

    print("Trends vs previous period:")
    for name, trend in report.trends.items():
        print(f"  {name:<10} {trend.previous:>8} -> {trend.current:<8} "
              f"{trend.change_percent:>7}% ({trend.trend_direction})")
    print()

    for note in report.notifications:
        print(f"  [{note.variant.value}] {note.title}: {note.description}")
    return report


def run_success_calculator_demo(report):
    print("=" * 60)
    print("SUCCESS CALCULATOR")
    print("=" * 60)
    print()

    calculator = SuccessCalculator(report.totals)
    inputs = calculator.initial_inputs()
    print(f"Seeded from history: leads={inputs.leads}, contact={inputs.contact_rate:.1f}%, "
          f"scheduled={inputs.scheduled_rate:.1f}%, sit={inputs.sit_rate:.1f}%, "
          f"close={inputs.close_rate:.1f}%")

    projection = calculator.project(leads=50, contact_rate=30, scheduled_rate=40,
                                    sit_rate=60, close_rate=50)
    print("What-if (50 leads, 30/40/60/50):")
    for key, value in projection.to_dict().items():
        print(f"  {key:<20} {value}")
    print()


def run_team_capacity_demo(gateway):
    print("=" * 60)
    print("TEAM CAPACITY")
    print("=" * 60)
    print()

    capacity = TeamCapacityUseCase(gateway)
    for manager_id in ("m", "a", "b"):
        result = capacity.can_add_member(manager_id)
        limit = "unlimited" if result.limit is None else result.limit
        role = result.role.value if result.role else "-"
        print(f"  {manager_id}: can_add={result.can_add} "
              f"({result.current_count}/{limit}, role {role}) {result.error or ''}")
    print()


def main():
    """Main entry point."""
    settings = get_settings()
    configure_logging(settings.log_level)

    print()
    print("+" + "=" * 58 + "+")
    print(f"|  {settings.app_name.upper() + ' DEMONSTRATION':<56}|")
    print("+" + "=" * 58 + "+")
    print()

    today = date.today()
    gateway = get_gateway(settings.backend)
    if settings.backend.backend == BackendType.IN_MEMORY:
        seed(gateway, today)
    elif len(sys.argv) < 2:
        print("Usage with Supabase: python main.py <viewer_profile_id>")
        return

    if settings.backend.backend == BackendType.IN_MEMORY:
        run_metric_entry_demo(gateway, today)
        report = run_team_report_demo(gateway, today)
    else:
        report = TeamPerformanceUseCase(gateway, settings).team_report(sys.argv[1], today=today)
        print(f"{len(report.teams)} teams, {report.member_count} rows")
        print()

    run_success_calculator_demo(report)
    run_team_capacity_demo(gateway)

    print("=" * 60)
    print("DEMONSTRATION COMPLETE")
    print("=" * 60)
    print()
    counts = gateway.diagnostics.counts()
    if counts:
        print(f"Diagnostics: {counts}")
        print()


if __name__ == "__main__":
    main()
