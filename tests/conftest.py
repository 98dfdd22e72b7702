"""Pytest configuration and fixtures for agency_crm tests."""

from datetime import date

import pytest

from agency_crm.config.settings import get_settings
from agency_crm.data.gateway import (
    DAILY_METRICS,
    PROFILES,
    TEAM_MEMBERS,
    TEAMS,
    USER_ROLES,
    InMemoryGateway
)

TODAY = date(2026, 10, 19)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Reset the cached settings between tests to avoid env pollution."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def metric_row():
    """Factory for daily_metrics rows."""
    def _make(user_id, day=TODAY, **counts):
        row = {"user_id": user_id, "date": day.isoformat()}
        for name in ("leads", "calls", "contacts", "scheduled", "sits", "sales", "ap"):
            row[name] = counts.get(name, 0)
        return row
    return _make


@pytest.fixture
def org_tables(metric_row):
    """
    Manager M has direct reports A and B; A also manages C.

    M is gold tier, `root` is a system admin, `p` is a pro-tier manager of a
    separate team with one agent.
    """
    return {
        PROFILES: [
            {"id": "m", "email": "m@agency.test", "first_name": "Maria", "last_name": "Lopez",
             "role": "manager_pro_gold"},
            {"id": "a", "email": "a@agency.test", "first_name": "Alex", "last_name": "Reed",
             "role": "manager", "manager_id": "m"},
            {"id": "b", "email": "b@agency.test", "first_name": "Bea", "last_name": "Kim",
             "role": "agent", "manager_id": "m"},
            {"id": "c", "email": "c@agency.test", "first_name": "Cole", "last_name": "Park",
             "role": "agent", "manager_id": "a"},
            {"id": "p", "email": "p@agency.test", "first_name": "Pat", "last_name": "Diaz",
             "role": "manager_pro"},
            {"id": "q", "email": "q@agency.test", "first_name": "Quinn", "last_name": "Ng",
             "role": "agent", "manager_id": "p"},
            {"id": "root", "email": "root@agency.test", "first_name": "Ro", "last_name": "Ot",
             "role": "system_admin"},
        ],
        USER_ROLES: [
            {"user_id": "m", "role": "manager_pro_gold"},
            {"user_id": "a", "role": "manager"},
            {"user_id": "p", "role": "manager_pro"},
            {"user_id": "root", "role": "system_admin"},
        ],
        TEAMS: [
            {"id": "t-m", "name": "Lopez Agency", "manager": "m@agency.test"},
            {"id": "t-a", "name": "Reed Squad", "manager": "A@Agency.test"},
            {"id": "t-p", "name": "Diaz Group", "manager": "p"},
        ],
        TEAM_MEMBERS: [
            {"team_id": "t-m", "user_id": "a", "role": "manager"},
            {"team_id": "t-m", "user_id": "b", "role": "agent"},
            {"team_id": "t-a", "user_id": "c", "role": "agent"},
            {"team_id": "t-p", "user_id": "q", "role": "agent"},
        ],
        DAILY_METRICS: [
            metric_row("m", leads=10, calls=20, contacts=4, scheduled=2, sits=2, sales=1, ap=50000),
            metric_row("a", leads=20, calls=40, contacts=8, scheduled=4, sits=3, sales=1, ap=40000),
            metric_row("b", leads=30, calls=60, contacts=12, scheduled=6, sits=4, sales=2, ap=80000),
            metric_row("c", leads=40, calls=80, contacts=16, scheduled=8, sits=6, sales=1, ap=30000),
            metric_row("q", leads=5, calls=10, contacts=2, scheduled=1, sits=1, sales=0, ap=0),
        ],
    }


@pytest.fixture
def gateway(org_tables):
    """In-memory gateway seeded with the sample organisation."""
    return InMemoryGateway(org_tables)
