"""
Data Gateway

The read/write contract over the hosted backend's tables. Services receive
a gateway at construction instead of reaching for a global client, so the
hierarchy and aggregation logic runs unchanged against the in-memory
implementation in tests.

Backends only implement two primitives, `select` and `upsert`, using
equality, containment and range filters. The typed fetches below are
shared: they validate rows at this boundary and return core entities.
Joins happen client-side.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, Optional
import copy
import logging

from ..core.entities import DailyMetric, Profile, Team, TeamMembership
from .diagnostics import DiagnosticCategory, DiagnosticLog, DiagnosticSeverity
from .parsing import (
    DailyMetricRow,
    MembershipRow,
    ProfileRow,
    TeamRow,
    UserRoleRow,
    parse_row,
    parse_rows
)

logger = logging.getLogger(__name__)


PROFILES = "profiles"
TEAMS = "teams"
TEAM_MEMBERS = "team_members"
USER_ROLES = "user_roles"
DAILY_METRICS = "daily_metrics"


class GatewayError(Exception):
    """A backend request failed (network, permission, server error)."""

    def __init__(self, table: str, operation: str, message: str = ""):
        self.table = table
        self.operation = operation
        super().__init__(f"{operation} on {table} failed: {message}")


class DataGateway(ABC):
    """
    Base class for backend gateways.

    Subclasses raise GatewayError from the primitives; callers decide
    whether a failure degrades to an empty result.
    """

    def __init__(self, diagnostics: Optional[DiagnosticLog] = None):
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    @abstractmethod
    def select(
        self,
        table: str,
        eq: Optional[dict] = None,
        in_: Optional[dict] = None,
        gte: Optional[dict] = None,
        lte: Optional[dict] = None,
        order: Optional[str] = None,
        descending: bool = False
    ) -> list[dict]:
        """Return raw rows matching every filter."""

    @abstractmethod
    def upsert(self, table: str, row: dict, on_conflict: str) -> dict:
        """Insert or update one row keyed by `on_conflict` columns."""

    # ------------------------------------------------------------------
    # Typed reads
    # ------------------------------------------------------------------

    def fetch_profiles(
        self,
        ids: Optional[Iterable[str]] = None,
        manager_id: Optional[str] = None,
        email: Optional[str] = None
    ) -> list[Profile]:
        """Profiles, with roles merged from the user_roles table."""
        eq = {}
        if manager_id is not None:
            eq["manager_id"] = manager_id
        if email is not None:
            eq["email"] = email
        in_ = {"id": list(ids)} if ids is not None else None

        rows = parse_rows(
            ProfileRow,
            self.select(PROFILES, eq=eq or None, in_=in_),
            source=PROFILES,
            diagnostics=self.diagnostics
        )
        if not rows:
            return []

        extra_roles = self._roles_or_empty([row.id for row in rows])
        return [row.to_entity(extra_roles.get(row.id, ())) for row in rows]

    def fetch_profile(self, profile_id: str) -> Optional[Profile]:
        profiles = self.fetch_profiles(ids=[profile_id])
        return profiles[0] if profiles else None

    def fetch_teams(self, ids: Optional[Iterable[str]] = None) -> list[Team]:
        # Manager references are matched client-side (id or any-case email)
        in_ = {"id": list(ids)} if ids is not None else None
        rows = parse_rows(
            TeamRow,
            self.select(TEAMS, in_=in_),
            source=TEAMS,
            diagnostics=self.diagnostics
        )
        return [row.to_entity() for row in rows]

    def fetch_memberships(
        self,
        team_ids: Optional[Iterable[str]] = None,
        user_ids: Optional[Iterable[str]] = None
    ) -> list[TeamMembership]:
        in_ = {}
        if team_ids is not None:
            in_["team_id"] = list(team_ids)
        if user_ids is not None:
            in_["user_id"] = list(user_ids)
        rows = parse_rows(
            MembershipRow,
            self.select(TEAM_MEMBERS, in_=in_ or None),
            source=TEAM_MEMBERS,
            diagnostics=self.diagnostics
        )
        return [row.to_entity() for row in rows]

    def fetch_user_roles(self, user_ids: Iterable[str]) -> dict[str, set]:
        """Raw role strings per user id."""
        rows = parse_rows(
            UserRoleRow,
            self.select(USER_ROLES, in_={"user_id": list(user_ids)}),
            source=USER_ROLES,
            diagnostics=self.diagnostics
        )
        roles: dict[str, set] = {}
        for row in rows:
            roles.setdefault(row.user_id, set()).add(row.role)
        return roles

    def fetch_daily_metrics(
        self,
        user_ids: Iterable[str],
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> list[DailyMetric]:
        """Daily rows for users, optionally within an inclusive date range."""
        user_ids = list(user_ids)
        if not user_ids:
            return []
        rows = parse_rows(
            DailyMetricRow,
            self.select(
                DAILY_METRICS,
                in_={"user_id": user_ids},
                gte={"date": start.isoformat()} if start else None,
                lte={"date": end.isoformat()} if end else None,
                order="date",
                descending=True
            ),
            source=DAILY_METRICS,
            diagnostics=self.diagnostics
        )
        return [row.to_entity() for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert_daily_metric(self, metric: DailyMetric) -> DailyMetric:
        """Persist one daily row immediately, keyed by (user_id, date)."""
        stored = self.upsert(DAILY_METRICS, metric.to_row(), on_conflict="user_id,date")
        if not stored:
            return metric
        return parse_row(DailyMetricRow, stored, DAILY_METRICS).to_entity()

    # ------------------------------------------------------------------

    def _roles_or_empty(self, user_ids: list[str]) -> dict[str, set]:
        # Profiles stay usable with their primary role if user_roles fails
        try:
            return self.fetch_user_roles(user_ids)
        except GatewayError as e:
            self.diagnostics.record(
                DiagnosticCategory.FETCH_FAILURE,
                str(e),
                source=USER_ROLES,
                severity=DiagnosticSeverity.ERROR
            )
            return {}


class InMemoryGateway(DataGateway):
    """
    Gateway over in-process tables.

    Used by tests and the demo. `fail_tables` makes every request against
    the named tables raise GatewayError, to exercise degraded paths.
    """

    def __init__(
        self,
        tables: Optional[dict] = None,
        diagnostics: Optional[DiagnosticLog] = None,
        fail_tables: Iterable[str] = ()
    ):
        super().__init__(diagnostics)
        self.tables: dict[str, list[dict]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.fail_tables = set(fail_tables)
        self.requests: list[tuple] = []

    def insert(self, table: str, *rows: dict) -> None:
        self.tables.setdefault(table, []).extend(dict(row) for row in rows)

    def select(
        self,
        table: str,
        eq: Optional[dict] = None,
        in_: Optional[dict] = None,
        gte: Optional[dict] = None,
        lte: Optional[dict] = None,
        order: Optional[str] = None,
        descending: bool = False
    ) -> list[dict]:
        self._check(table, "select")
        self.requests.append(("select", table))

        results = []
        for row in self.tables.get(table, []):
            if eq and any(row.get(k) != v for k, v in eq.items()):
                continue
            if in_ and any(row.get(k) not in set(v) for k, v in in_.items()):
                continue
            if gte and any(row.get(k) is None or str(row.get(k)) < str(v) for k, v in gte.items()):
                continue
            if lte and any(row.get(k) is None or str(row.get(k)) > str(v) for k, v in lte.items()):
                continue
            results.append(copy.deepcopy(row))

        if order:
            results.sort(key=lambda r: str(r.get(order, "")), reverse=descending)
        return results

    def upsert(self, table: str, row: dict, on_conflict: str) -> dict:
        self._check(table, "upsert")
        self.requests.append(("upsert", table))

        keys = [k.strip() for k in on_conflict.split(",")]
        rows = self.tables.setdefault(table, [])
        for existing in rows:
            if all(existing.get(k) == row.get(k) for k in keys):
                existing.update(row)
                return dict(existing)

        stored = dict(row)
        stored.setdefault("id", f"{table}_{len(rows) + 1}")
        rows.append(stored)
        return dict(stored)

    def _check(self, table: str, operation: str) -> None:
        if table in self.fail_tables:
            raise GatewayError(table, operation, "simulated backend failure")
