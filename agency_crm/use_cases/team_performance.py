"""
Team Performance

The manager's team view, end to end:
1. Resolve the viewer and their manager tier
2. Build the team hierarchy (the tier bounds the depth)
3. Load every member's records for the period and the one before it
4. Aggregate bottom-up per member, per team and for the organisation
5. Derive ratios and trends

Nothing here is fatal: failed lookups shrink the report and leave
notifications and diagnostics explaining why.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional
import logging

from ..config.settings import Settings, get_settings
from ..core.entities import MemberNode, MetricRecord, Profile, TeamNode
from ..core.notifications import NotificationCenter
from ..core.roles import ManagerTierPermissions, Role, check_required_role, permissions_for
from ..data.diagnostics import DiagnosticCategory, DiagnosticSeverity
from ..data.gateway import DAILY_METRICS, PROFILES, DataGateway, GatewayError
from ..hierarchy.builder import HierarchySnapshot, TeamHierarchyBuilder
from ..metrics.aggregation import (
    TeamAggregateSummary,
    aggregate_forest,
    aggregate_member,
    sum_records,
    summarize_team
)
from ..metrics.ratios import format_cents, ratio_map
from ..metrics.trends import (
    PeriodWindow,
    TimePeriod,
    calculate_trends,
    period_window,
    records_by_user
)

logger = logging.getLogger(__name__)


@dataclass
class MemberRow:
    """One line of the team table."""
    profile_id: str
    name: str
    email: Optional[str]
    team_id: str
    level: int = 0
    is_manager: bool = False
    record: MetricRecord = field(default_factory=MetricRecord)
    subtree: MetricRecord = field(default_factory=MetricRecord)  # own plus subordinates
    subordinate_count: int = 0

    @property
    def ap_display(self) -> str:
        return format_cents(self.record.ap)


@dataclass
class TeamReport:
    """Aggregates and member rows for one team tree."""
    summary: TeamAggregateSummary
    ratios: dict = field(default_factory=dict)
    members: list = field(default_factory=list)  # of MemberRow


@dataclass
class TeamPerformanceReport:
    """Everything the team performance screen renders."""
    viewer_id: str
    period: TimePeriod
    window: Optional[PeriodWindow] = None
    generated_at: datetime = field(default_factory=datetime.now)

    teams: list = field(default_factory=list)  # of TeamReport
    totals: MetricRecord = field(default_factory=MetricRecord)
    ratios: dict = field(default_factory=dict)
    trends: dict = field(default_factory=dict)  # metric -> MetricTrend
    is_flat: bool = False
    max_depth: int = 1

    notifications: list = field(default_factory=list)  # of Notification
    diagnostics: dict = field(default_factory=dict)  # category -> count

    @property
    def member_count(self) -> int:
        return sum(len(team.members) for team in self.teams)

    @property
    def has_errors(self) -> bool:
        return any(n.is_error for n in self.notifications)


class TeamPerformanceUseCase:
    """
    Builds team performance reports.

    System admins see every top-level team; managers see the teams they
    manage, as deep as their tier allows.
    """

    def __init__(
        self,
        gateway: DataGateway,
        settings: Optional[Settings] = None,
        notifications: Optional[NotificationCenter] = None
    ):
        self._gateway = gateway
        self._settings = settings or get_settings()
        self._notifications = notifications if notifications is not None else NotificationCenter()

    def team_report(
        self,
        viewer_id: str,
        period=None,
        today: Optional[date] = None,
        custom_range: Optional[tuple] = None
    ) -> TeamPerformanceReport:
        period = TimePeriod(period or self._settings.metrics.default_period)
        window = period_window(period, today=today, custom_range=custom_range)
        report = TeamPerformanceReport(viewer_id=viewer_id, period=period, window=window)
        first_event = len(self._gateway.diagnostics)

        viewer = self._load_viewer(viewer_id)
        if viewer is None:
            return self._finish(report, first_event)

        permissions = permissions_for(viewer.roles)
        report.max_depth = self._depth_for(permissions)

        builder = TeamHierarchyBuilder(
            self._gateway,
            notifications=self._notifications,
            max_depth=report.max_depth,
            use_manager_linkage=self._settings.hierarchy.use_manager_linkage
        )
        snapshot = builder.load()
        teams, report.is_flat = self._teams_for(builder, snapshot, viewer, permissions)

        current, previous = self._load_records(teams, window)
        for team in teams:
            self._attach_records(team, current)

        report.teams = [self._team_report(team) for team in teams]
        report.totals = aggregate_forest(teams)
        report.ratios = ratio_map(report.totals)

        previous_total = sum_records(
            previous.get(node.id, MetricRecord()) for team in teams for node in team.walk()
        )
        report.trends = calculate_trends(report.totals, previous_total)

        logger.info(
            "Team report for %s: %d teams, %d members, period %s",
            viewer_id, len(report.teams), report.member_count, period.value
        )
        return self._finish(report, first_event)

    # ------------------------------------------------------------------

    def _load_viewer(self, viewer_id: str) -> Optional[Profile]:
        try:
            viewer = self._gateway.fetch_profile(viewer_id)
        except GatewayError as e:
            self._gateway.diagnostics.record(
                DiagnosticCategory.FETCH_FAILURE,
                str(e),
                source=PROFILES,
                severity=DiagnosticSeverity.ERROR
            )
            self._notifications.error("Failed to load your profile")
            return None

        if viewer is None:
            logger.info("Viewer %s has no profile", viewer_id)
            self._notifications.error("Profile not found")
        return viewer

    def _depth_for(self, permissions: ManagerTierPermissions) -> int:
        # Managers without a tier still see their direct team
        tier_depth = permissions.max_team_depth or 1
        return max(1, min(tier_depth, self._settings.hierarchy.max_depth))

    def _teams_for(
        self,
        builder: TeamHierarchyBuilder,
        snapshot: HierarchySnapshot,
        viewer: Profile,
        permissions: ManagerTierPermissions
    ) -> tuple[list[TeamNode], bool]:
        """Team trees visible to the viewer, and whether they are flat."""
        is_admin = check_required_role(viewer.roles, [Role.SYSTEM_ADMIN])

        if permissions.can_view_hierarchy:
            if is_admin:
                teams = builder.build_forest(snapshot)
            else:
                teams = builder.build_for_manager(viewer.id, snapshot)
            if teams or not self._settings.hierarchy.fallback_to_flat:
                return teams, False

        flat = [
            team for team in builder.flat_teams(snapshot)
            if is_admin or viewer.matches(team.manager_ref)
        ]
        return flat, True

    def _load_records(self, teams: list[TeamNode], window: PeriodWindow) -> tuple[dict, dict]:
        """Per-user records for the window and the window before it."""
        user_ids = sorted({pid for team in teams for pid in team.profile_ids()})
        if not user_ids:
            return {}, {}

        before = window.previous()
        try:
            rows = self._gateway.fetch_daily_metrics(user_ids, start=before.start, end=window.end)
        except GatewayError as e:
            self._gateway.diagnostics.record(
                DiagnosticCategory.FETCH_FAILURE,
                str(e),
                source=DAILY_METRICS,
                severity=DiagnosticSeverity.ERROR
            )
            self._notifications.error("Failed to load team metrics")
            rows = []

        return records_by_user(rows, window), records_by_user(rows, before)

    def _attach_records(self, team: TeamNode, records: dict) -> None:
        for node in team.walk():
            node.record = records.get(node.id, MetricRecord()).copy()

    def _team_report(self, team: TeamNode) -> TeamReport:
        summary = summarize_team(team)
        return TeamReport(
            summary=summary,
            ratios=ratio_map(summary.record),
            members=[
                self._member_row(node, team, is_manager=node is team.manager)
                for node in team.walk()
            ]
        )

    def _member_row(self, node: MemberNode, team: TeamNode, is_manager: bool) -> MemberRow:
        return MemberRow(
            profile_id=node.id,
            name=node.profile.full_name,
            email=node.profile.email,
            team_id=team.id,
            level=node.level,
            is_manager=is_manager,
            record=node.record,
            subtree=aggregate_member(node),
            subordinate_count=sum(1 for _ in node.walk()) - 1
        )

    def _finish(self, report: TeamPerformanceReport, first_event: int) -> TeamPerformanceReport:
        report.notifications = self._notifications.drain()
        # Only what this report recorded; the gateway log outlives it
        report.diagnostics = self._gateway.diagnostics.counts(start=first_event)
        return report
