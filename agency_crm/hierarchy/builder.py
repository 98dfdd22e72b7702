"""
Team Hierarchy Builder

Assembles the team forest from flat backend rows:

1. Each team's manager identifier (email or profile id) is resolved
   against the loaded profiles.
2. A team's direct members are the profiles with a membership row for it,
   minus the manager.
3. A member who manages another team (or is named as manager by other
   profiles' manager linkage) gets those reports attached as subordinates,
   one level deeper, recursively.
4. Recursion stops when a member manages nobody, when the depth limit is
   reached, or when a profile would become its own ancestor.

Lookups that fail are treated as empty and construction continues: a
partial hierarchy is preferable to no hierarchy. Every degradation is
recorded in the diagnostics log.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional
import logging

from ..core.entities import MemberNode, Profile, Team, TeamMembership, TeamNode
from ..core.notifications import NotificationCenter
from ..core.roles import UNLIMITED
from ..data.diagnostics import DiagnosticCategory, DiagnosticLog, DiagnosticSeverity
from ..data.gateway import DataGateway, GatewayError

logger = logging.getLogger(__name__)


@dataclass
class HierarchySnapshot:
    """
    Profiles, teams and memberships loaded for one build.

    Indexes are built once so the recursion only does dictionary lookups.
    """
    profiles: list = field(default_factory=list)  # of Profile
    teams: list = field(default_factory=list)  # of Team
    memberships: list = field(default_factory=list)  # of TeamMembership

    def __post_init__(self):
        self._by_id: dict[str, Profile] = {p.id: p for p in self.profiles}
        self._by_email: dict[str, Profile] = {
            p.email.lower(): p for p in self.profiles if p.email
        }
        self._teams_by_id: dict[str, Team] = {t.id: t for t in self.teams}

        self._memberships_by_team: dict[str, list[TeamMembership]] = {}
        self._teams_by_member: dict[str, list[str]] = {}
        for membership in self.memberships:
            self._memberships_by_team.setdefault(membership.team_id, []).append(membership)
            self._teams_by_member.setdefault(membership.user_id, []).append(membership.team_id)

        self._linked_reports: dict[str, list[Profile]] = {}
        for profile in self.profiles:
            if profile.manager_id and profile.manager_id != profile.id:
                self._linked_reports.setdefault(profile.manager_id, []).append(profile)

        self._teams_by_manager: dict[str, list[Team]] = {}
        for team in self.teams:
            manager = self.resolve(team.manager)
            if manager is not None:
                self._teams_by_manager.setdefault(manager.id, []).append(team)

    def resolve(self, identifier: Optional[str]) -> Optional[Profile]:
        """Profile for an id or (case-insensitive) email."""
        if not identifier:
            return None
        identifier = identifier.strip()
        return self._by_id.get(identifier) or self._by_email.get(identifier.lower())

    def profile(self, profile_id: str) -> Optional[Profile]:
        return self._by_id.get(profile_id)

    def team(self, team_id: str) -> Optional[Team]:
        return self._teams_by_id.get(team_id)

    def memberships_of(self, team_id: str) -> list[TeamMembership]:
        return self._memberships_by_team.get(team_id, [])

    def teams_managed_by(self, profile_id: str) -> list[Team]:
        return self._teams_by_manager.get(profile_id, [])

    def linked_reports(self, profile_id: str) -> list[Profile]:
        """Profiles whose manager linkage names `profile_id`."""
        return self._linked_reports.get(profile_id, [])

    def membership_managers(self, profile_id: str) -> set[str]:
        """Ids of the managers of every team `profile_id` belongs to."""
        managers = set()
        for team_id in self._teams_by_member.get(profile_id, []):
            team = self._teams_by_id.get(team_id)
            manager = self.resolve(team.manager) if team else None
            if manager is not None and manager.id != profile_id:
                managers.add(manager.id)
        return managers


@dataclass
class ReportingStructure:
    """A profile's manager and direct reports, by manager linkage."""
    profile: Profile
    manager: Optional[Profile] = None
    direct_reports: list = field(default_factory=list)  # of Profile


class TeamHierarchyBuilder:
    """
    Builds team forests from a DataGateway.

    The hierarchy is rebuilt on every call and never written back.
    """

    def __init__(
        self,
        gateway: DataGateway,
        diagnostics: Optional[DiagnosticLog] = None,
        notifications: Optional[NotificationCenter] = None,
        max_depth: int = UNLIMITED,
        use_manager_linkage: bool = True
    ):
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self._gateway = gateway
        self._diagnostics = diagnostics if diagnostics is not None else gateway.diagnostics
        self._notifications = notifications if notifications is not None else NotificationCenter()
        self.max_depth = max_depth
        self.use_manager_linkage = use_manager_linkage

    @property
    def diagnostics(self) -> DiagnosticLog:
        return self._diagnostics

    @property
    def notifications(self) -> NotificationCenter:
        return self._notifications

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> HierarchySnapshot:
        """Fetch every row the build needs; failed lookups become empty."""
        return HierarchySnapshot(
            profiles=self._safe_fetch("profiles", self._gateway.fetch_profiles),
            teams=self._safe_fetch("teams", self._gateway.fetch_teams),
            memberships=self._safe_fetch("team memberships", self._gateway.fetch_memberships)
        )

    def _safe_fetch(self, label: str, fetch: Callable[[], list]) -> list:
        try:
            return fetch()
        except GatewayError as e:
            self._diagnostics.record(
                DiagnosticCategory.FETCH_FAILURE,
                str(e),
                source=e.table,
                severity=DiagnosticSeverity.ERROR
            )
            self._notifications.error(f"Failed to load {label}")
            return []

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def build_forest(self, snapshot: Optional[HierarchySnapshot] = None) -> list[TeamNode]:
        """
        One tree per top-level team.

        A nested team whose manager did not land in any tree (their
        superior manages nothing, or a cycle left no top-level team) is
        promoted to a tree of its own. No team is both nested and top-level.
        """
        snap = snapshot if snapshot is not None else self.load()
        forest, placed = [], set()
        for team in self._root_teams(snap):
            node = self._team_node(team, snap)
            forest.append(node)
            placed |= node.profile_ids()

        built = {node.id for node in forest}
        for team in snap.teams:
            if team.id in built:
                continue
            manager = snap.resolve(team.manager)
            if manager is not None and manager.id in placed:
                continue
            logger.info("Team %s has no placed superior; promoted to top level", team.id)
            node = self._team_node(team, snap)
            forest.append(node)
            built.add(team.id)
            placed |= node.profile_ids()
        return forest

    def build_team(
        self,
        team_id: str,
        snapshot: Optional[HierarchySnapshot] = None
    ) -> Optional[TeamNode]:
        """The tree rooted at one team, or None when the team is unknown."""
        snap = snapshot if snapshot is not None else self.load()
        team = snap.team(team_id)
        if team is None:
            logger.info("Team %s not found", team_id)
            return None
        return self._team_node(team, snap)

    def build_for_manager(
        self,
        identifier: str,
        snapshot: Optional[HierarchySnapshot] = None
    ) -> list[TeamNode]:
        """Trees for every team managed by an id or email."""
        snap = snapshot if snapshot is not None else self.load()
        manager = snap.resolve(identifier)
        if manager is None:
            return []
        return [self._team_node(team, snap) for team in snap.teams_managed_by(manager.id)]

    def members_for_manager(
        self,
        identifier: str,
        snapshot: Optional[HierarchySnapshot] = None
    ) -> list[MemberNode]:
        """
        Direct reports of a manager as member nodes.

        An identifier with no matching profile yields an empty list.
        """
        snap = snapshot if snapshot is not None else self.load()
        manager = snap.resolve(identifier)
        if manager is None:
            logger.info("No profile matches manager identifier %r", identifier)
            return []

        ancestors = frozenset({manager.id})
        return [
            self._member_node(report, snap, 0, ancestors)
            for report in self._reports_of(manager, snap)
        ]

    def flat_teams(self, snapshot: Optional[HierarchySnapshot] = None) -> list[TeamNode]:
        """Every team with its direct members only, no nesting."""
        snap = snapshot if snapshot is not None else self.load()
        nodes = []
        for team in snap.teams:
            manager = snap.resolve(team.manager)
            nodes.append(TeamNode(
                id=team.id,
                name=team.name,
                manager_ref=team.manager,
                manager=MemberNode(profile=manager) if manager else None,
                members=[MemberNode(profile=p) for p in self._team_members(team, manager, snap)]
            ))
        return nodes

    # ------------------------------------------------------------------

    def _root_teams(self, snap: HierarchySnapshot) -> list[Team]:
        """Teams whose manager reports to nobody in the snapshot."""
        roots = []
        for team in snap.teams:
            manager = snap.resolve(team.manager)
            if manager is None or not self._has_superior(manager, snap):
                roots.append(team)
        return roots

    def _has_superior(self, profile: Profile, snap: HierarchySnapshot) -> bool:
        # Same two sources _reports_of attaches subordinates from
        if snap.membership_managers(profile.id):
            return True
        if self.use_manager_linkage and profile.manager_id and profile.manager_id != profile.id:
            return snap.profile(profile.manager_id) is not None
        return False

    def _team_node(self, team: Team, snap: HierarchySnapshot) -> TeamNode:
        manager = snap.resolve(team.manager)
        if manager is None:
            self._diagnostics.record(
                DiagnosticCategory.HIERARCHY_INCONSISTENCY,
                "Team manager does not match any profile",
                source="teams",
                team_id=team.id,
                manager=team.manager
            )

        ancestors = frozenset({manager.id}) if manager else frozenset()
        members = [
            self._member_node(profile, snap, 0, ancestors)
            for profile in self._team_members(team, manager, snap)
        ]
        return TeamNode(
            id=team.id,
            name=team.name,
            manager_ref=team.manager,
            manager=MemberNode(profile=manager) if manager else None,
            members=members
        )

    def _member_node(
        self,
        profile: Profile,
        snap: HierarchySnapshot,
        level: int,
        ancestors: frozenset
    ) -> MemberNode:
        node = MemberNode(profile=profile, level=level)
        reports = self._reports_of(profile, snap)
        if not reports:
            return node

        if level + 1 >= self.max_depth:
            self._diagnostics.record(
                DiagnosticCategory.DEPTH_LIMIT,
                "Depth limit reached; subordinates omitted",
                source="hierarchy",
                severity=DiagnosticSeverity.INFO,
                profile_id=profile.id,
                max_depth=self.max_depth
            )
            return node

        path = ancestors | {profile.id}
        for report in reports:
            if report.id in path:
                self._diagnostics.record(
                    DiagnosticCategory.CYCLE_DETECTED,
                    "Profile would become its own ancestor; branch cut",
                    source="hierarchy",
                    profile_id=report.id,
                    manager_id=profile.id
                )
                continue
            node.subordinates.append(self._member_node(report, snap, level + 1, path))
        return node

    def _reports_of(self, manager: Profile, snap: HierarchySnapshot) -> list[Profile]:
        """
        Members of teams managed by `manager`, plus linked reports.

        When a profile's manager linkage and its team membership name
        different managers, membership wins and the linkage is ignored.
        """
        reports, seen = [], {manager.id}
        for team in snap.teams_managed_by(manager.id):
            for profile in self._team_members(team, manager, snap):
                if profile.id not in seen:
                    seen.add(profile.id)
                    reports.append(profile)

        if not self.use_manager_linkage:
            return reports

        for profile in snap.linked_reports(manager.id):
            if profile.id in seen:
                continue
            team_managers = snap.membership_managers(profile.id)
            if team_managers and manager.id not in team_managers:
                self._diagnostics.record(
                    DiagnosticCategory.HIERARCHY_INCONSISTENCY,
                    "Manager linkage disagrees with team membership; linkage ignored",
                    source="profiles",
                    profile_id=profile.id,
                    manager_id=manager.id,
                    team_managers=sorted(team_managers)
                )
                continue
            seen.add(profile.id)
            reports.append(profile)
        return reports

    def _team_members(
        self,
        team: Team,
        manager: Optional[Profile],
        snap: HierarchySnapshot
    ) -> list[Profile]:
        """Profiles with a membership row for the team, manager excluded."""
        members, seen = [], set()
        for membership in snap.memberships_of(team.id):
            if membership.user_id in seen:
                continue
            seen.add(membership.user_id)

            profile = snap.profile(membership.user_id)
            if profile is None:
                self._diagnostics.record(
                    DiagnosticCategory.HIERARCHY_INCONSISTENCY,
                    "Membership references a missing profile",
                    source="team_members",
                    team_id=team.id,
                    user_id=membership.user_id
                )
                continue
            if manager is not None and profile.id == manager.id:
                continue
            if manager is None and profile.matches(team.manager):
                continue
            members.append(profile)
        return members

    # ------------------------------------------------------------------
    # Reporting structure
    # ------------------------------------------------------------------

    def reporting_structure(self, profile_id: str) -> Optional[ReportingStructure]:
        """
        A profile's manager and direct reports by manager linkage.

        Returns None when the profile itself cannot be loaded; a missing
        manager or failed report lookup leaves that part empty.
        """
        profiles = self._safe_fetch("profile", lambda: self._gateway.fetch_profiles(ids=[profile_id]))
        if not profiles:
            self._notifications.error("Failed to load reporting structure")
            return None
        profile = profiles[0]

        manager = None
        if profile.manager_id:
            managers = self._safe_fetch(
                "manager", lambda: self._gateway.fetch_profiles(ids=[profile.manager_id])
            )
            manager = managers[0] if managers else None

        reports = self._safe_fetch(
            "direct reports", lambda: self._gateway.fetch_profiles(manager_id=profile_id)
        )
        return ReportingStructure(
            profile=profile,
            manager=manager,
            direct_reports=[r for r in reports if r.id != profile_id]
        )
