"""
Tests for the team hierarchy builder
- Forest assembly from profiles, teams and memberships
- Cycle and depth guards
- Degraded lookups and inconsistencies
- Reporting structure by manager linkage
"""

import pytest

from agency_crm.core.notifications import NotificationCenter
from agency_crm.data.diagnostics import DiagnosticCategory
from agency_crm.data.gateway import PROFILES, TEAM_MEMBERS, TEAMS, USER_ROLES, InMemoryGateway
from agency_crm.hierarchy import TeamHierarchyBuilder


def names(nodes):
    return [n.id for n in nodes]


def count(diagnostics, category):
    return len(diagnostics.get_by_category(category))


@pytest.fixture
def builder(gateway):
    return TeamHierarchyBuilder(gateway)


class TestForest:

    def test_top_level_teams(self, builder):
        forest = builder.build_forest()

        assert [team.id for team in forest] == ["t-m", "t-p"]

    def test_nested_team_attached_as_subordinates(self, builder):
        team = builder.build_forest()[0]

        assert team.manager.id == "m"
        assert names(team.members) == ["a", "b"]
        a, b = team.members
        assert names(a.subordinates) == ["c"]
        assert a.subordinates[0].level == 1
        assert b.subordinates == []

    def test_every_profile_appears_once(self, builder):
        team = builder.build_forest()[0]

        ids = [node.id for node in team.walk()]
        assert sorted(ids) == ["a", "b", "c", "m"]

    def test_manager_excluded_from_members(self, gateway):
        gateway.insert(TEAM_MEMBERS, {"team_id": "t-m", "user_id": "m", "role": "manager"})

        team = TeamHierarchyBuilder(gateway).build_team("t-m")

        assert names(team.members) == ["a", "b"]

    def test_manager_resolved_case_insensitively(self, builder):
        team = builder.build_team("t-a")

        assert team.manager.id == "a"
        assert names(team.members) == ["c"]

    def test_unknown_team(self, builder):
        assert builder.build_team("missing") is None

    def test_flat_teams(self, builder):
        flat = builder.flat_teams()

        assert [team.id for team in flat] == ["t-m", "t-a", "t-p"]
        assert all(member.subordinates == [] for team in flat for member in team.members)

    def test_max_depth_must_be_positive(self, gateway):
        with pytest.raises(ValueError):
            TeamHierarchyBuilder(gateway, max_depth=0)

    def test_team_nested_by_linkage_is_not_top_level(self):
        # Ana heads her own team but reports to Ben by linkage only
        gateway = InMemoryGateway({
            PROFILES: [{"id": "m"}, {"id": "b"}, {"id": "a", "manager_id": "b"}, {"id": "c"}],
            TEAMS: [{"id": "t1", "manager": "m"}, {"id": "t3", "manager": "a"}],
            TEAM_MEMBERS: [
                {"team_id": "t1", "user_id": "b"},
                {"team_id": "t3", "user_id": "c"},
            ],
        })

        forest = TeamHierarchyBuilder(gateway).build_forest()

        assert [team.id for team in forest] == ["t1"]
        assert [node.id for node in forest[0].walk()] == ["m", "b", "a", "c"]

    def test_linkage_disabled_keeps_team_top_level(self):
        gateway = InMemoryGateway({
            PROFILES: [{"id": "m"}, {"id": "b"}, {"id": "a", "manager_id": "b"}, {"id": "c"}],
            TEAMS: [{"id": "t1", "manager": "m"}, {"id": "t3", "manager": "a"}],
            TEAM_MEMBERS: [
                {"team_id": "t1", "user_id": "b"},
                {"team_id": "t3", "user_id": "c"},
            ],
        })

        forest = TeamHierarchyBuilder(gateway, use_manager_linkage=False).build_forest()

        assert [team.id for team in forest] == ["t1", "t3"]
        assert [node.id for team in forest for node in team.walk()] == ["m", "b", "a", "c"]

    def test_team_under_teamless_superior_promoted(self):
        # Xavier is Ana's linked manager but belongs to no team
        gateway = InMemoryGateway({
            PROFILES: [{"id": "x"}, {"id": "a", "manager_id": "x"}, {"id": "c"}],
            TEAMS: [{"id": "t3", "manager": "a"}],
            TEAM_MEMBERS: [{"team_id": "t3", "user_id": "c"}],
        })
        builder = TeamHierarchyBuilder(gateway)

        forest = builder.build_forest()

        assert [team.id for team in forest] == ["t3"]
        assert [node.id for node in forest[0].walk()] == ["a", "c"]
        assert count(builder.diagnostics, DiagnosticCategory.CYCLE_DETECTED) == 0

    def test_empty_notification_center_is_kept(self, gateway):
        center = NotificationCenter()

        builder = TeamHierarchyBuilder(gateway, notifications=center)

        assert builder.notifications is center


class TestManagerLookup:

    def test_members_for_manager_by_email(self, builder):
        members = builder.members_for_manager("m@agency.test")

        assert names(members) == ["a", "b"]
        assert names(members[0].subordinates) == ["c"]

    def test_members_for_manager_by_id(self, builder):
        assert names(builder.members_for_manager("p")) == ["q"]

    def test_unknown_manager_yields_empty_list(self, builder):
        assert builder.members_for_manager("nobody@agency.test") == []

    def test_manager_linkage_adds_reports(self, gateway):
        # Dee reports to Cole by linkage only, no team row
        gateway.insert(PROFILES, {"id": "d", "email": "d@agency.test", "manager_id": "c"})

        members = TeamHierarchyBuilder(gateway).members_for_manager("c")

        assert names(members) == ["d"]

    def test_stale_linkage_yields_to_membership(self, org_tables):
        # Cole's linkage still names Maria, but his team row is under Alex
        cole = next(row for row in org_tables[PROFILES] if row["id"] == "c")
        cole["manager_id"] = "m"
        builder = TeamHierarchyBuilder(InMemoryGateway(org_tables))

        members = builder.members_for_manager("m")

        assert names(members) == ["a", "b"]
        assert names(members[0].subordinates) == ["c"]
        assert [node.id for member in members for node in member.walk()] == ["a", "c", "b"]
        assert count(builder.diagnostics, DiagnosticCategory.HIERARCHY_INCONSISTENCY) == 1

    def test_manager_linkage_can_be_disabled(self, gateway):
        gateway.insert(PROFILES, {"id": "d", "email": "d@agency.test", "manager_id": "c"})

        builder = TeamHierarchyBuilder(gateway, use_manager_linkage=False)

        assert builder.members_for_manager("c") == []


class TestGuards:

    def test_team_cycle_terminates(self):
        gateway = InMemoryGateway({
            PROFILES: [{"id": "x", "email": "x@t"}, {"id": "y", "email": "y@t"}],
            TEAMS: [{"id": "tx", "manager": "x"}, {"id": "ty", "manager": "y"}],
            TEAM_MEMBERS: [
                {"team_id": "tx", "user_id": "y"},
                {"team_id": "ty", "user_id": "x"},
            ],
        })
        builder = TeamHierarchyBuilder(gateway)

        members = builder.members_for_manager("x")

        assert names(members) == ["y"]
        assert members[0].subordinates == []
        assert count(builder.diagnostics, DiagnosticCategory.CYCLE_DETECTED) == 1

    def test_team_cycle_forest_places_each_profile_once(self):
        gateway = InMemoryGateway({
            PROFILES: [{"id": "x"}, {"id": "y"}],
            TEAMS: [{"id": "tx", "manager": "x"}, {"id": "ty", "manager": "y"}],
            TEAM_MEMBERS: [
                {"team_id": "tx", "user_id": "y"},
                {"team_id": "ty", "user_id": "x"},
            ],
        })
        builder = TeamHierarchyBuilder(gateway)

        forest = builder.build_forest()

        assert [team.id for team in forest] == ["tx"]
        assert [node.id for node in forest[0].walk()] == ["x", "y"]
        assert count(builder.diagnostics, DiagnosticCategory.CYCLE_DETECTED) == 1

    def test_linkage_cycle_terminates(self):
        gateway = InMemoryGateway({
            PROFILES: [{"id": "x", "manager_id": "y"}, {"id": "y", "manager_id": "x"}],
        })
        builder = TeamHierarchyBuilder(gateway)

        members = builder.members_for_manager("x")

        assert names(members) == ["y"]
        assert members[0].subordinates == []

    def test_depth_one_yields_no_subordinates(self, gateway):
        builder = TeamHierarchyBuilder(gateway, max_depth=1)

        team = builder.build_team("t-m")

        assert names(team.members) == ["a", "b"]
        assert all(member.subordinates == [] for member in team.members)
        assert count(builder.diagnostics, DiagnosticCategory.DEPTH_LIMIT) == 1

    def test_depth_two_stops_at_second_level(self, gateway):
        gateway.insert(PROFILES, {"id": "d", "email": "d@agency.test", "manager_id": "c"})

        shallow = TeamHierarchyBuilder(gateway, max_depth=2).build_team("t-m")
        deep = TeamHierarchyBuilder(gateway).build_team("t-m")

        assert shallow.members[0].subordinates[0].subordinates == []
        assert names(deep.members[0].subordinates[0].subordinates) == ["d"]
        assert deep.members[0].subordinates[0].subordinates[0].level == 2


class TestDegradation:

    def test_missing_profile_skipped(self, gateway):
        gateway.insert(TEAM_MEMBERS, {"team_id": "t-m", "user_id": "ghost"})
        builder = TeamHierarchyBuilder(gateway)

        team = builder.build_team("t-m")

        assert names(team.members) == ["a", "b"]
        assert count(builder.diagnostics, DiagnosticCategory.HIERARCHY_INCONSISTENCY) == 1

    def test_unresolved_team_manager(self, gateway):
        gateway.insert(TEAMS, {"id": "t-x", "name": "Orphans", "manager": "gone@agency.test"})
        gateway.insert(TEAM_MEMBERS, {"team_id": "t-x", "user_id": "q"})
        builder = TeamHierarchyBuilder(gateway)

        team = builder.build_team("t-x")

        assert team.manager is None
        assert team.manager_ref == "gone@agency.test"
        assert names(team.members) == ["q"]
        assert count(builder.diagnostics, DiagnosticCategory.HIERARCHY_INCONSISTENCY) == 1

    def test_failed_fetch_yields_empty_forest(self, org_tables):
        gateway = InMemoryGateway(org_tables, fail_tables={TEAMS})
        builder = TeamHierarchyBuilder(gateway)

        forest = builder.build_forest()

        assert forest == []
        assert count(builder.diagnostics, DiagnosticCategory.FETCH_FAILURE) == 1
        notes = builder.notifications.drain()
        assert len(notes) == 1
        assert notes[0].is_error

    def test_failed_profiles_fetch(self, org_tables):
        gateway = InMemoryGateway(org_tables, fail_tables={PROFILES})
        builder = TeamHierarchyBuilder(gateway)

        assert builder.members_for_manager("m") == []
        assert count(builder.diagnostics, DiagnosticCategory.FETCH_FAILURE) == 1

    def test_failed_roles_fetch_keeps_profiles(self, org_tables):
        gateway = InMemoryGateway(org_tables, fail_tables={USER_ROLES})
        builder = TeamHierarchyBuilder(gateway)

        team = builder.build_team("t-m")

        assert names(team.members) == ["a", "b"]
        assert count(builder.diagnostics, DiagnosticCategory.FETCH_FAILURE) == 1

    def test_malformed_profile_dropped(self, gateway):
        gateway.insert(PROFILES, {"id": "", "email": "broken@agency.test"})
        builder = TeamHierarchyBuilder(gateway)

        team = builder.build_team("t-m")

        assert names(team.members) == ["a", "b"]
        assert count(builder.diagnostics, DiagnosticCategory.MALFORMED_RECORD) == 1


class TestReportingStructure:

    def test_manager_and_reports(self, builder):
        structure = builder.reporting_structure("a")

        assert structure.profile.id == "a"
        assert structure.manager.id == "m"
        assert names(structure.direct_reports) == ["c"]

    def test_top_of_tree(self, builder):
        structure = builder.reporting_structure("m")

        assert structure.manager is None
        assert sorted(names(structure.direct_reports)) == ["a", "b"]

    def test_unknown_profile(self, builder):
        assert builder.reporting_structure("ghost") is None
        assert builder.notifications.pending[0].is_error
