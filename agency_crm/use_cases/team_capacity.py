"""
Team Capacity

Whether a manager can add another member to their team, given the member
limit of their highest manager role. Every failure is reported in the
result instead of raised, so callers can show it inline.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from ..core.roles import Role, get_team_limit, highest_manager_role
from ..data.gateway import DataGateway, GatewayError

logger = logging.getLogger(__name__)


@dataclass
class TeamCapacity:
    """Result of a capacity check. `limit` None means unlimited."""
    can_add: bool = False
    current_count: int = 0
    limit: Optional[int] = 0
    role: Optional[Role] = None
    error: Optional[str] = None


class TeamCapacityUseCase:
    """Checks team member limits against the backend."""

    def __init__(self, gateway: DataGateway):
        self._gateway = gateway

    def can_add_member(self, manager_id: str) -> TeamCapacity:
        try:
            roles = self._gateway.fetch_user_roles([manager_id]).get(manager_id, set())
        except GatewayError as e:
            logger.error("Error fetching manager roles: %s", e)
            return TeamCapacity(error="Error fetching manager roles")

        role = highest_manager_role(roles)
        if role is None:
            return TeamCapacity(error="User does not have manager privileges")

        try:
            manager = self._gateway.fetch_profile(manager_id)
        except GatewayError as e:
            logger.error("Error fetching manager profile: %s", e)
            manager = None
        if manager is None:
            return TeamCapacity(role=role, error="Manager profile not found")

        # Team manager may be stored as an email (any case) or a profile id
        try:
            teams = [t for t in self._gateway.fetch_teams() if manager.matches(t.manager)]
        except GatewayError as e:
            logger.error("Error fetching team for %s: %s", manager_id, e)
            teams = []
        if not teams:
            return TeamCapacity(role=role, error="Team not found for manager")

        try:
            memberships = self._gateway.fetch_memberships(team_ids=[teams[0].id])
        except GatewayError as e:
            logger.error("Error fetching team members: %s", e)
            return TeamCapacity(role=role, error="Error fetching team members")

        current = len(memberships)
        limit = get_team_limit(role)
        return TeamCapacity(
            can_add=limit is None or current < limit,
            current_count=current,
            limit=limit,
            role=role
        )

    def can_add_member_by_email(self, manager_email: str) -> TeamCapacity:
        """Same check, starting from the manager's email."""
        try:
            profiles = self._gateway.fetch_profiles(email=manager_email)
        except GatewayError as e:
            logger.error("Error checking team limits by email: %s", e)
            profiles = []
        if not profiles:
            return TeamCapacity(error="Manager not found")
        return self.can_add_member(profiles[0].id)
