"""
Roles, Manager Tiers and Team Limits

Role-based administration rules:
- Role hierarchy from lowest to highest permission level
- Manager tier permissions (hierarchy visibility, maximum team depth)
- Team member limits per manager role
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class Role(str, Enum):
    """User roles as stored in the `user_roles` table."""
    AGENT = "agent"
    AGENT_PRO = "agent_pro"
    MANAGER = "manager"
    MANAGER_PRO = "manager_pro"
    MANAGER_PRO_GOLD = "manager_pro_gold"
    MANAGER_PRO_PLATINUM = "manager_pro_platinum"
    BETA_USER = "beta_user"
    SYSTEM_ADMIN = "system_admin"


ROLE_HIERARCHY = [
    Role.AGENT,
    Role.AGENT_PRO,
    Role.MANAGER,
    Role.MANAGER_PRO,
    Role.MANAGER_PRO_GOLD,
    Role.MANAGER_PRO_PLATINUM,
    Role.BETA_USER,
    Role.SYSTEM_ADMIN,
]

MANAGER_ROLES = frozenset({
    Role.MANAGER,
    Role.MANAGER_PRO,
    Role.MANAGER_PRO_GOLD,
    Role.MANAGER_PRO_PLATINUM,
})

UNLIMITED = 999


def parse_roles(values: Iterable) -> frozenset:
    """Convert raw role strings to Role members, dropping unknown values."""
    roles = set()
    for value in values or ():
        try:
            roles.add(Role(value))
        except ValueError:
            continue
    return frozenset(roles)


def has_role(roles: Iterable, role: Role) -> bool:
    return Role(role) in parse_roles(roles)


def check_required_role(user_roles: Iterable, required_roles: Optional[Iterable] = None) -> bool:
    """
    Check whether a user holds any of the required roles.

    `system_admin` supersedes every other role. No requirement means
    access is granted.
    """
    required = set(required_roles or ())
    if not required:
        return True

    user_set = parse_roles(user_roles)
    if Role.SYSTEM_ADMIN in user_set:
        return True
    if not user_set:
        return False

    return bool(user_set & {Role(r) for r in required})


def highest_role(user_roles: Iterable) -> Optional[Role]:
    """Highest role held according to ROLE_HIERARCHY."""
    held = parse_roles(user_roles)
    for role in reversed(ROLE_HIERARCHY):
        if role in held:
            return role
    return None


# =============================================================================
# Manager tiers
# =============================================================================

@dataclass(frozen=True)
class ManagerTierPermissions:
    """What a manager tier can see and do with its team hierarchy."""
    can_view_hierarchy: bool = False
    can_view_subteams: bool = False
    can_view_advanced_metrics: bool = False
    can_export_team_data: bool = False
    can_manage_subteams: bool = False
    max_team_depth: int = 0
    max_members_per_team: int = 0


NO_PERMISSIONS = ManagerTierPermissions()

DEFAULT_MANAGER_PERMISSIONS = {
    Role.MANAGER_PRO: ManagerTierPermissions(
        max_team_depth=1,  # Only direct team
        max_members_per_team=10,
    ),
    Role.MANAGER_PRO_GOLD: ManagerTierPermissions(
        can_view_hierarchy=True,
        can_view_subteams=True,
        can_view_advanced_metrics=True,
        can_export_team_data=True,
        max_team_depth=2,  # Team and direct subteams
        max_members_per_team=25,
    ),
    Role.MANAGER_PRO_PLATINUM: ManagerTierPermissions(
        can_view_hierarchy=True,
        can_view_subteams=True,
        can_view_advanced_metrics=True,
        can_export_team_data=True,
        can_manage_subteams=True,
        max_team_depth=UNLIMITED,
        max_members_per_team=UNLIMITED,
    ),
}


def get_manager_permissions(role: Optional[Role]) -> ManagerTierPermissions:
    """Tier permissions for a role. System admins get platinum."""
    if role is None:
        return NO_PERMISSIONS
    role = Role(role)
    if role is Role.SYSTEM_ADMIN:
        return DEFAULT_MANAGER_PERMISSIONS[Role.MANAGER_PRO_PLATINUM]
    return DEFAULT_MANAGER_PERMISSIONS.get(role, NO_PERMISSIONS)


def permissions_for(user_roles: Iterable) -> ManagerTierPermissions:
    """Best tier permissions across every role a user holds."""
    held = parse_roles(user_roles)
    if Role.SYSTEM_ADMIN in held:
        return get_manager_permissions(Role.SYSTEM_ADMIN)
    for role in (Role.MANAGER_PRO_PLATINUM, Role.MANAGER_PRO_GOLD, Role.MANAGER_PRO):
        if role in held:
            return get_manager_permissions(role)
    return NO_PERMISSIONS


# =============================================================================
# Team limits
# =============================================================================

TEAM_LIMITS = {
    Role.MANAGER: 5,
    Role.MANAGER_PRO: 20,
    Role.MANAGER_PRO_GOLD: 50,
    Role.MANAGER_PRO_PLATINUM: None,  # Unlimited
}


def highest_manager_role(user_roles: Iterable) -> Optional[Role]:
    held = parse_roles(user_roles)
    for role in (Role.MANAGER_PRO_PLATINUM, Role.MANAGER_PRO_GOLD,
                 Role.MANAGER_PRO, Role.MANAGER):
        if role in held:
            return role
    return None


def get_team_limit(role: Role) -> Optional[int]:
    """Member limit for a manager role; None means unlimited."""
    return TEAM_LIMITS[Role(role)]
