"""
Permission system for role-based access control (RBAC).

Defines team roles, resources, actions and the permission matrix.
Ownership of a single project is checked separately by the project
actions: a project owner may manage their project even as a MEMBER.
"""

from enum import Enum
from typing import Dict, Set, Tuple


class TeamRole(str, Enum):
    """Roles for team members"""
    OWNER = "OWNER"      # Exactly one per team
    ADMIN = "ADMIN"      # Manages members and every project
    MEMBER = "MEMBER"    # Works on projects and issues


class Resource(str, Enum):
    """Resources that can be accessed"""
    TEAM = "team"
    TEAM_MEMBER = "team_member"
    INVITE = "invite"
    PROJECT = "project"
    LABEL = "label"
    CUSTOM_STATUS = "custom_status"
    ISSUE = "issue"
    COMMENT = "comment"


class Action(str, Enum):
    """Actions that can be performed on resources"""
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    INVITE = "invite"
    REMOVE = "remove"
    MANAGE = "manage"


# Everything a plain member can do
_MEMBER_PERMISSIONS: Set[Tuple[Resource, Action]] = {
    (Resource.TEAM, Action.READ),
    (Resource.TEAM_MEMBER, Action.READ),
    (Resource.PROJECT, Action.READ),
    (Resource.PROJECT, Action.CREATE),
    (Resource.LABEL, Action.READ),
    (Resource.LABEL, Action.CREATE),
    (Resource.LABEL, Action.UPDATE),
    (Resource.LABEL, Action.DELETE),
    (Resource.CUSTOM_STATUS, Action.READ),
    (Resource.ISSUE, Action.READ),
    (Resource.ISSUE, Action.CREATE),
    (Resource.ISSUE, Action.UPDATE),
    (Resource.ISSUE, Action.DELETE),
    (Resource.COMMENT, Action.READ),
    (Resource.COMMENT, Action.CREATE),
}

_ADMIN_PERMISSIONS: Set[Tuple[Resource, Action]] = _MEMBER_PERMISSIONS | {
    # Team settings
    (Resource.TEAM, Action.UPDATE),
    # Member management
    (Resource.TEAM_MEMBER, Action.INVITE),
    (Resource.TEAM_MEMBER, Action.REMOVE),
    (Resource.INVITE, Action.READ),
    (Resource.INVITE, Action.DELETE),
    # Any project in the team
    (Resource.PROJECT, Action.UPDATE),
    (Resource.PROJECT, Action.DELETE),
    (Resource.CUSTOM_STATUS, Action.MANAGE),
}

# Permission matrix for team roles
ROLE_PERMISSIONS: Dict[TeamRole, Set[Tuple[Resource, Action]]] = {
    TeamRole.OWNER: _ADMIN_PERMISSIONS | {
        (Resource.TEAM, Action.DELETE),
        (Resource.TEAM_MEMBER, Action.MANAGE),  # role changes, ownership transfer
    },
    TeamRole.ADMIN: _ADMIN_PERMISSIONS,
    TeamRole.MEMBER: _MEMBER_PERMISSIONS,
}


def has_permission(role: TeamRole, resource: Resource, action: Action) -> bool:
    """
    Check if a role has permission to perform an action on a resource.

    Args:
        role: Team role (OWNER, ADMIN, MEMBER) or its string value
        resource: Resource being accessed
        action: Action being performed

    Returns:
        True if permission is granted, False otherwise
    """
    try:
        role = TeamRole(role)
    except ValueError:
        return False
    return (resource, action) in ROLE_PERMISSIONS.get(role, set())


def get_role_permissions(role: TeamRole) -> Set[Tuple[Resource, Action]]:
    return ROLE_PERMISSIONS.get(role, set())


def is_admin_role(role: TeamRole) -> bool:
    """OWNER or ADMIN"""
    return role in (TeamRole.OWNER, TeamRole.ADMIN, "OWNER", "ADMIN")


def can_manage_members(role: TeamRole) -> bool:
    return has_permission(role, Resource.TEAM_MEMBER, Action.REMOVE)


def can_delete_team(role: TeamRole) -> bool:
    return has_permission(role, Resource.TEAM, Action.DELETE)


def can_change_roles(role: TeamRole) -> bool:
    return has_permission(role, Resource.TEAM_MEMBER, Action.MANAGE)
