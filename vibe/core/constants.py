"""Domain enums shared by models, schemas and actions."""

from enum import Enum


class IssueStatus(str, Enum):
    BACKLOG = "BACKLOG"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class IssuePriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class InviteStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


class TeamActivityAction(str, Enum):
    TEAM_CREATED = "TEAM_CREATED"
    TEAM_UPDATED = "TEAM_UPDATED"
    MEMBER_INVITED = "MEMBER_INVITED"
    MEMBER_JOINED = "MEMBER_JOINED"
    MEMBER_LEFT = "MEMBER_LEFT"
    MEMBER_REMOVED = "MEMBER_REMOVED"
    ROLE_CHANGED = "ROLE_CHANGED"
    OWNERSHIP_TRANSFERRED = "OWNERSHIP_TRANSFERRED"
    INVITE_CANCELLED = "INVITE_CANCELLED"


class IssueActivityType(str, Enum):
    SUBTASK_ADDED = "SUBTASK_ADDED"
    SUBTASK_TOGGLED = "SUBTASK_TOGGLED"
    SUBTASK_DELETED = "SUBTASK_DELETED"
    STATUS_CHANGED = "STATUS_CHANGED"
    ISSUE_MOVED = "ISSUE_MOVED"


class NotificationType(str, Enum):
    ISSUE_ASSIGNED = "ISSUE_ASSIGNED"
    COMMENT_ADDED = "COMMENT_ADDED"
    ROLE_CHANGED = "ROLE_CHANGED"
    TEAM_INVITE = "TEAM_INVITE"
    DUE_DATE_APPROACHING = "DUE_DATE_APPROACHING"
    DUE_DATE_TODAY = "DUE_DATE_TODAY"


# Board order of the default Kanban columns
DEFAULT_STATUS_ORDER = (IssueStatus.BACKLOG, IssueStatus.IN_PROGRESS, IssueStatus.DONE)

PRIORITY_ORDER = (IssuePriority.URGENT, IssuePriority.HIGH, IssuePriority.MEDIUM, IssuePriority.LOW)
