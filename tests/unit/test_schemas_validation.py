"""
Unit tests for Pydantic schemas validation.

Tests schema validation without database.
"""

import pytest
from pydantic import ValidationError

from vibe.core.constants import IssuePriority, IssueStatus
from vibe.schemas.user import UserCreate, PasswordChange
from vibe.schemas.team import TeamCreate
from vibe.schemas.team_member import InviteCreate, RoleChange
from vibe.schemas.project import LabelCreate, CustomStatusCreate, WipLimitUpdate
from vibe.schemas.issue import IssueCreate, IssueMove, IssueUpdate
from vibe.schemas.comment import CommentCreate, SubtaskCreate


def _user(**overrides):
    data = {
        "name": "John Doe",
        "email": "john@example.com",
        "password": "secret123",
        "confirm_password": "secret123",
    }
    data.update(overrides)
    return data


class TestUserSchemas:
    """Test User-related schemas."""

    def test_user_create_valid(self):
        user = UserCreate(**_user())

        assert user.name == "John Doe"
        assert user.email == "john@example.com"

    def test_user_create_invalid_email(self):
        with pytest.raises(ValidationError) as exc_info:
            UserCreate(**_user(email="not-an-email"))

        assert any("email" in str(error).lower() for error in exc_info.value.errors())

    def test_password_too_short(self):
        with pytest.raises(ValidationError):
            UserCreate(**_user(password="12345", confirm_password="12345"))

    def test_passwords_must_match(self):
        with pytest.raises(ValidationError) as exc_info:
            UserCreate(**_user(confirm_password="different"))

        assert "Passwords do not match" in str(exc_info.value)

    def test_name_is_stripped_and_required(self):
        assert UserCreate(**_user(name="  Jane  ")).name == "Jane"
        with pytest.raises(ValidationError):
            UserCreate(**_user(name="   "))

    def test_password_change_confirmation(self):
        with pytest.raises(ValidationError):
            PasswordChange(current_password="old", new_password="newpass1", confirm_password="newpass2")


class TestTeamSchemas:
    """Test Team-related schemas."""

    def test_team_name_length(self):
        assert TeamCreate(name="x" * 50).name == "x" * 50
        with pytest.raises(ValidationError):
            TeamCreate(name="x" * 51)
        with pytest.raises(ValidationError):
            TeamCreate(name="")

    def test_invite_role_cannot_be_owner(self):
        assert InviteCreate(email="a@example.com").role == "MEMBER"
        with pytest.raises(ValidationError):
            InviteCreate(email="a@example.com", role="OWNER")

    def test_role_change_accepts_owner(self):
        assert RoleChange(role="OWNER").role == "OWNER"
        with pytest.raises(ValidationError):
            RoleChange(role="VIEWER")


class TestProjectSchemas:
    """Test project, label and custom status schemas."""

    def test_label_color_must_be_hex(self):
        assert LabelCreate(name="bug", color="#a1B2c3").color == "#a1B2c3"
        for color in ("red", "#FFF", "123456", "#GGGGGG"):
            with pytest.raises(ValidationError):
                LabelCreate(name="bug", color=color)

    def test_custom_status_defaults(self):
        status = CustomStatusCreate(name="Review")
        assert status.color == "#6B7280"
        assert status.wip_limit is None

    def test_wip_limit_must_be_positive(self):
        assert WipLimitUpdate(wip_limit=None).wip_limit is None
        with pytest.raises(ValidationError):
            WipLimitUpdate(wip_limit=0)


class TestIssueSchemas:
    """Test issue, comment and subtask schemas."""

    def test_issue_defaults(self):
        issue = IssueCreate(title="Login fails")
        assert issue.priority == IssuePriority.MEDIUM
        assert issue.label_ids == []

    def test_title_length_limit(self):
        assert IssueCreate(title="x" * 200).title == "x" * 200
        with pytest.raises(ValidationError):
            IssueCreate(title="x" * 201)

    def test_description_length_limit(self):
        with pytest.raises(ValidationError):
            IssueCreate(title="ok", description="x" * 5001)

    def test_unknown_priority_rejected(self):
        with pytest.raises(ValidationError):
            IssueCreate(title="ok", priority="CRITICAL")

    def test_update_tracks_only_sent_fields(self):
        update = IssueUpdate(title="New title")
        assert update.model_dump(exclude_unset=True) == {"title": "New title"}

    def test_move_position_cannot_be_negative(self):
        assert IssueMove(status=IssueStatus.DONE, position=0).position == 0
        with pytest.raises(ValidationError):
            IssueMove(status=IssueStatus.DONE, position=-1)

    def test_comment_bounds(self):
        with pytest.raises(ValidationError):
            CommentCreate(content="")
        with pytest.raises(ValidationError):
            CommentCreate(content="x" * 10001)

    def test_subtask_title_bounds(self):
        with pytest.raises(ValidationError):
            SubtaskCreate(title="x" * 201)
