"""
Data factories for test data generation.

Factories use factory-boy to create realistic test data with sensible defaults.
All factories support async creation via create_async() method.

Usage:
    from tests.factories import UserFactory, TeamFactory

    user = await UserFactory.create_async(db_session, email="custom@test.com")
    team = await TeamFactory.create_with_owner_async(db_session, owner=user)
"""

from tests.factories.user import UserFactory
from tests.factories.team import TeamFactory
from tests.factories.team_member import TeamMemberFactory
from tests.factories.project import ProjectFactory, LabelFactory, CustomStatusFactory
from tests.factories.issue import IssueFactory, CommentFactory

__all__ = [
    "UserFactory",
    "TeamFactory",
    "TeamMemberFactory",
    "ProjectFactory",
    "LabelFactory",
    "CustomStatusFactory",
    "IssueFactory",
    "CommentFactory",
]
