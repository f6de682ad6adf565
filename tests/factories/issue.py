"""
Issue and comment factories.
"""

import factory
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.models.comment import Comment
from vibe.models.issue import Issue


class IssueFactory(factory.Factory):
    """
    Factory for Issue model.

    Position defaults to 0; pass explicit positions when a test depends on
    column order.
    """

    class Meta:
        model = Issue

    title = factory.Faker("sentence", nb_words=5)
    description = factory.Faker("paragraph")
    status = "BACKLOG"
    priority = "MEDIUM"
    position = 0
    project_id = None
    creator_id = None

    @classmethod
    async def create_async(cls, db_session: AsyncSession, **kwargs) -> Issue:
        for field in ("project_id", "creator_id"):
            if kwargs.get(field) is None:
                raise ValueError(f"{field} is required for IssueFactory")
        instance = cls.build(**kwargs)
        db_session.add(instance)
        await db_session.flush()
        return instance


class CommentFactory(factory.Factory):
    class Meta:
        model = Comment

    content = factory.Faker("sentence")
    issue_id = None
    author_id = None

    @classmethod
    async def create_async(cls, db_session: AsyncSession, **kwargs) -> Comment:
        instance = cls.build(**kwargs)
        db_session.add(instance)
        await db_session.flush()
        return instance
