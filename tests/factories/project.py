"""
Project, label and custom status factories.
"""

import factory
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.models.custom_status import CustomStatus
from vibe.models.label import Label
from vibe.models.project import Project


class _AsyncFactory(factory.Factory):
    class Meta:
        abstract = True

    _required = ()

    @classmethod
    async def create_async(cls, db_session: AsyncSession, **kwargs):
        for field in cls._required:
            if kwargs.get(field) is None:
                raise ValueError(f"{field} is required for {cls.__name__}")
        instance = cls.build(**kwargs)
        db_session.add(instance)
        await db_session.flush()
        return instance


class ProjectFactory(_AsyncFactory):
    class Meta:
        model = Project

    _required = ("team_id", "owner_id")

    name = factory.Faker("bs")
    description = factory.Faker("sentence")
    is_archived = False
    team_id = None
    owner_id = None


class LabelFactory(_AsyncFactory):
    class Meta:
        model = Label

    _required = ("project_id",)

    name = factory.Sequence(lambda n: f"label-{n}")
    color = "#EF4444"
    project_id = None


class CustomStatusFactory(_AsyncFactory):
    class Meta:
        model = CustomStatus

    _required = ("project_id",)

    name = factory.Sequence(lambda n: f"Column {n}")
    color = "#6B7280"
    position = 0
    wip_limit = None
    project_id = None
