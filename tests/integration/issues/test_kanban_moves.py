"""
Integration tests for status changes, Kanban moves and the board.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.models.issue import Issue
from tests.factories import CustomStatusFactory, IssueFactory


async def _column(db_session: AsyncSession, project_id: int, status: str, custom_status_id=None):
    query = select(Issue).where(Issue.project_id == project_id, Issue.status == status)
    if custom_status_id is None:
        query = query.where(Issue.custom_status_id.is_(None))
    else:
        query = query.where(Issue.custom_status_id == custom_status_id)
    result = await db_session.execute(
        query.order_by(Issue.position.asc()).execution_options(populate_existing=True)
    )
    return [(issue.id, issue.position) for issue in result.scalars().all()]


@pytest.mark.asyncio
class TestChangeStatus:

    async def test_moves_to_end_of_target_column(self, client: AsyncClient, db_session: AsyncSession,
                                                 project, user, auth_headers):
        await IssueFactory.create_async(
            db_session, project_id=project.id, creator_id=user.id, status="IN_PROGRESS", position=0
        )
        issue = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        response = await client.put(f"/api/issues/{issue.id}/status", json={"status": "IN_PROGRESS"},
                                    headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "IN_PROGRESS"
        assert response.json()["data"]["position"] == 1

        activity = await client.get(f"/api/issues/{issue.id}/activity", headers=auth_headers)
        entry = activity.json()["data"][0]
        assert entry["type"] == "STATUS_CHANGED"
        assert entry["details"]["from"] == "BACKLOG"
        assert entry["details"]["to"] == "IN_PROGRESS"

    async def test_non_member_cannot_change_status(self, client: AsyncClient, db_session: AsyncSession,
                                                   project, user, other_auth_headers):
        issue = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        response = await client.put(f"/api/issues/{issue.id}/status", json={"status": "DONE"},
                                    headers=other_auth_headers)

        assert response.status_code == 403
        assert response.json()["success"] is False
        assert response.json()["error"] == "You don't have access to this issue"

    async def test_unknown_status_rejected(self, client: AsyncClient, db_session: AsyncSession,
                                           project, user, auth_headers):
        issue = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        response = await client.put(f"/api/issues/{issue.id}/status", json={"status": "REVIEW"},
                                    headers=auth_headers)

        assert response.status_code == 422

    async def test_custom_status_from_another_project(self, client: AsyncClient, db_session: AsyncSession,
                                                      project, team, user, auth_headers):
        from tests.factories import ProjectFactory
        elsewhere = await ProjectFactory.create_async(db_session, team_id=team.id, owner_id=user.id)
        foreign = await CustomStatusFactory.create_async(db_session, project_id=elsewhere.id)
        issue = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        response = await client.put(
            f"/api/issues/{issue.id}/status",
            json={"status": "IN_PROGRESS", "custom_status_id": foreign.id},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Custom status not found"


@pytest.mark.asyncio
class TestMoveIssue:

    async def test_move_into_column_renumbers_contiguously(self, client: AsyncClient, db_session: AsyncSession,
                                                           project, user, auth_headers):
        column = []
        for position in (0, 1, 2):
            column.append(await IssueFactory.create_async(
                db_session, project_id=project.id, creator_id=user.id, status="IN_PROGRESS", position=position
            ))
        moving = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        response = await client.put(
            f"/api/issues/{moving.id}/move", json={"status": "IN_PROGRESS", "position": 1}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["position"] == 1
        assert await _column(db_session, project.id, "IN_PROGRESS") == [
            (column[0].id, 0), (moving.id, 1), (column[1].id, 2), (column[2].id, 3),
        ]

    async def test_reorder_within_column(self, client: AsyncClient, db_session: AsyncSession,
                                         project, user, auth_headers):
        first = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id, position=0)
        second = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id, position=1)
        third = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id, position=2)
        await db_session.commit()

        response = await client.put(
            f"/api/issues/{third.id}/move", json={"status": "BACKLOG", "position": 0}, headers=auth_headers
        )

        assert response.status_code == 200
        assert await _column(db_session, project.id, "BACKLOG") == [(third.id, 0), (first.id, 1), (second.id, 2)]

        activity = await client.get(f"/api/issues/{third.id}/activity", headers=auth_headers)
        assert activity.json()["data"][0]["type"] == "ISSUE_MOVED"
        changes = await client.get(f"/api/issues/{third.id}/changes", headers=auth_headers)
        assert changes.json()["data"] == []

    async def test_position_past_end_is_clamped(self, client: AsyncClient, db_session: AsyncSession,
                                                project, user, auth_headers):
        only = await IssueFactory.create_async(
            db_session, project_id=project.id, creator_id=user.id, status="DONE", position=0
        )
        moving = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        response = await client.put(
            f"/api/issues/{moving.id}/move", json={"status": "DONE", "position": 99}, headers=auth_headers
        )

        assert response.json()["data"]["position"] == 1
        assert await _column(db_session, project.id, "DONE") == [(only.id, 0), (moving.id, 1)]

    async def test_negative_position_rejected(self, client: AsyncClient, db_session: AsyncSession,
                                              project, user, auth_headers):
        issue = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        response = await client.put(
            f"/api/issues/{issue.id}/move", json={"status": "DONE", "position": -1}, headers=auth_headers
        )

        assert response.status_code == 422


@pytest.mark.asyncio
class TestKanbanBoard:

    async def test_board_columns(self, client: AsyncClient, db_session: AsyncSession, project, user, auth_headers):
        review = await CustomStatusFactory.create_async(
            db_session, project_id=project.id, name="Review", wip_limit=1
        )
        await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        for position in (0, 1):
            await IssueFactory.create_async(
                db_session, project_id=project.id, creator_id=user.id, status="IN_PROGRESS",
                custom_status_id=review.id, position=position,
            )
        await db_session.commit()

        response = await client.get(f"/api/projects/{project.id}/board", headers=auth_headers)

        assert response.status_code == 200
        columns = response.json()["data"]["columns"]
        assert [column["id"] for column in columns] == ["BACKLOG", "IN_PROGRESS", "DONE", f"custom:{review.id}"]
        assert [column["count"] for column in columns] == [1, 0, 0, 2]

        custom = columns[3]
        assert custom["name"] == "Review"
        assert custom["wip_limit"] == 1
        assert custom["wip_exceeded"] is True
        assert columns[0]["wip_exceeded"] is False

    async def test_wip_limit_does_not_block_moves(self, client: AsyncClient, db_session: AsyncSession,
                                                  project, user, auth_headers):
        review = await CustomStatusFactory.create_async(db_session, project_id=project.id, wip_limit=1)
        await IssueFactory.create_async(
            db_session, project_id=project.id, creator_id=user.id, status="IN_PROGRESS", custom_status_id=review.id
        )
        issue = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        response = await client.put(
            f"/api/issues/{issue.id}/move",
            json={"status": "IN_PROGRESS", "custom_status_id": review.id, "position": 0},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["custom_status_id"] == review.id
