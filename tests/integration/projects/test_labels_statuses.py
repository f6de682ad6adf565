"""
Integration tests for labels and custom statuses.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.models.issue import Issue
from tests.factories import CustomStatusFactory, IssueFactory, LabelFactory


@pytest.mark.asyncio
class TestLabels:

    async def test_member_creates_label(self, client: AsyncClient, project, member, member_auth_headers):
        response = await client.post(
            f"/api/projects/{project.id}/labels", json={"name": "bug", "color": "#EF4444"}, headers=member_auth_headers
        )

        assert response.status_code == 201
        assert response.json()["data"]["name"] == "bug"

    async def test_duplicate_name_is_case_insensitive(self, client: AsyncClient, db_session: AsyncSession, project, auth_headers):
        await LabelFactory.create_async(db_session, project_id=project.id, name="Bug")
        await db_session.commit()

        response = await client.post(
            f"/api/projects/{project.id}/labels", json={"name": "bug", "color": "#EF4444"}, headers=auth_headers
        )

        assert response.status_code == 409
        assert response.json()["error"] == "A label with this name already exists"

    async def test_invalid_color(self, client: AsyncClient, project, auth_headers):
        response = await client.post(
            f"/api/projects/{project.id}/labels", json={"name": "bug", "color": "red"}, headers=auth_headers
        )

        assert response.status_code == 422

    async def test_rename_and_delete(self, client: AsyncClient, db_session: AsyncSession, project, auth_headers):
        label = await LabelFactory.create_async(db_session, project_id=project.id, name="old")
        await db_session.commit()

        renamed = await client.patch(f"/api/labels/{label.id}", json={"name": "new"}, headers=auth_headers)
        assert renamed.json()["data"]["name"] == "new"

        deleted = await client.delete(f"/api/labels/{label.id}", headers=auth_headers)
        assert deleted.status_code == 200

        listing = await client.get(f"/api/projects/{project.id}/labels", headers=auth_headers)
        assert listing.json()["data"] == []


@pytest.mark.asyncio
class TestCustomStatuses:

    async def test_positions_append(self, client: AsyncClient, project, auth_headers):
        first = await client.post(f"/api/projects/{project.id}/statuses", json={"name": "Review"}, headers=auth_headers)
        second = await client.post(
            f"/api/projects/{project.id}/statuses", json={"name": "QA", "wip_limit": 3}, headers=auth_headers
        )

        assert first.json()["data"]["position"] == 0
        assert first.json()["data"]["color"] == "#6B7280"
        assert second.json()["data"]["position"] == 1
        assert second.json()["data"]["wip_limit"] == 3

    async def test_member_cannot_manage(self, client: AsyncClient, project, member, member_auth_headers):
        response = await client.post(
            f"/api/projects/{project.id}/statuses", json={"name": "Review"}, headers=member_auth_headers
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Only project owner or team admin can manage custom statuses"

    async def test_wip_limit_set_and_cleared(self, client: AsyncClient, db_session: AsyncSession, project, auth_headers):
        status = await CustomStatusFactory.create_async(db_session, project_id=project.id)
        await db_session.commit()

        limited = await client.put(f"/api/statuses/{status.id}/wip-limit", json={"wip_limit": 2}, headers=auth_headers)
        cleared = await client.put(f"/api/statuses/{status.id}/wip-limit", json={"wip_limit": None}, headers=auth_headers)

        assert limited.json()["data"]["wip_limit"] == 2
        assert cleared.json()["data"]["wip_limit"] is None

    async def test_delete_moves_issues_to_backlog(
        self, client: AsyncClient, db_session: AsyncSession, project, user, auth_headers
    ):
        status = await CustomStatusFactory.create_async(db_session, project_id=project.id)
        issue = await IssueFactory.create_async(
            db_session, project_id=project.id, creator_id=user.id, status="IN_PROGRESS", custom_status_id=status.id
        )
        await db_session.commit()

        response = await client.delete(f"/api/statuses/{status.id}", headers=auth_headers)
        assert response.status_code == 200

        refreshed = (await db_session.execute(
            select(Issue).where(Issue.id == issue.id).execution_options(populate_existing=True)
        )).scalar_one()
        assert refreshed.status == "BACKLOG"
        assert refreshed.custom_status_id is None
