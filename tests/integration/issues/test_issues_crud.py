"""
Integration tests for issue endpoints: create, read, update, delete and
the change history.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.models.notification import Notification
from tests.factories import IssueFactory, LabelFactory


@pytest.mark.asyncio
class TestCreateIssue:

    async def test_create_lands_at_bottom_of_backlog(self, client: AsyncClient, db_session: AsyncSession,
                                                     project, user, auth_headers):
        await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id, position=0)
        await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id, position=1)
        await db_session.commit()

        response = await client.post(
            f"/api/issues/project/{project.id}", json={"title": "Fix login", "priority": "HIGH"}, headers=auth_headers
        )

        assert response.status_code == 201
        issue = response.json()["data"]
        assert issue["status"] == "BACKLOG"
        assert issue["priority"] == "HIGH"
        assert issue["position"] == 2
        assert issue["creator_id"] == user.id

    async def test_title_over_200_characters_rejected(self, client: AsyncClient, project, auth_headers):
        response = await client.post(
            f"/api/issues/project/{project.id}", json={"title": "x" * 201}, headers=auth_headers
        )

        assert response.status_code == 422
        assert response.json()["success"] is False

    async def test_assignee_must_be_team_member(self, client: AsyncClient, project, other_user, auth_headers):
        response = await client.post(
            f"/api/issues/project/{project.id}",
            json={"title": "Task", "assignee_id": other_user.id},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Assignee is not a team member"

    async def test_labels_from_other_project_rejected(self, client: AsyncClient, db_session: AsyncSession,
                                                      project, team, user, auth_headers):
        from tests.factories import ProjectFactory
        elsewhere = await ProjectFactory.create_async(db_session, team_id=team.id, owner_id=user.id)
        foreign = await LabelFactory.create_async(db_session, project_id=elsewhere.id)
        await db_session.commit()

        response = await client.post(
            f"/api/issues/project/{project.id}",
            json={"title": "Task", "label_ids": [foreign.id]},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid labels for this project"

    async def test_assigning_someone_else_notifies_them(self, client: AsyncClient, db_session: AsyncSession,
                                                        project, member, auth_headers):
        response = await client.post(
            f"/api/issues/project/{project.id}",
            json={"title": "Write docs", "assignee_id": member.id},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["assignee"]["id"] == member.id

        result = await db_session.execute(select(Notification).where(Notification.user_id == member.id))
        notifications = result.scalars().all()
        assert len(notifications) == 1
        assert notifications[0].type == "ISSUE_ASSIGNED"
        assert notifications[0].message == "Owner User assigned you to: Write docs"

    async def test_self_assignment_is_silent(self, client: AsyncClient, db_session: AsyncSession,
                                             project, user, auth_headers):
        await client.post(
            f"/api/issues/project/{project.id}", json={"title": "Mine", "assignee_id": user.id}, headers=auth_headers
        )

        result = await db_session.execute(select(Notification).where(Notification.user_id == user.id))
        assert result.scalars().all() == []


@pytest.mark.asyncio
class TestReadIssues:

    async def test_detail_counts(self, client: AsyncClient, project, user, auth_headers):
        created = await client.post(f"/api/issues/project/{project.id}", json={"title": "Counted"}, headers=auth_headers)
        issue_id = created.json()["data"]["id"]
        await client.post(f"/api/issues/{issue_id}/subtasks", json={"title": "one"}, headers=auth_headers)
        second = await client.post(f"/api/issues/{issue_id}/subtasks", json={"title": "two"}, headers=auth_headers)
        await client.post(f"/api/subtasks/{second.json()['data']['id']}/toggle", headers=auth_headers)
        await client.post(f"/api/issues/{issue_id}/comments", json={"content": "hi"}, headers=auth_headers)

        response = await client.get(f"/api/issues/{issue_id}", headers=auth_headers)

        data = response.json()["data"]
        assert data["creator"]["id"] == user.id
        assert data["subtask_count"] == 2
        assert data["completed_subtask_count"] == 1
        assert data["comment_count"] == 1

    async def test_filters(self, client: AsyncClient, db_session: AsyncSession, project, user, member, auth_headers):
        label = await LabelFactory.create_async(db_session, project_id=project.id, name="bug")
        urgent = await IssueFactory.create_async(
            db_session, project_id=project.id, creator_id=user.id, title="Crash on save", priority="URGENT",
            labels=[label],
        )
        assigned = await IssueFactory.create_async(
            db_session, project_id=project.id, creator_id=user.id, title="Polish", assignee_id=member.id,
            status="IN_PROGRESS",
        )
        await db_session.commit()

        async def ids(params):
            response = await client.get(f"/api/issues/project/{project.id}", params=params, headers=auth_headers)
            return [issue["id"] for issue in response.json()["data"]]

        assert await ids({"priority": "URGENT"}) == [urgent.id]
        assert await ids({"status": "IN_PROGRESS"}) == [assigned.id]
        assert await ids({"assignee_id": member.id}) == [assigned.id]
        assert await ids({"label_ids": [label.id]}) == [urgent.id]
        assert await ids({"search": "crash"}) == [urgent.id]

    async def test_search_filter_treats_wildcards_literally(self, client: AsyncClient, db_session: AsyncSession,
                                                            project, user, auth_headers):
        await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id,
                                        title="Fix login", description="Session expires early")
        discount = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id,
                                                   title="Apply 10% discount", description="Checkout page")
        await db_session.commit()

        async def ids(term):
            response = await client.get(f"/api/issues/project/{project.id}", params={"search": term},
                                        headers=auth_headers)
            return [issue["id"] for issue in response.json()["data"]]

        assert await ids("%") == [discount.id]
        assert await ids("_") == []

    async def test_deleted_issue_is_gone(self, client: AsyncClient, db_session: AsyncSession, project, user, auth_headers):
        issue = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        deleted = await client.delete(f"/api/issues/{issue.id}", headers=auth_headers)
        assert deleted.status_code == 200

        detail = await client.get(f"/api/issues/{issue.id}", headers=auth_headers)
        listing = await client.get(f"/api/issues/project/{project.id}", headers=auth_headers)
        assert detail.status_code == 404
        assert detail.json()["error"] == "Issue not found"
        assert listing.json()["data"] == []

    async def test_non_member_is_forbidden(self, client: AsyncClient, db_session: AsyncSession, project, user,
                                           other_auth_headers):
        issue = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        response = await client.get(f"/api/issues/{issue.id}", headers=other_auth_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "You don't have access to this issue"


@pytest.mark.asyncio
class TestUpdateIssue:

    async def test_each_changed_field_is_recorded(self, client: AsyncClient, db_session: AsyncSession,
                                                  project, user, auth_headers):
        issue = await IssueFactory.create_async(
            db_session, project_id=project.id, creator_id=user.id, title="Old", priority="LOW"
        )
        await db_session.commit()

        response = await client.patch(
            f"/api/issues/{issue.id}", json={"title": "New", "priority": "HIGH"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "New"

        changes = await client.get(f"/api/issues/{issue.id}/changes", headers=auth_headers)
        recorded = {(c["field"], c["old_value"], c["new_value"]) for c in changes.json()["data"]}
        assert recorded == {("title", "Old", "New"), ("priority", "LOW", "HIGH")}

    async def test_unchanged_fields_are_not_recorded(self, client: AsyncClient, db_session: AsyncSession,
                                                     project, user, auth_headers):
        issue = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id, title="Same")
        await db_session.commit()

        await client.patch(f"/api/issues/{issue.id}", json={"title": "Same"}, headers=auth_headers)

        changes = await client.get(f"/api/issues/{issue.id}/changes", headers=auth_headers)
        assert changes.json()["data"] == []

    async def test_description_change_clears_ai_cache(self, client: AsyncClient, db_session: AsyncSession,
                                                      project, user, auth_headers):
        issue = await IssueFactory.create_async(
            db_session, project_id=project.id, creator_id=user.id, ai_summary="Cached", ai_suggestion="Cached"
        )
        await db_session.commit()

        await client.patch(f"/api/issues/{issue.id}", json={"description": "Completely new text"}, headers=auth_headers)

        detail = await client.get(f"/api/issues/{issue.id}", headers=auth_headers)
        assert detail.json()["data"]["ai_summary"] is None
        assert detail.json()["data"]["ai_suggestion"] is None

    async def test_update_labels(self, client: AsyncClient, db_session: AsyncSession, project, user, auth_headers):
        bug = await LabelFactory.create_async(db_session, project_id=project.id, name="bug")
        ui = await LabelFactory.create_async(db_session, project_id=project.id, name="UI")
        issue = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        response = await client.put(
            f"/api/issues/{issue.id}/labels", json={"label_ids": [ui.id, bug.id]}, headers=auth_headers
        )

        assert {label["name"] for label in response.json()["data"]["labels"]} == {"bug", "UI"}
        changes = await client.get(f"/api/issues/{issue.id}/changes", headers=auth_headers)
        assert changes.json()["data"][0]["field"] == "labels"
        assert changes.json()["data"][0]["new_value"] == "bug, UI"

    async def test_reassign_and_unassign(self, client: AsyncClient, db_session: AsyncSession,
                                         project, user, member, auth_headers):
        issue = await IssueFactory.create_async(db_session, project_id=project.id, creator_id=user.id)
        await db_session.commit()

        assigned = await client.put(f"/api/issues/{issue.id}/assignee", json={"assignee_id": member.id},
                                    headers=auth_headers)
        cleared = await client.put(f"/api/issues/{issue.id}/assignee", json={"assignee_id": None},
                                   headers=auth_headers)

        assert assigned.json()["data"]["assignee_id"] == member.id
        assert cleared.json()["data"]["assignee_id"] is None
        changes = await client.get(f"/api/issues/{issue.id}/changes", headers=auth_headers)
        values = [(c["old_value"], c["new_value"]) for c in changes.json()["data"] if c["field"] == "assignee"]
        assert ("Member User", None) in values
        assert (None, "Member User") in values
