"""
End-to-end test for team collaboration flow with multiple users.

Tests a complete workflow from sign-up to a finished issue.
"""

import pytest
from httpx import AsyncClient


async def _register(client: AsyncClient, name: str, email: str) -> dict:
    response = await client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": "secret123", "confirm_password": "secret123"},
    )
    assert response.status_code == 201
    data = response.json()["data"]
    return {"id": data["user"]["id"], "headers": {"Authorization": f"Bearer {data['access_token']}"}}


@pytest.mark.e2e
@pytest.mark.asyncio
class TestTeamCollaborationFlow:
    """Two users working on the same board."""

    async def test_complete_team_collaboration_flow(self, client: AsyncClient):
        """
        1. Alice and Bob register
        2. Alice creates a team and invites Bob
        3. Bob accepts from his inbox
        4. Alice creates a project and an issue assigned to Bob
        5. Bob moves the issue through the board and comments
        6. Alice sees the comment notification and the project stats
        """
        alice = await _register(client, "Alice", "alice@example.com")
        bob = await _register(client, "Bob", "bob@example.com")

        # Step 2: team and invite
        team = await client.post("/api/teams/", json={"name": "Platform"}, headers=alice["headers"])
        assert team.status_code == 201
        team_id = team.json()["data"]["id"]

        invite = await client.post(
            f"/api/teams/{team_id}/invites", json={"email": "Bob@Example.com"}, headers=alice["headers"]
        )
        assert invite.status_code == 201

        # Step 3: Bob accepts
        inbox = await client.get("/api/invites/", headers=bob["headers"])
        pending = inbox.json()["data"]
        assert [i["team"]["name"] for i in pending] == ["Platform"]

        accepted = await client.post(
            f"/api/invites/{pending[0]['id']}/respond", json={"accept": True}, headers=bob["headers"]
        )
        assert accepted.json()["data"]["status"] == "ACCEPTED"

        teams = await client.get("/api/teams/", headers=bob["headers"])
        assert [(t["id"], t["role"]) for t in teams.json()["data"]] == [(team_id, "MEMBER")]

        # Step 4: project and assigned issue
        project = await client.post(
            f"/api/projects/team/{team_id}", json={"name": "Billing"}, headers=alice["headers"]
        )
        project_id = project.json()["data"]["id"]

        issue = await client.post(
            f"/api/issues/project/{project_id}",
            json={"title": "Invoice totals are off", "assignee_id": bob["id"], "priority": "HIGH"},
            headers=alice["headers"],
        )
        assert issue.status_code == 201
        issue_id = issue.json()["data"]["id"]

        bob_unread = await client.get("/api/notifications/unread-count", headers=bob["headers"])
        # The team invite and the assignment
        assert bob_unread.json()["data"] == {"count": 2}

        # Step 5: Bob works the issue
        for status in ("IN_PROGRESS", "DONE"):
            moved = await client.put(
                f"/api/issues/{issue_id}/move", json={"status": status, "position": 0}, headers=bob["headers"]
            )
            assert moved.json()["data"]["status"] == status

        comment = await client.post(
            f"/api/issues/{issue_id}/comments", json={"content": "Fixed rounding"}, headers=bob["headers"]
        )
        assert comment.status_code == 201

        # Step 6: Alice's view
        alice_inbox = await client.get("/api/notifications/", headers=alice["headers"])
        assert [n["type"] for n in alice_inbox.json()["data"]["notifications"]] == ["COMMENT_ADDED"]

        board = await client.get(f"/api/projects/{project_id}/board", headers=alice["headers"])
        done_column = next(c for c in board.json()["data"]["columns"] if c["id"] == "DONE")
        assert [i["id"] for i in done_column["issues"]] == [issue_id]

        stats = await client.get(f"/api/stats/projects/{project_id}", headers=alice["headers"])
        assert stats.json()["data"]["completion_rate"] == 100

        history = await client.get(f"/api/issues/{issue_id}/changes", headers=alice["headers"])
        fields = [c["field"] for c in history.json()["data"]]
        assert fields.count("status") == 2
        assert "created" in fields
        assert "comment_added" in fields

    async def test_removed_member_loses_access(self, client: AsyncClient):
        alice = await _register(client, "Alice", "alice@example.com")
        bob = await _register(client, "Bob", "bob@example.com")

        team_id = (await client.post("/api/teams/", json={"name": "Core"}, headers=alice["headers"])).json()["data"]["id"]
        invite = await client.post(f"/api/teams/{team_id}/invites", json={"email": "bob@example.com"},
                                   headers=alice["headers"])
        await client.post(f"/api/invites/{invite.json()['data']['id']}/respond", json={"accept": True},
                          headers=bob["headers"])
        project_id = (await client.post(f"/api/projects/team/{team_id}", json={"name": "Web"},
                                        headers=alice["headers"])).json()["data"]["id"]

        visible = await client.get(f"/api/projects/{project_id}", headers=bob["headers"])
        assert visible.status_code == 200

        detail = await client.get(f"/api/teams/{team_id}", headers=alice["headers"])
        membership_id = next(m["id"] for m in detail.json()["data"]["members"] if m["user_id"] == bob["id"])

        kicked = await client.delete(f"/api/teams/{team_id}/members/{membership_id}", headers=alice["headers"])
        assert kicked.status_code == 200

        hidden = await client.get(f"/api/projects/{project_id}", headers=bob["headers"])
        assert hidden.status_code == 403
