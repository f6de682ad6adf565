"""
Unit tests for the access logging middleware.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from vibe.middleware.logging import PROJECT_PATH, TEAM_PATH, AccessLoggingMiddleware, _path_id


def _app(enabled: bool = True) -> FastAPI:
    app = FastAPI()
    app.add_middleware(AccessLoggingMiddleware, enabled=enabled)

    @app.post("/api/projects/{project_id}/labels")
    async def create_label(project_id: int):
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


class TestPathIds:

    def test_ids_from_raw_path(self):
        assert _path_id(TEAM_PATH, "/api/teams/12/invites") == 12
        assert _path_id(PROJECT_PATH, "/api/projects/7/board") == 7

    def test_non_numeric_segments_are_ignored(self):
        assert _path_id(PROJECT_PATH, "/api/projects/favorites") is None
        assert _path_id(TEAM_PATH, "/api/projects/3") is None


@pytest.mark.asyncio
class TestAccessLoggingMiddleware:

    async def test_logs_request(self, monkeypatch):
        rows = []

        async def capture(self, **fields):
            rows.append(fields)

        monkeypatch.setattr(AccessLoggingMiddleware, "_log_to_database", capture)

        async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as client:
            response = await client.post(
                "/api/projects/5/labels", json={"name": "bug"}, headers={"X-Forwarded-For": "10.0.0.1, 10.0.0.2"}
            )

        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == rows[0]["request_id"]
        assert rows[0]["project_id"] == 5
        assert rows[0]["team_id"] is None
        assert rows[0]["ip_address"] == "10.0.0.1"
        assert rows[0]["method"] == "POST"
        assert len(rows[0]["request_body_hash"]) == 64

    async def test_storage_failure_does_not_break_request(self, monkeypatch):
        async def broken(self, **fields):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(AccessLoggingMiddleware, "_log_to_database", broken)

        async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as client:
            response = await client.post("/api/projects/5/labels")

        assert response.status_code == 200

    async def test_skipped_paths_and_disabled(self, monkeypatch):
        rows = []

        async def capture(self, **fields):
            rows.append(fields)

        monkeypatch.setattr(AccessLoggingMiddleware, "_log_to_database", capture)

        async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as client:
            await client.get("/health")
        async with AsyncClient(transport=ASGITransport(app=_app(enabled=False)), base_url="http://test") as client:
            await client.post("/api/projects/5/labels")

        assert rows == []
