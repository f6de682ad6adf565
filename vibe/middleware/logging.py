"""
Access Logging Middleware

Writes one api_access_logs row per request for audit and analytics.
"""

import re
import time
import uuid
import hashlib
from typing import Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from vibe.db.session import SessionAsync
from vibe.logging import get_logger
from vibe.models.api_access_log import APIAccessLog

logger = get_logger(__name__)

# Routing has not happened yet at this point, so ids are read from the raw path
TEAM_PATH = re.compile(r"/api/teams/(\d+)")
PROJECT_PATH = re.compile(r"/api/projects/(\d+)")

SKIPPED_PATHS = ("/", "/health", "/docs", "/openapi.json")

SLOW_REQUEST_MS = 1000


def _path_id(pattern: re.Pattern, path: str) -> Optional[int]:
    match = pattern.search(path)
    return int(match.group(1)) if match else None


class AccessLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log API access to the database.

    Captures:
    - User context (user_id set by get_current_user, team_id, project_id)
    - Request details (endpoint, method, IP, user agent)
    - Performance metrics (duration, response size)
    - Request tracking (request_id, body hash)
    """

    def __init__(self, app: ASGIApp, enabled: bool = True):
        super().__init__(app)
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled or request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        path = request.url.path
        ip_address = self._get_client_ip(request)
        user_agent = request.headers.get("user-agent", "")

        # Hash request body for audit (never store the body itself)
        request_body_hash = None
        if request.method in ("POST", "PUT", "PATCH"):
            body = await request.body()
            if body:
                request_body_hash = hashlib.sha256(body).hexdigest()

        response = await call_next(request)

        duration_ms = int((time.time() - start_time) * 1000)
        user = getattr(request.state, "user", None)

        logger.request(
            "API request",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration=duration_ms / 1000,
        )
        if duration_ms > SLOW_REQUEST_MS:
            logger.slow("Slow request", duration=duration_ms / 1000, threshold=SLOW_REQUEST_MS / 1000, path=path)

        try:
            await self._log_to_database(
                user_id=user.id if user else None,
                team_id=_path_id(TEAM_PATH, path),
                project_id=_path_id(PROJECT_PATH, path),
                endpoint=path,
                method=request.method,
                status_code=response.status_code,
                ip_address=ip_address,
                user_agent=user_agent,
                request_id=request_id,
                duration_ms=duration_ms,
                request_body_hash=request_body_hash,
                response_size=int(response.headers.get("content-length", 0)),
            )
        except Exception:
            # Don't fail the request if logging fails
            logger.error("Failed to log access", path=path)

        response.headers["X-Request-ID"] = request_id
        return response

    def _get_client_ip(self, request: Request) -> str:
        """X-Forwarded-For first (proxied requests), then the direct client."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        if request.client:
            return request.client.host
        return "unknown"

    async def _log_to_database(self, **fields) -> None:
        """Uses its own session so request handling is never affected."""
        async with SessionAsync() as db:
            db.add(APIAccessLog(**fields))
            await db.commit()
