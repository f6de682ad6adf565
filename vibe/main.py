from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vibe.actions.errors import ActionError
from vibe.api.endpoints import (
    ai,
    auth,
    comments,
    invites,
    issues,
    labels,
    notifications,
    projects,
    search,
    stats,
    teams,
)
from vibe.core.config import settings
from vibe.core.logging import capture_error, init_sentry, setup_logging
from vibe.db.base import Base
from vibe.db.session import engine_sync
from vibe.logging import get_logger
from vibe.middleware.logging import AccessLoggingMiddleware

app = FastAPI(
    title="Vibe API - Project & Issue Tracker",
    description="""
## 🔐 Authentication

This API uses OAuth2 with the Password Flow.

### Authenticating in the Swagger UI:

1. **Register** (if you don't have an account yet):
   - Use `POST /api/auth/register`
   - Copy the returned `access_token`
   - Click **Authorize** and paste the token

2. **OR log in from Swagger**:
   - Click **Authorize**
   - Put your **email** in the `username` field and your password in `password`

3. **OR log in through the endpoint**:
   - `POST /api/auth/login` with `{"email": "...", "password": "..."}`

## 👥 Teams, projects and issues

- **Teams**: OWNER / ADMIN / MEMBER roles, email invitations, activity log
- **Projects**: labels, custom Kanban columns with WIP limits, favorites
- **Issues**: Kanban board, comments, subtasks, change history
- **AI**: summaries, suggestions, label suggestions and duplicate detection

Every endpoint answers `{"success": true, "data": ...}` or
`{"success": false, "error": "..."}`.
    """,
    version="1.0.0"
)

logger = get_logger(__name__)

# Initialize logging and error tracking
setup_logging()
init_sentry()

Base.metadata.create_all(bind=engine_sync)

origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(AccessLoggingMiddleware, enabled=settings.ACCESS_LOG_ENABLED)


def _failure(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message}, headers=headers)


@app.exception_handler(ActionError)
async def action_error_handler(request: Request, exc: ActionError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid input"
    # pydantic prefixes messages raised from validators
    message = message.removeprefix("Value error, ")
    return _failure(422, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _failure(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    user = getattr(request.state, "user", None)
    capture_error(
        exc,
        context={"request": {"method": request.method, "path": request.url.path}},
        user={"id": user.id, "email": user.email, "name": user.name} if user else None,
    )
    logger.error("Unhandled error", path=request.url.path, error=str(exc))
    return _failure(500, "Something went wrong")


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(teams.router, prefix="/api/teams", tags=["teams"])
app.include_router(invites.router, prefix="/api/invites", tags=["invites"])
app.include_router(projects.router, prefix="/api/projects", tags=["projects"])
app.include_router(labels.router, prefix="/api", tags=["labels"])
app.include_router(issues.router, prefix="/api/issues", tags=["issues"])
app.include_router(comments.router, prefix="/api", tags=["comments"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
app.include_router(stats.router, prefix="/api/stats", tags=["stats"])
app.include_router(ai.router, prefix="/api/ai", tags=["ai"])
app.include_router(search.router, prefix="/api/search", tags=["search"])


@app.get("/")
def root():
    return {"message": "Welcome to the Vibe API. The OpenAPI docs live at /docs"}


@app.get("/health")
def health():
    return {"status": "ok"}
