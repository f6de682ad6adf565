from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Importa os modelos para que sejam registrados com a Base
from vibe.models import (  # noqa: E402,F401
    user,
    team,
    team_member,
    team_invite,
    team_activity_log,
    project,
    label,
    custom_status,
    issue,
    comment,
    subtask,
    issue_log,
    notification,
    ai_rate_limit,
    api_access_log,
)
