"""
AI helpers for issues: summaries, solution suggestions, comment thread
summaries, label suggestions and duplicate detection.

Each call that reaches the provider first passes check_rate_limit, which
keeps a per-minute and a per-day counter per user in ai_rate_limits.
"""
import math
import re
from datetime import timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibe.actions.common import get_issue_for_member, get_project_for_member
from vibe.actions.errors import ActionError, RateLimited, ServiceUnavailable
from vibe.core.config import settings
from vibe.helpers.dates import ensure_aware, utcnow
from vibe.logging import get_logger
from vibe.models.ai_rate_limit import AiRateLimit
from vibe.models.comment import Comment
from vibe.models.issue import Issue
from vibe.models.label import Label
from vibe.models.user import User
from vibe.services.ai_client import AIClient, AIServiceError

logger = get_logger(__name__)

MIN_DESCRIPTION_LENGTH = 10
MIN_COMMENTS_FOR_SUMMARY = 5
DUPLICATE_CANDIDATES = 50
DUPLICATE_SIMILARITY = 0.8


async def _get_limit(db: AsyncSession, user_id: int) -> Optional[AiRateLimit]:
    result = await db.execute(select(AiRateLimit).where(AiRateLimit.user_id == user_id))
    return result.scalar_one_or_none()


async def _create_limit(db: AsyncSession, user_id: int, now) -> AiRateLimit:
    limit = AiRateLimit(user_id=user_id, minute_count=0, minute_reset=now, daily_count=0, daily_reset=now)
    try:
        async with db.begin_nested():
            db.add(limit)
            await db.flush()
    except IntegrityError:
        # a concurrent first request inserted the row
        return await _get_limit(db, user_id)
    return limit


async def check_rate_limit(db: AsyncSession, user_id: int) -> AiRateLimit:
    """
    Counts one AI request for ``user_id`` or raises RateLimited.

    A window is reset once a full minute (or day) has elapsed since it
    started. The limit check and the increment run as one UPDATE, so
    concurrent requests can neither lose a count nor share the last slot.
    """
    now = utcnow()
    limit = await _get_limit(db, user_id) or await _create_limit(db, user_id, now)

    resets = {}
    if (now - ensure_aware(limit.minute_reset)).total_seconds() >= 60:
        resets.update(minute_count=0, minute_reset=now)
    if now - ensure_aware(limit.daily_reset) >= timedelta(days=1):
        resets.update(daily_count=0, daily_reset=now)
    if resets:
        await db.execute(
            update(AiRateLimit)
            .where(AiRateLimit.user_id == user_id)
            .values(**resets)
            .execution_options(synchronize_session=False)
        )

    counted = await db.execute(
        update(AiRateLimit)
        .where(
            AiRateLimit.user_id == user_id,
            AiRateLimit.minute_count < settings.AI_RATE_LIMIT_PER_MINUTE,
            AiRateLimit.daily_count < settings.AI_RATE_LIMIT_PER_DAY,
        )
        .values(minute_count=AiRateLimit.minute_count + 1, daily_count=AiRateLimit.daily_count + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(limit)

    if counted.rowcount == 0:
        if limit.minute_count >= settings.AI_RATE_LIMIT_PER_MINUTE:
            elapsed = (utcnow() - ensure_aware(limit.minute_reset)).total_seconds()
            seconds = max(1, math.ceil(60 - elapsed))
            raise RateLimited(f"Rate limit exceeded. Please wait {seconds} seconds.")
        raise RateLimited(
            f"Daily limit of {settings.AI_RATE_LIMIT_PER_DAY} AI requests reached. Please try again tomorrow."
        )
    return limit


async def _ask(client: AIClient, failure: str, prompt: str, system_prompt: str, max_tokens: int = 200) -> str:
    try:
        return (await client.complete(prompt, system_prompt, max_tokens)).strip()
    except AIServiceError as e:
        logger.error(failure, exc_info=False, reason=str(e))
        raise ServiceUnavailable(f"{failure}. Please try again.") from e


def _require_description(issue: Issue, purpose: str) -> None:
    if not issue.description or len(issue.description) <= MIN_DESCRIPTION_LENGTH:
        raise ActionError(f"Description must be more than {MIN_DESCRIPTION_LENGTH} characters for AI {purpose}")


async def generate_summary(db: AsyncSession, user: User, client: AIClient, issue_id: int,
                           regenerate: bool = False) -> dict:
    issue, _ = await get_issue_for_member(db, user.id, issue_id)
    _require_description(issue, "summary")

    if not regenerate and issue.ai_summary and issue.ai_summary_generated_at:
        return {"summary": issue.ai_summary, "cached": True}

    await check_rate_limit(db, user.id)
    summary = await _ask(
        client,
        "Failed to generate AI summary",
        f"Summarize this issue in 2-3 sentences:\nTitle: {issue.title}\nDescription: {issue.description}",
        "Summarize software issues concisely.",
        150,
    )
    issue.ai_summary = summary
    issue.ai_summary_generated_at = utcnow()
    await db.commit()
    return {"summary": summary, "cached": False}


async def generate_suggestion(db: AsyncSession, user: User, client: AIClient, issue_id: int,
                              regenerate: bool = False) -> dict:
    issue, _ = await get_issue_for_member(db, user.id, issue_id)
    _require_description(issue, "suggestion")

    if not regenerate and issue.ai_suggestion and issue.ai_suggestion_generated_at:
        return {"suggestion": issue.ai_suggestion, "cached": True}

    await check_rate_limit(db, user.id)
    suggestion = await _ask(
        client,
        "Failed to generate AI suggestion",
        f"Suggest a solution for this issue in 3-5 bullet points:\n"
        f"Title: {issue.title}\nDescription: {issue.description}\nPriority: {issue.priority}",
        "Senior engineer providing brief, actionable solutions.",
        250,
    )
    issue.ai_suggestion = suggestion
    issue.ai_suggestion_generated_at = utcnow()
    await db.commit()
    return {"suggestion": suggestion, "cached": False}


async def generate_comment_summary(db: AsyncSession, user: User, client: AIClient, issue_id: int) -> dict:
    issue, _ = await get_issue_for_member(db, user.id, issue_id)
    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.author))
        .where(Comment.issue_id == issue_id, Comment.deleted_at.is_(None))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    comments = result.scalars().all()
    if len(comments) < MIN_COMMENTS_FOR_SUMMARY:
        raise ActionError(f"At least {MIN_COMMENTS_FOR_SUMMARY} comments are required for summary")

    await check_rate_limit(db, user.id)
    thread = "\n\n".join(
        f"{comment.author.name if comment.author else 'Unknown'}: {comment.content}" for comment in comments
    )
    summary = await _ask(
        client,
        "Failed to summarize comments",
        f"Summarize this discussion briefly (3-4 sentences) and list key decisions:\nIssue: {issue.title}\n\n{thread}",
        "Summarize discussions concisely.",
        200,
    )
    return {"comment_summary": summary}


def match_labels(reply: str, labels: list) -> list:
    """Labels whose name contains, or is contained in, one of the reply's comma-separated names"""
    names = [name.strip() for name in reply.lower().split(",") if name.strip()]
    names = [name for name in names if name != "none"]
    matched = [
        label for label in labels
        if any(name in label.name.lower() or label.name.lower() in name for name in names)
    ]
    return matched[:3]


async def suggest_labels(db: AsyncSession, user: User, client: AIClient, project_id: int, title: str,
                         description: Optional[str] = None) -> list:
    await get_project_for_member(db, user.id, project_id)
    if not title or len(title.strip()) < 3:
        raise ActionError("Title must be at least 3 characters")

    labels = (await db.execute(
        select(Label).where(Label.project_id == project_id).order_by(Label.name.asc())
    )).scalars().all()
    if not labels:
        raise ActionError("No labels defined for this project")

    await check_rate_limit(db, user.id)
    label_names = ", ".join(label.name for label in labels)
    reply = await _ask(
        client,
        "Failed to suggest labels",
        f"Labels: {label_names}\nIssue: {title} - {description or 'No description'}\n"
        f'Pick 1-3 matching labels, comma-separated, or "none".',
        "Categorize issues briefly.",
        50,
    )
    return match_labels(reply, labels)


def parse_duplicate_indices(reply: str, candidate_count: int) -> list:
    """Zero-based indices from a reply listing 1-based issue numbers; "none" means no duplicates"""
    if "none" in reply.lower():
        return []
    indices = []
    for number in re.findall(r"\d+", reply):
        index = int(number) - 1
        if 0 <= index < candidate_count and index not in indices:
            indices.append(index)
    return indices[:3]


async def detect_duplicates(db: AsyncSession, user: User, client: AIClient, project_id: int, title: str) -> list:
    await get_project_for_member(db, user.id, project_id)
    if not title or len(title.strip()) < 5:
        raise ActionError("Title must be at least 5 characters")

    candidates = (await db.execute(
        select(Issue)
        .where(Issue.project_id == project_id, Issue.deleted_at.is_(None))
        .order_by(Issue.created_at.desc(), Issue.id.desc())
        .limit(DUPLICATE_CANDIDATES)
    )).scalars().all()
    if not candidates:
        return []

    await check_rate_limit(db, user.id)
    listing = "\n".join(f'{number}. "{issue.title}"' for number, issue in enumerate(candidates, start=1))
    reply = await _ask(
        client,
        "Failed to check for duplicates",
        "Given a new issue title, identify which existing issues might be duplicates or very similar.\n\n"
        f'New Issue Title: "{title}"\n\nExisting Issues:\n{listing}\n\n'
        'Respond with ONLY the numbers of similar issues (1-3 max), separated by commas. '
        'If no duplicates, respond with "none".',
        "You are a helpful assistant that detects duplicate software issues.",
    )
    return [
        {"id": candidates[index].id, "title": candidates[index].title, "similarity": DUPLICATE_SIMILARITY}
        for index in parse_duplicate_indices(reply, len(candidates))
    ]
