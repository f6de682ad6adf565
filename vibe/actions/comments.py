"""
Issue comments. Only the author may edit or delete a comment; deletes
are soft.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibe.actions.common import get_issue_for_member, log_issue_change
from vibe.actions.errors import Forbidden, NotFound
from vibe.actions.notification import notify_comment_added
from vibe.helpers.dates import utcnow
from vibe.models.comment import Comment
from vibe.models.user import User


async def _load_comment(db: AsyncSession, comment_id: int) -> Comment:
    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.author))
        .where(Comment.id == comment_id, Comment.deleted_at.is_(None))
        .execution_options(populate_existing=True)
    )
    comment = result.scalar_one_or_none()
    if not comment:
        raise NotFound("Comment not found")
    return comment


async def list_comments(db: AsyncSession, user: User, issue_id: int) -> list:
    await get_issue_for_member(db, user.id, issue_id)
    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.author))
        .where(Comment.issue_id == issue_id, Comment.deleted_at.is_(None))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return result.scalars().all()


async def add_comment(db: AsyncSession, user: User, issue_id: int, content: str) -> Comment:
    issue, project = await get_issue_for_member(db, user.id, issue_id)

    comment = Comment(issue_id=issue_id, author_id=user.id, content=content)
    db.add(comment)
    log_issue_change(db, issue_id, user.id, "comment_added", None, content[:100])
    await db.commit()
    comment_id = comment.id

    await notify_comment_added(
        db,
        [issue.creator_id, issue.assignee_id],
        user.id,
        issue.id,
        issue.title,
        project.id,
        user.name or "Someone",
    )
    return await _load_comment(db, comment_id)


async def _own_comment(db: AsyncSession, user: User, comment_id: int, verb: str) -> Comment:
    comment = await _load_comment(db, comment_id)
    # The issue may have been deleted or the user removed from the team since
    await get_issue_for_member(db, user.id, comment.issue_id)
    if comment.author_id != user.id:
        raise Forbidden(f"You can only {verb} your own comments")
    return comment


async def update_comment(db: AsyncSession, user: User, comment_id: int, content: str) -> Comment:
    comment = await _own_comment(db, user, comment_id, "edit")
    comment.content = content
    await db.commit()
    return comment


async def delete_comment(db: AsyncSession, user: User, comment_id: int) -> None:
    comment = await _own_comment(db, user, comment_id, "delete")
    comment.deleted_at = utcnow()
    await db.commit()
