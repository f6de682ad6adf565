from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from vibe.db.base import Base
from vibe.models.label import issue_labels


class Issue(Base):
    """
    Work item on a project's Kanban board.

    status: 'BACKLOG', 'IN_PROGRESS', 'DONE'
    priority: 'LOW', 'MEDIUM', 'HIGH', 'URGENT'

    When custom_status_id is set the issue is shown in that custom column
    instead of its default status column. position orders issues inside a
    column.
    """
    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assignee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    custom_status_id = Column(Integer, ForeignKey("custom_statuses.id", ondelete="SET NULL"), nullable=True, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="BACKLOG", index=True)
    priority = Column(String(20), nullable=False, default="MEDIUM", index=True)
    position = Column(Integer, nullable=False, default=0)
    due_date = Column(DateTime(timezone=True), nullable=True, index=True)

    # Cached AI output, cleared when the description changes
    ai_summary = Column(Text, nullable=True)
    ai_summary_generated_at = Column(DateTime(timezone=True), nullable=True)
    ai_suggestion = Column(Text, nullable=True)
    ai_suggestion_generated_at = Column(DateTime(timezone=True), nullable=True)

    deleted_at = Column(DateTime(timezone=True), nullable=True)  # Soft delete
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    project = relationship("Project", back_populates="issues")
    creator = relationship("User", foreign_keys=[creator_id])
    assignee = relationship("User", foreign_keys=[assignee_id])
    custom_status = relationship("CustomStatus", back_populates="issues")
    labels = relationship("Label", secondary=issue_labels, back_populates="issues")
    comments = relationship("Comment", back_populates="issue", cascade="all, delete-orphan")
    subtasks = relationship("Subtask", back_populates="issue", cascade="all, delete-orphan", order_by="Subtask.position")
    changes = relationship("IssueChange", back_populates="issue", cascade="all, delete-orphan")
    activities = relationship("IssueActivity", back_populates="issue", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Issue(id={self.id}, title='{self.title}', status='{self.status}')>"
