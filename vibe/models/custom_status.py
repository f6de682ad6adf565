from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from vibe.db.base import Base


class CustomStatus(Base):
    """
    Extra Kanban column defined per project.

    wip_limit is advisory: the board flags a column whose issue count is
    above it but moves are never blocked.
    """
    __tablename__ = "custom_statuses"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(30), nullable=False)
    color = Column(String(7), nullable=False, default="#6B7280")
    position = Column(Integer, nullable=False, default=0)
    wip_limit = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    project = relationship("Project", back_populates="custom_statuses")
    issues = relationship("Issue", back_populates="custom_status")

    def __repr__(self):
        return f"<CustomStatus(id={self.id}, name='{self.name}', position={self.position})>"
