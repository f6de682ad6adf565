from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, BigInteger, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship
from vibe.db.base import Base


class APIAccessLog(Base):
    """
    API access logging for audit and analytics.

    One row per request with user context, the team or project addressed
    by the URL, and timing.
    """
    __tablename__ = "api_access_logs"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)

    # User/Team context
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)

    # Request information
    endpoint = Column(String(255), nullable=False, index=True)
    method = Column(String(10), nullable=False)
    status_code = Column(Integer, nullable=False)

    # Client information
    ip_address = Column(String(45), nullable=True)  # IPv6 compatible
    user_agent = Column(Text, nullable=True)

    request_id = Column(String(36), nullable=True, unique=True, index=True)
    duration_ms = Column(Integer, nullable=True)
    request_body_hash = Column(String(64), nullable=True)  # SHA256 of request body
    response_size = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    user = relationship("User", foreign_keys=[user_id])
    team = relationship("Team", foreign_keys=[team_id])
    project = relationship("Project", foreign_keys=[project_id])

    def __repr__(self):
        return f"<APIAccessLog(id={self.id}, endpoint='{self.endpoint}', method='{self.method}', status={self.status_code})>"
