from sqlalchemy import Column, Integer, ForeignKey, DateTime
from vibe.db.base import Base


class AiRateLimit(Base):
    """Per-user AI usage window: one counter per minute, one per day."""
    __tablename__ = "ai_rate_limits"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    minute_count = Column(Integer, default=0, nullable=False)
    minute_reset = Column(DateTime(timezone=True), nullable=False)
    daily_count = Column(Integer, default=0, nullable=False)
    daily_reset = Column(DateTime(timezone=True), nullable=False)
