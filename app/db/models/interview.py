from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, Index
from sqlalchemy.sql import func
from app.db.base import Base, utcnow


class Interview(Base):
    """
    Scheduled interview. Metered per calendar month (UTC) on created_at.
    """
    __tablename__ = "interviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=True)
    title = Column(String, nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    duration_minutes = Column(Integer, default=60)
    notes = Column(Text, nullable=True)
    status = Column(String, default="scheduled")  # scheduled | completed | canceled
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_interviews_user_created", "user_id", "created_at"),
    )
