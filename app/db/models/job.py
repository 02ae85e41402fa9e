from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime
from sqlalchemy.sql import func
from app.db.base import Base, utcnow


class Job(Base):
    """Job posting owned by a tenant."""
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    department = Column(String, nullable=True)
    location = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    status = Column(String, default="open")  # open | closed | draft
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
