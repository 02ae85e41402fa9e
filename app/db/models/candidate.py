from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from app.db.base import Base, utcnow


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    current_position = Column(String, nullable=True)
    status = Column(String, default="new")  # new | screening | interviewing | offered | hired | rejected
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
