from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from app.db.base import Base, utcnow


class User(Base):
    """Account owner. users.id is the tenant key for every owned row."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
