from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from app.db.base import Base, utcnow


class TeamMember(Base):
    """
    Team invitation / membership row.

    status: pending -> active (accepted) or pending -> expired.
    user_id is the owning tenant; member_user_id is set on acceptance.
    """
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    email = Column(String, nullable=False)  # stored lower-case
    role = Column(String, nullable=False, default="member")  # admin | member
    status = Column(String, nullable=False, default="pending")
    invited_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    member_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    invited_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    joined_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "email", name="uq_team_members_user_email"),
    )
