from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from app.db.base import Base, utcnow


class Subscription(Base):
    """
    One billing subscription per tenant.

    Created by the free-trial insert or by the checkout webhook upsert
    (conflict target user_id). Canceled rows are kept, never deleted.
    """
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    plan_id = Column(String, nullable=False, default="free-trial")
    status = Column(String, nullable=False, default="trialing")  # active | trialing | canceled | past_due

    stripe_customer_id = Column(String, nullable=True)
    stripe_subscription_id = Column(String, nullable=True, index=True)

    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now())
