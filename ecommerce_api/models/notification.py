"""
Notification model for user communications
"""

from sqlalchemy import Column, String, Text, Boolean, Integer, ForeignKey, Index, UniqueConstraint

from .base import BaseModel, TimestampedModel, IDModel

class NotificationType:
    PAYMENT_OK = "payment_ok"
    POINTS_EARNED = "points_earned"
    REWARD_CLAIMED = "reward_claimed"
    COMMISSION = "commission"
    ACCOUNT_PENDING = "account_pending"

class Notification(BaseModel, TimestampedModel, IDModel):
    """User notifications"""

    __tablename__ = "notifications"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Notification content
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    read_flag = Column(Boolean, default=False, nullable=False)

    # Set for notifications that must be emitted at most once
    dedupe_key = Column(String(100), nullable=True)

    # Indexes
    __table_args__ = (
        UniqueConstraint("user_id", "dedupe_key", name="uq_notification_user_dedupe"),
        Index("idx_notifications_user_unread", "user_id", "read_flag"),
        Index("idx_notifications_type", "type"),
    )
