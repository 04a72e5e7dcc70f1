"""Referral system models"""

from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel, TimestampedModel, IDModel

class Referral(BaseModel, TimestampedModel, IDModel):
    """Sponsor -> referred user edge, created once at registration"""

    __tablename__ = "referrals"

    referrer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # A user is referred at most once, so the edges form a forest
    referred_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)

    # Relationships
    referrer = relationship("User", foreign_keys=[referrer_id])
    referred = relationship("User", foreign_keys=[referred_id])

    __table_args__ = (
        CheckConstraint("referrer_id <> referred_id", name="check_no_self_referral"),
    )
