"""
Rewards and loyalty points models
"""

from sqlalchemy import Column, String, Integer, Boolean, Text, ForeignKey, Index, UniqueConstraint, CheckConstraint, DateTime, Enum
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel, TimestampedModel, IDModel, enum_values

class ClaimStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"

class PointsTransactionType(str, enum.Enum):
    EARNED = "earned"
    REDEEMED = "redeemed"

class Reward(BaseModel, TimestampedModel, IDModel):
    """Reward redeemable with loyalty points"""

    __tablename__ = "rewards"

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    points_required = Column(Integer, nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="check_non_negative_reward_stock"),
        CheckConstraint("points_required > 0", name="check_positive_points_required"),
    )

class RewardClaim(BaseModel, TimestampedModel, IDModel):
    """Redemption of points for a reward"""

    __tablename__ = "reward_claims"

    affiliate_id = Column(Integer, ForeignKey("affiliates.id"), nullable=False, index=True)
    reward_id = Column(Integer, ForeignKey("rewards.id"), nullable=False)
    points_used = Column(Integer, nullable=False)
    status = Column(
        Enum(ClaimStatus, name="claim_status", values_callable=enum_values),
        default=ClaimStatus.PENDING,
        nullable=False
    )
    delivered_at = Column(DateTime, nullable=True)

    reward = relationship("Reward")

class PointsTransaction(BaseModel, TimestampedModel, IDModel):
    """Points ledger entry"""

    __tablename__ = "points_transactions"

    affiliate_id = Column(Integer, ForeignKey("affiliates.id"), nullable=False)

    # Transaction details
    type = Column(
        Enum(PointsTransactionType, name="points_transaction_type", values_callable=enum_values),
        nullable=False
    )
    points = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)

    # Reference
    reference_type = Column(String(50), nullable=True)  # order, reward_claim
    reference_id = Column(Integer, nullable=True)

    description = Column(String(500), nullable=False)

    # Indexes
    __table_args__ = (
        UniqueConstraint("affiliate_id", "reference_type", "reference_id", name="uq_points_reference"),
        Index("idx_points_transactions_affiliate_type", "affiliate_id", "type"),
    )
