"""Commission model"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, Index, UniqueConstraint, DateTime, Enum
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel, TimestampedModel, IDModel, enum_values

class CommissionType(str, enum.Enum):
    DIRECT = "direct"
    REFERRAL = "referral"

class CommissionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"

class Commission(BaseModel, TimestampedModel, IDModel):
    """Commission earned by an affiliate on one order line"""

    __tablename__ = "commissions"

    affiliate_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    order_item_id = Column(Integer, ForeignKey("order_items.id"), nullable=False)

    type = Column(
        Enum(CommissionType, name="commission_type", values_callable=enum_values),
        nullable=False
    )
    amount = Column(Numeric(10, 2), nullable=False)
    percentage = Column(Numeric(5, 2), nullable=False)
    status = Column(
        Enum(CommissionStatus, name="commission_status", values_callable=enum_values),
        default=CommissionStatus.PENDING,
        nullable=False,
        index=True
    )
    approved_at = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)

    # Relationships
    affiliate = relationship("User")
    order_item = relationship("OrderItem")

    __table_args__ = (
        UniqueConstraint("affiliate_id", "order_item_id", "type", name="uq_commission_affiliate_item_type"),
        Index("idx_commissions_affiliate_created", "affiliate_id", "created_at"),
    )
