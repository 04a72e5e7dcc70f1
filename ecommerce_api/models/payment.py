"""
Payment model for transaction handling
Payments are confirmed manually (bank transfer / BCP operation code)
"""

from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Enum, DateTime
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel, TimestampedModel, IDModel, enum_values

class PaymentStatus(str, enum.Enum):
    """Payment status enumeration"""
    VALID = "valid"
    REJECTED = "rejected"

class PaymentMethod(str, enum.Enum):
    """Payment method enumeration"""
    BCP_CODE = "BCP_code"
    BANK_TRANSFER = "bank_transfer"

class Payment(BaseModel, TimestampedModel, IDModel):
    """Payment transaction records"""

    __tablename__ = "payments"

    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)

    # Payment details
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(String(50), nullable=False)
    status = Column(
        Enum(PaymentStatus, name="payment_status", values_callable=enum_values),
        default=PaymentStatus.VALID,
        nullable=False
    )
    reference = Column(String(255), nullable=True)
    bcp_code = Column(String(100), nullable=True)
    paid_at = Column(DateTime, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="payments")
