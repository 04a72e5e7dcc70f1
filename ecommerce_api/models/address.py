"""
Shipping address model
"""

from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Index

from .base import BaseModel, TimestampedModel, IDModel

class ShippingAddress(BaseModel, TimestampedModel, IDModel):
    """User shipping addresses; at most one default per user"""

    __tablename__ = "shipping_addresses"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Recipient
    name = Column(String(150), nullable=False)
    phone = Column(String(20), nullable=False)

    # Location
    region = Column(String(100), nullable=False)
    city = Column(String(100), nullable=False)
    address = Column(String(500), nullable=False)
    reference = Column(String(500), nullable=True)

    is_default = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("idx_shipping_addresses_user_default", "user_id", "is_default"),
    )
