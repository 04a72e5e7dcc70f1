"""Order model with state machine"""

from sqlalchemy import Column, String, Numeric, Integer, Enum, ForeignKey, Index, DateTime
from sqlalchemy.orm import relationship
import enum

from .base import BaseModel, TimestampedModel, IDModel, enum_values

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

# Statuses that count as a completed purchase
PURCHASED_STATUSES = (OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED)

class Order(BaseModel, TimestampedModel, IDModel):
    """Customer order"""

    __tablename__ = "orders"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    status = Column(
        Enum(OrderStatus, name="order_status", values_callable=enum_values),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )

    # Amounts
    total_amount = Column(Numeric(10, 2), nullable=False)
    shipping_cost = Column(Numeric(10, 2), nullable=False, default=0)

    # Delivery
    shipping_address_id = Column(Integer, ForeignKey("shipping_addresses.id"), nullable=True)
    tracking_code = Column(String(100), nullable=True)
    shalom_agency = Column(String(150), nullable=True)
    shalom_guide = Column(String(100), nullable=True)
    delivered_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    shipping_address = relationship("ShippingAddress")
    payments = relationship("Payment", back_populates="order")

    # Indexes
    __table_args__ = (
        Index("idx_orders_user_status", "user_id", "status"),
        Index("idx_orders_created_status", "created_at", "status"),
    )

class OrderItem(BaseModel, TimestampedModel, IDModel):
    """Individual items within an order"""

    __tablename__ = "order_items"

    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    # Snapshot at time of order
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    @property
    def total_price(self):
        return self.unit_price * self.quantity
