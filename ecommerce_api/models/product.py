"""Product model with role-dependent pricing"""

from sqlalchemy import Column, String, Text, Numeric, Integer, Boolean, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel, TimestampedModel, IDModel

class Product(BaseModel, TimestampedModel, IDModel):
    """Catalog product"""

    __tablename__ = "products"

    # Basic info
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    sku = Column(String(50), unique=True, index=True)
    image_url = Column(String(500), nullable=True)

    # Categorization
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)

    # Pricing
    public_price = Column(Numeric(10, 2), nullable=False)
    affiliate_price = Column(Numeric(10, 2), nullable=False)
    discount_percentage = Column(Numeric(5, 2), nullable=True)

    # Inventory
    stock = Column(Integer, default=0, nullable=False)
    min_stock = Column(Integer, default=5, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    category = relationship("Category", back_populates="products")

    __table_args__ = (
        CheckConstraint("stock >= 0", name="check_non_negative_stock"),
        Index("idx_products_category_active", "category_id", "is_active"),
    )

    def price_for(self, is_affiliate: bool):
        """Unit price for the buyer's role"""
        return self.affiliate_price if is_affiliate else self.public_price
