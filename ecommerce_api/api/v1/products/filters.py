"""
Product filtering logic
"""

from dataclasses import dataclass
from typing import Optional
from decimal import Decimal
from sqlalchemy import and_, or_
from sqlalchemy.sql import Select

from ecommerce_api.models import Product

@dataclass
class ProductFilter:
    """Product filter parameters"""
    search: Optional[str] = None
    category_id: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    in_stock: Optional[bool] = None
    is_affiliate: bool = False
    include_inactive: bool = False

    @property
    def price_column(self):
        """Price range applies to the price the caller pays"""
        return Product.affiliate_price if self.is_affiliate else Product.public_price

    def apply_filters(self, query: Select) -> Select:
        """Apply filters to query"""
        conditions = []

        if not self.include_inactive:
            conditions.append(Product.is_active.is_(True))

        if self.search:
            pattern = f"%{self.search.strip()}%"
            conditions.append(or_(
                Product.name.ilike(pattern),
                Product.description.ilike(pattern),
                Product.sku.ilike(pattern)
            ))

        if self.category_id:
            conditions.append(Product.category_id == self.category_id)

        if self.min_price is not None:
            conditions.append(self.price_column >= self.min_price)

        if self.max_price is not None:
            conditions.append(self.price_column <= self.max_price)

        if self.in_stock is not None:
            if self.in_stock:
                conditions.append(Product.stock > 0)
            else:
                conditions.append(Product.stock == 0)

        if conditions:
            query = query.where(and_(*conditions))

        return query
