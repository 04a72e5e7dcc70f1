"""
Product schemas
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from decimal import Decimal

from ecommerce_api.utils.validators import validate_sku

class ProductBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    image_url: Optional[str] = Field(None, max_length=500)
    category_id: int = Field(..., ge=1)
    public_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    affiliate_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    stock: int = Field(0, ge=0)
    min_stock: int = Field(5, ge=0)

class ProductCreate(ProductBase):
    sku: str
    is_active: bool = True

    @field_validator("sku")
    @classmethod
    def validate_sku(cls, v):
        return validate_sku(v)

    @model_validator(mode="after")
    def check_prices(self):
        if self.affiliate_price > self.public_price:
            raise ValueError("El precio de afiliado no puede ser mayor al precio público")
        return self

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    image_url: Optional[str] = Field(None, max_length=500)
    category_id: Optional[int] = Field(None, ge=1)
    public_price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    affiliate_price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

class StockUpdate(BaseModel):
    stock: int = Field(..., ge=0)

class AvailabilityRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1, max_length=100)
