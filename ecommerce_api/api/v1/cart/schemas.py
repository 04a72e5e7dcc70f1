"""Cart schemas"""

from pydantic import BaseModel, Field

class CartItemCreate(BaseModel):
    """Add product to cart"""
    product_id: int = Field(..., ge=1)
    quantity: int = Field(1, ge=1, le=100)

class CartItemUpdate(BaseModel):
    """Change quantity of a cart line"""
    quantity: int = Field(..., ge=1, le=100)
