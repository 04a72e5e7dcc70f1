"""
Order schemas
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import date

from ecommerce_api.models import OrderStatus
from ecommerce_api.api.v1.addresses.schemas import AddressBase

class OrderCreate(BaseModel):
    """Checkout request: a stored address or a new one"""
    shipping_address_id: Optional[int] = Field(None, ge=1)
    shipping_address: Optional[AddressBase] = None

    @model_validator(mode="after")
    def check_address(self):
        if self.shipping_address_id is None and self.shipping_address is None:
            raise ValueError("Debe indicar una dirección de envío")
        return self

class OrderStatusUpdate(BaseModel):
    """Admin status change"""
    status: OrderStatus
    tracking_code: Optional[str] = Field(None, max_length=100)
    shalom_agency: Optional[str] = Field(None, max_length=150)
    shalom_guide: Optional[str] = Field(None, max_length=100)

class OrderFilters(BaseModel):
    status: Optional[OrderStatus] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    region: Optional[str] = None
    search: Optional[str] = None
