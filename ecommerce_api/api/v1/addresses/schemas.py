"""Shipping address schemas"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional

from ecommerce_api.utils.validators import validate_phone_number, normalize_text

class AddressBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=150)
    phone: str
    region: str = Field(..., min_length=2, max_length=100)
    city: str = Field(..., min_length=2, max_length=100)
    address: str = Field(..., min_length=5, max_length=500)
    reference: Optional[str] = Field(None, max_length=500)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone_number(v)

    @field_validator("name", "address")
    @classmethod
    def normalize(cls, v):
        return normalize_text(v)

class AddressCreate(AddressBase):
    is_default: bool = False

class AddressUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=150)
    phone: Optional[str] = None
    region: Optional[str] = Field(None, min_length=2, max_length=100)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    address: Optional[str] = Field(None, min_length=5, max_length=500)
    reference: Optional[str] = Field(None, max_length=500)
    is_default: Optional[bool] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone_number(v) if v is not None else v
