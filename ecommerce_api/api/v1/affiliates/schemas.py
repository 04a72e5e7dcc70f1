"""
Affiliate network schemas
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

from ecommerce_api.models import AffiliateStatus
from ecommerce_api.utils.validators import validate_dni, normalize_text
from ecommerce_api.api.v1.auth.schemas import AffiliateProfile

class RegisterReferralRequest(AffiliateProfile):
    """Downline account created by its sponsor"""
    dni: str
    full_name: str = Field(..., min_length=2, max_length=150)
    email: EmailStr
    region: str = Field(..., min_length=2, max_length=100)
    city: str = Field(..., min_length=2, max_length=100)
    address: str = Field(..., min_length=5, max_length=500)

    @field_validator("dni")
    @classmethod
    def validate_dni(cls, v):
        return validate_dni(v)

    @field_validator("full_name")
    @classmethod
    def normalize_name(cls, v):
        return normalize_text(v)

class AffiliateStatusUpdate(BaseModel):
    status: AffiliateStatus

class NetworkFilters(BaseModel):
    search: Optional[str] = None
    status: Optional[AffiliateStatus] = None
