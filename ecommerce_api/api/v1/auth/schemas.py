"""
Authentication schemas for request/response validation
"""

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator
from typing import Optional, List

from ecommerce_api.core.config import settings
from ecommerce_api.models import UserRole
from ecommerce_api.utils.validators import validate_dni, validate_phone_number, normalize_text

class LoginRequest(BaseModel):
    """Login with DNI and password"""
    dni: str = Field(..., examples=["12345678"])
    password: str = Field(..., min_length=settings.PASSWORD_MIN_LENGTH, max_length=50)

    @field_validator("dni")
    @classmethod
    def validate_dni(cls, v):
        return validate_dni(v)

class RegisterUserRequest(BaseModel):
    """Visitor registration"""
    dni: str
    full_name: str = Field(..., min_length=2, max_length=150)
    email: EmailStr
    password: str = Field(..., min_length=settings.PASSWORD_MIN_LENGTH, max_length=50)

    @field_validator("dni")
    @classmethod
    def validate_dni(cls, v):
        return validate_dni(v)

    @field_validator("full_name")
    @classmethod
    def normalize_name(cls, v):
        return normalize_text(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "dni": "12345678",
                "full_name": "Ana Torres",
                "email": "ana@example.com",
                "password": "secreto123"
            }
        }
    }

class AffiliateProfile(BaseModel):
    """Contact data kept on the affiliate profile"""
    phone: str
    region: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    reference: Optional[str] = Field(None, max_length=500)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone_number(v)

class RegisterAffiliateRequest(RegisterUserRequest, AffiliateProfile):
    """Affiliate self-registration, optionally under a sponsor"""
    sponsor_id: Optional[int] = Field(None, ge=1)

class RegisterAdminRequest(RegisterUserRequest):
    """Admin account created by a general admin"""
    role: UserRole = UserRole.ADMIN
    regions: List[str] = Field(default_factory=list)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v not in (UserRole.ADMIN, UserRole.ADMIN_GENERAL):
            raise ValueError("Rol de administrador inválido")
        return v

class UpdateProfileRequest(BaseModel):
    """Partial profile update; contact fields only apply to affiliates"""
    full_name: Optional[str] = Field(None, min_length=2, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    region: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    reference: Optional[str] = Field(None, max_length=500)

    @field_validator("full_name")
    @classmethod
    def normalize_name(cls, v):
        return normalize_text(v) if v is not None else v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone_number(v) if v is not None else v

class MaxReferralsUpdate(BaseModel):
    """New referral cap for an affiliate"""
    max_referrals: int = Field(
        ...,
        ge=0,
        le=1000,
        validation_alias=AliasChoices("max_referrals", "maxReferrals")
    )
