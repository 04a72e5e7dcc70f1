"""
Admin schemas
"""

from pydantic import BaseModel
from typing import Optional

from ecommerce_api.models import UserRole

class UserFilters(BaseModel):
    role: Optional[UserRole] = None
    search: Optional[str] = None
    is_active: Optional[bool] = None

class UserStatusUpdate(BaseModel):
    is_active: bool
