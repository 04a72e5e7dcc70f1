"""
Reward schemas
"""

from pydantic import BaseModel, Field
from typing import Optional

class RewardBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)
    points_required: int = Field(..., ge=1)
    stock: int = Field(0, ge=0)

class RewardCreate(RewardBase):
    is_active: bool = True

class RewardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)
    points_required: Optional[int] = Field(None, ge=1)
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

class RewardClaimRequest(BaseModel):
    """Claim a reward with accumulated points"""
    reward_id: int = Field(..., ge=1)
