"""
Commission schemas
"""

from pydantic import BaseModel, Field
from typing import List

class MarkPaidRequest(BaseModel):
    """Batch of approved commissions to settle"""
    commission_ids: List[int] = Field(..., min_length=1, max_length=500)
