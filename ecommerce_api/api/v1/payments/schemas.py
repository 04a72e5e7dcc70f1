"""
Payment schemas
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from decimal import Decimal

from ecommerce_api.models import PaymentMethod

class PaymentConfirm(BaseModel):
    """Manual payment confirmation"""
    order_id: int = Field(..., ge=1)
    method: PaymentMethod
    amount: Optional[Decimal] = Field(None, gt=0)
    reference: Optional[str] = Field(None, max_length=255)
    bcp_code: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def check_bcp_code(self):
        if self.method == PaymentMethod.BCP_CODE and not self.bcp_code:
            raise ValueError("El código de operación BCP es obligatorio")
        return self
