"""
Payment API routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ecommerce_api.core.database import get_db
from ecommerce_api.models import User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.utils.dependencies import get_current_active_user
from ecommerce_api.api.v1.orders.services import OrderService
from .schemas import PaymentConfirm
from .services import PaymentService

router = APIRouter()

@router.get(
    "/methods",
    response_model=ApiResponse,
    summary="Get payment methods",
    description="Get available payment methods"
)
async def get_payment_methods():
    """Get available payment methods"""
    return success_response({"methods": PaymentService.get_payment_methods()}, "Métodos de pago obtenidos")

@router.post(
    "/confirm",
    response_model=ApiResponse,
    summary="Confirm payment",
    description="Record the payment of a pending order and run commissions, points and compliance"
)
async def confirm_payment(
    payment_data: PaymentConfirm,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Confirm payment of an order"""
    service = OrderService(db)
    result = await service.confirm_payment(
        payment_data.order_id,
        current_user,
        payment_data.model_dump(mode="json", exclude={"order_id"})
    )
    return success_response(result, "Pago confirmado exitosamente")
