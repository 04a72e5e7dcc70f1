"""
Order API routes
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import date
import logging

from ecommerce_api.core.database import get_db
from ecommerce_api.models import OrderStatus, User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.utils.dependencies import get_current_active_user, get_pagination_params, require_admin
from ecommerce_api.utils.pagination import PaginationParams
from .schemas import OrderCreate, OrderFilters, OrderStatusUpdate
from .services import OrderService

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description="Checkout the current cart"
)
async def create_order(
    order_data: OrderCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Create new order"""
    service = OrderService(db)
    order = await service.create_order(current_user, order_data)
    return success_response(order, "Pedido creado exitosamente")

@router.get("", response_model=ApiResponse, summary="List my orders")
async def list_orders(
    status: Optional[OrderStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """List user orders"""
    service = OrderService(db)
    result = await service.get_user_orders(
        current_user.id,
        OrderFilters(status=status, date_from=date_from, date_to=date_to),
        pagination.page,
        pagination.limit
    )
    return success_response(result)

@router.get("/admin", response_model=ApiResponse, summary="List all orders")
async def list_orders_for_admin(
    status: Optional[OrderStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    region: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Admin order listing, scoped to the admin's regions"""
    service = OrderService(db)
    filters = OrderFilters(status=status, date_from=date_from, date_to=date_to, region=region, search=search)
    result = await service.get_orders_for_admin(current_user, filters, pagination.page, pagination.limit)
    return success_response(result)

@router.get("/{order_id}", response_model=ApiResponse, summary="Get order details")
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Get order details"""
    service = OrderService(db)
    return success_response(await service.get_order(order_id, current_user))

@router.put("/{order_id}/status", response_model=ApiResponse, summary="Update order status")
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Move an order through its lifecycle"""
    service = OrderService(db)
    order = await service.update_order_status(order_id, data)
    logger.info("Admin %s updated order %s", current_user.id, order_id)
    return success_response(order, "Estado del pedido actualizado")
