"""Admin management endpoints"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ecommerce_api.core.database import get_db
from ecommerce_api.models import User, UserRole
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.utils.dependencies import get_pagination_params, require_admin
from ecommerce_api.utils.pagination import PaginationParams
from .schemas import UserFilters, UserStatusUpdate
from .services import AdminService

router = APIRouter()

@router.get("/dashboard", response_model=ApiResponse, summary="Admin dashboard")
async def get_dashboard(
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """KPIs, recent orders, low stock and pending commissions"""
    dashboard = await AdminService(db).get_dashboard(current_user)
    return success_response(dashboard, "Dashboard obtenido")

@router.get("/users", response_model=ApiResponse, summary="List users")
async def get_users(
    role: Optional[UserRole] = None,
    search: Optional[str] = Query(None, max_length=100),
    is_active: Optional[bool] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Get users for admin management"""
    result = await AdminService(db).get_users(
        current_user,
        UserFilters(role=role, search=search, is_active=is_active),
        pagination.page,
        pagination.limit
    )
    return success_response(result, "Usuarios obtenidos")

@router.put("/users/{user_id}/toggle-status", response_model=ApiResponse, summary="Toggle user status")
async def toggle_user_status(
    user_id: int,
    data: UserStatusUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    result = await AdminService(db).toggle_user_status(current_user, user_id, data.is_active)
    action = "activado" if data.is_active else "desactivado"
    return success_response(result, f"Usuario {action} exitosamente")
