"""In-app notification endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from ecommerce_api.core.database import get_db
from ecommerce_api.models import User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.services.notification import NotificationService
from ecommerce_api.utils.dependencies import get_current_active_user, get_pagination_params
from ecommerce_api.utils.pagination import PaginationParams

router = APIRouter()

@router.get("", response_model=ApiResponse, summary="List my notifications")
async def get_notifications(
    unread: Optional[bool] = None,
    type: Optional[str] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Notifications of the current user, newest first"""
    service = NotificationService(db)
    result = await service.get_user_notifications(
        current_user.id,
        unread=unread,
        type=type,
        page=pagination.page,
        limit=pagination.limit
    )
    return success_response(result, "Notificaciones obtenidas")

@router.put("/mark-all-read", response_model=ApiResponse, summary="Mark all notifications as read")
async def mark_all_as_read(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    updated = await NotificationService(db).mark_all_as_read(current_user.id)
    return success_response({"updated": updated}, "Todas las notificaciones marcadas como leídas")

@router.put("/{notification_id}/read", response_model=ApiResponse, summary="Mark notification as read")
async def mark_as_read(
    notification_id: int,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await NotificationService(db).mark_as_read(current_user.id, notification_id)
    return success_response(notification.to_dict(exclude=["dedupe_key"]), "Notificación marcada como leída")
