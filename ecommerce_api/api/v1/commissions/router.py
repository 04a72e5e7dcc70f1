"""
Commission API routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import date
import logging

from ecommerce_api.core.database import get_db
from ecommerce_api.models import User, CommissionType, CommissionStatus
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.services.commission_service import CommissionService
from ecommerce_api.utils.dependencies import (
    get_month_param,
    get_pagination_params,
    require_admin,
    require_affiliate,
)
from ecommerce_api.utils.pagination import PaginationParams
from .schemas import MarkPaidRequest

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/my-commissions", response_model=ApiResponse, summary="List my commissions")
async def get_my_commissions(
    type: Optional[CommissionType] = None,
    status: Optional[CommissionStatus] = None,
    month: Optional[date] = Depends(get_month_param),
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(require_affiliate),
    db: AsyncSession = Depends(get_db)
):
    """Commissions earned by the current affiliate with monthly and all-time totals"""
    service = CommissionService(db)
    result = await service.get_affiliate_commissions(
        current_user.id,
        month=month,
        type=type,
        status=status,
        page=pagination.page,
        limit=pagination.limit
    )
    return success_response(result, "Comisiones obtenidas")

@router.get("/by-referral", response_model=ApiResponse, summary="Commissions per referral")
async def get_commissions_by_referral(
    month: Optional[date] = Depends(get_month_param),
    current_user: User = Depends(require_affiliate),
    db: AsyncSession = Depends(get_db)
):
    service = CommissionService(db)
    referrals = await service.get_commissions_by_referral(current_user.id, month)
    return success_response({"referrals": referrals}, "Comisiones por referido obtenidas")

@router.get("/pending", response_model=ApiResponse, summary="Pending commissions")
async def get_pending_commissions(
    region: Optional[str] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Commissions awaiting approval, scoped to the admin's regions"""
    service = CommissionService(db)
    result = await service.get_pending_commissions(current_user, region, pagination.page, pagination.limit)
    return success_response(result, "Comisiones pendientes obtenidas")

@router.post("/mark-as-paid", response_model=ApiResponse, summary="Mark commissions as paid")
async def mark_commissions_as_paid(
    data: MarkPaidRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Settle approved commissions"""
    service = CommissionService(db)
    updated = await service.mark_commissions_as_paid(data.commission_ids)
    logger.info("Admin %s settled %d commissions", current_user.id, updated)
    return success_response({"updated": updated}, f"{updated} comisiones marcadas como pagadas")

@router.put("/{commission_id}/approve", response_model=ApiResponse, summary="Approve commission")
async def approve_commission(
    commission_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = CommissionService(db)
    commission = await service.approve_commission(commission_id)
    logger.info("Admin %s approved commission %s", current_user.id, commission_id)
    return success_response(commission.to_dict(), "Comisión aprobada")
