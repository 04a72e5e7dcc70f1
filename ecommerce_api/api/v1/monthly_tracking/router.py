"""
Monthly purchase compliance API routes
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import date, datetime
import logging

from ecommerce_api.core.exceptions import BadRequestException
from ecommerce_api.core.database import get_db
from ecommerce_api.models import User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.services.monthly_tracking import MonthlyTrackingService
from ecommerce_api.utils.dependencies import get_month_param, require_affiliate, require_admin_general
from ecommerce_api.utils.helpers import month_label

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/current-status", response_model=ApiResponse, summary="Current month compliance")
async def get_current_status(
    current_user: User = Depends(require_affiliate),
    db: AsyncSession = Depends(get_db)
):
    """Units bought this month against the monthly minimum"""
    service = MonthlyTrackingService(db)
    result = await service.get_current_month_status(current_user.id)
    return success_response(result, "Estado del mes actual obtenido")

@router.get("/my-history", response_model=ApiResponse, summary="Compliance history")
async def get_my_history(
    months: int = Query(12, ge=1, le=36),
    current_user: User = Depends(require_affiliate),
    db: AsyncSession = Depends(get_db)
):
    service = MonthlyTrackingService(db)
    history = await service.get_monthly_history(current_user.id, months)
    return success_response({"history": history}, "Historial mensual obtenido")

@router.post("/check", response_model=ApiResponse, summary="Recompute monthly compliance")
async def check_monthly_buy(
    month: Optional[date] = Depends(get_month_param),
    current_user: User = Depends(require_affiliate),
    db: AsyncSession = Depends(get_db)
):
    """Recompute and store compliance for a month (current month by default)"""
    service = MonthlyTrackingService(db)
    achieved = await service.check_monthly_buy(current_user.id, month)
    return success_response(
        {"month": month_label(month or datetime.utcnow().date()), "achieved": achieved},
        "Cumplimiento mensual actualizado"
    )

@router.post("/run-deactivation", response_model=ApiResponse, summary="Run monthly deactivation")
async def run_deactivation(
    month: Optional[date] = Depends(get_month_param),
    current_user: User = Depends(require_admin_general),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate affiliates that missed the minimum of a closed month (YYYY-MM)"""
    if month is None:
        raise BadRequestException("Debe indicar el mes a evaluar (YYYY-MM)", error_code="VALIDATION_ERROR")

    service = MonthlyTrackingService(db)
    deactivated = await service.deactivate_for_month(month)
    logger.info(
        "Admin %s ran monthly deactivation for %s: %d affiliates",
        current_user.id, month_label(month), len(deactivated)
    )
    return success_response(
        {"month": month_label(month), "deactivated": deactivated, "count": len(deactivated)},
        "Proceso de desactivación ejecutado"
    )
