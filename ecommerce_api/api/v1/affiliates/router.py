"""
Affiliate network API routes
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from ecommerce_api.core.database import get_db
from ecommerce_api.models import User, AffiliateStatus
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.utils.dependencies import (
    get_pagination_params,
    require_affiliate,
    require_affiliate_or_admin,
)
from ecommerce_api.utils.pagination import PaginationParams
from .schemas import RegisterReferralRequest, AffiliateStatusUpdate, NetworkFilters
from .services import AffiliateService

router = APIRouter()

@router.get("/my-network", response_model=ApiResponse, summary="My affiliate network")
async def get_my_network(
    search: Optional[str] = Query(None, max_length=100),
    status: Optional[AffiliateStatus] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(require_affiliate),
    db: AsyncSession = Depends(get_db)
):
    """Direct referrals of the current affiliate with statistics"""
    service = AffiliateService(db)
    result = await service.get_affiliate_network(
        current_user.id,
        NetworkFilters(search=search, status=status),
        pagination.page,
        pagination.limit
    )
    return success_response(result, "Red de afiliados obtenida")

@router.post(
    "/register-referral",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register referral",
    description="Create a downline affiliate and return its temporary password"
)
async def register_referral(
    data: RegisterReferralRequest,
    current_user: User = Depends(require_affiliate_or_admin),
    db: AsyncSession = Depends(get_db)
):
    service = AffiliateService(db)
    result = await service.register_referral(current_user, data)
    return success_response(
        result,
        "Afiliado registrado exitosamente. Comparte la contraseña temporal con el nuevo afiliado."
    )

@router.get("/{affiliate_id}/stats", response_model=ApiResponse, summary="Referral statistics")
async def get_affiliate_stats(
    affiliate_id: int,
    current_user: User = Depends(require_affiliate),
    db: AsyncSession = Depends(get_db)
):
    service = AffiliateService(db)
    result = await service.get_affiliate_stats_for_sponsor(current_user.id, affiliate_id)
    return success_response(result, "Estadísticas del afiliado obtenidas")

@router.put("/{affiliate_id}/status", response_model=ApiResponse, summary="Activate or deactivate referral")
async def toggle_affiliate_status(
    affiliate_id: int,
    data: AffiliateStatusUpdate,
    current_user: User = Depends(require_affiliate_or_admin),
    db: AsyncSession = Depends(get_db)
):
    service = AffiliateService(db)
    result = await service.toggle_affiliate_status(current_user.id, affiliate_id, data.status)
    action = "activado" if data.status == AffiliateStatus.ACTIVE else "desactivado"
    return success_response(result, f"Afiliado {action} exitosamente")
