"""
Statistics API routes
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ecommerce_api.core.database import get_db
from ecommerce_api.models import User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.utils.dependencies import require_affiliate
from .services import StatsService, TOP_PRODUCTS_LIMIT

router = APIRouter()

@router.get("/affiliate-performance", response_model=ApiResponse, summary="Affiliate performance")
async def get_affiliate_performance(
    current_user: User = Depends(require_affiliate),
    db: AsyncSession = Depends(get_db)
):
    """Sales, network, commission and compliance figures of the caller"""
    service = StatsService(db)
    result = await service.get_affiliate_performance(current_user.id)
    return success_response(result, "Estadísticas de rendimiento obtenidas")

@router.get("/top-products", response_model=ApiResponse, summary="Top products")
async def get_top_products(
    limit: int = Query(TOP_PRODUCTS_LIMIT, ge=1, le=50),
    db: AsyncSession = Depends(get_db)
):
    service = StatsService(db)
    return success_response(await service.get_top_products(limit), "Top productos obtenidos")
