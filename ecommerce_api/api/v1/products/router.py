"""
Product API routes
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from decimal import Decimal

from ecommerce_api.core.database import get_db
from ecommerce_api.models import User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.utils.dependencies import (
    get_optional_current_user,
    get_pagination_params,
    require_admin
)
from ecommerce_api.utils.pagination import PaginationParams
from .filters import ProductFilter
from .schemas import AvailabilityRequest, ProductCreate, ProductUpdate, StockUpdate
from .services import ProductService

router = APIRouter()

@router.get("", response_model=ApiResponse, summary="List products")
async def list_products(
    search: Optional[str] = Query(None, max_length=100),
    category_id: Optional[int] = Query(None, ge=1),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    in_stock: Optional[bool] = None,
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: Optional[User] = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List products; prices follow the caller's role"""
    filters = ProductFilter(
        search=search,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        is_affiliate=current_user is not None and current_user.is_affiliate
    )
    service = ProductService(db)
    result = await service.list_products(filters, current_user, pagination.page, pagination.limit)
    return success_response(result)

@router.get("/{product_id}", response_model=ApiResponse, summary="Get product")
async def get_product(
    product_id: int,
    current_user: Optional[User] = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ProductService(db)
    return success_response(await service.get_product(product_id, current_user))

@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create product"
)
async def create_product(
    data: ProductCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = ProductService(db)
    product = await service.create_product(data)
    return success_response(ProductService.serialize(product, current_user), "Producto creado exitosamente")

@router.put("/{product_id}", response_model=ApiResponse, summary="Update product")
async def update_product(
    product_id: int,
    data: ProductUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = ProductService(db)
    product = await service.update_product(product_id, data)
    return success_response(ProductService.serialize(product, current_user), "Producto actualizado exitosamente")

@router.post("/{product_id}/stock", response_model=ApiResponse, summary="Set product stock")
async def update_stock(
    product_id: int,
    data: StockUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    service = ProductService(db)
    product = await service.update_stock(product_id, data.stock)
    return success_response(ProductService.serialize(product, current_user), "Stock actualizado exitosamente")

@router.post("/check-availability", response_model=ApiResponse, summary="Check availability")
async def check_availability(
    data: AvailabilityRequest,
    db: AsyncSession = Depends(get_db)
):
    """Stock availability for a list of product ids"""
    service = ProductService(db)
    return success_response(await service.check_availability(data.ids), "Disponibilidad verificada")
