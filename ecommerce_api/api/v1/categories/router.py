"""
Category API router
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from ecommerce_api.core.database import get_db
from ecommerce_api.models import User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.utils.dependencies import get_optional_current_user, require_admin
from . import crud

router = APIRouter()

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    is_active: bool = True

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    is_active: Optional[bool] = None

@router.get("", response_model=ApiResponse, summary="List categories")
async def list_categories(
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_db)
):
    """List categories with product counts"""
    return success_response(await crud.list_categories(db, include_inactive))

@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create category"
)
async def create_category(
    data: CategoryCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create category (admin only)"""
    category = await crud.create_category(db, data.model_dump())
    return success_response(category.to_dict(), "Categoría creada exitosamente")

@router.get("/{category_id}", response_model=ApiResponse, summary="Get category")
async def get_category(
    category_id: int,
    current_user: Optional[User] = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Category detail; inactive categories are only visible to admins"""
    include_inactive = current_user is not None and current_user.is_admin
    category = await crud.get_category_detail(db, category_id, include_inactive)
    return success_response(category, "Categoría encontrada")

@router.patch("/{category_id}", response_model=ApiResponse, summary="Update category")
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    category = await crud.update_category(db, category_id, data.model_dump(exclude_unset=True, exclude_none=True))
    return success_response(category.to_dict(), "Categoría actualizada exitosamente")

@router.delete("/{category_id}", response_model=ApiResponse, summary="Delete category")
async def delete_category(
    category_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate a category without active products"""
    await crud.delete_category(db, category_id)
    return success_response(None, "Categoría eliminada exitosamente")
