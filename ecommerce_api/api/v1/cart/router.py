"""
Shopping cart API routes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ecommerce_api.core.database import get_db
from ecommerce_api.models import User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.utils.dependencies import get_current_active_user
from .schemas import CartItemCreate, CartItemUpdate
from .services import CartService

router = APIRouter()

@router.get("", response_model=ApiResponse, summary="Get cart")
async def get_cart(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current user's cart"""
    service = CartService(db)
    return success_response(await service.get_cart(current_user))

@router.get("/summary", response_model=ApiResponse, summary="Checkout summary")
async def get_cart_summary(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Cart totals with shipping cost"""
    service = CartService(db)
    return success_response(await service.get_checkout_summary(current_user))

@router.post(
    "/items",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add item to cart"
)
async def add_to_cart(
    item_data: CartItemCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Add item to cart"""
    service = CartService(db)
    cart = await service.add_item(current_user, item_data.product_id, item_data.quantity)
    return success_response(cart, "Producto agregado al carrito")

@router.put("/items/{item_id}", response_model=ApiResponse, summary="Update cart item")
async def update_cart_item(
    item_id: int,
    update_data: CartItemUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Update cart item quantity"""
    service = CartService(db)
    cart = await service.update_item(current_user, item_id, update_data.quantity)
    return success_response(cart, "Carrito actualizado")

@router.delete("/items/{item_id}", response_model=ApiResponse, summary="Remove item from cart")
async def remove_from_cart(
    item_id: int,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove item from cart"""
    service = CartService(db)
    cart = await service.remove_item(current_user, item_id)
    return success_response(cart, "Producto eliminado del carrito")

@router.delete("", response_model=ApiResponse, summary="Clear cart")
async def clear_cart(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove all items from cart"""
    service = CartService(db)
    await service.clear_cart(current_user.id)
    return success_response(None, "Carrito vaciado")
