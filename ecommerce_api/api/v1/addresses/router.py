"""
Shipping address API routes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ecommerce_api.core.database import get_db
from ecommerce_api.models import User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.utils.dependencies import get_current_active_user
from .schemas import AddressCreate, AddressUpdate
from .services import AddressService

router = APIRouter()

@router.get("", response_model=ApiResponse, summary="List addresses")
async def list_addresses(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    service = AddressService(db)
    addresses = await service.list_addresses(current_user.id)
    return success_response([address.to_dict() for address in addresses])

@router.get("/default", response_model=ApiResponse, summary="Get default address")
async def get_default_address(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    service = AddressService(db)
    address = await service.get_default(current_user.id)
    return success_response(address.to_dict() if address else None)

@router.post(
    "",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create address"
)
async def create_address(
    data: AddressCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    service = AddressService(db)
    address = await service.add_address(current_user.id, data.model_dump())
    return success_response(address.to_dict(), "Dirección creada exitosamente")

@router.put("/{address_id}", response_model=ApiResponse, summary="Update address")
async def update_address(
    address_id: int,
    data: AddressUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    service = AddressService(db)
    address = await service.update_address(current_user.id, address_id, data.model_dump(exclude_unset=True))
    return success_response(address.to_dict(), "Dirección actualizada exitosamente")

@router.put("/{address_id}/default", response_model=ApiResponse, summary="Set default address")
async def set_default_address(
    address_id: int,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    service = AddressService(db)
    address = await service.set_default(current_user.id, address_id)
    return success_response(address.to_dict(), "Dirección predeterminada actualizada")

@router.delete("/{address_id}", response_model=ApiResponse, summary="Delete address")
async def delete_address(
    address_id: int,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    service = AddressService(db)
    await service.delete_address(current_user.id, address_id)
    return success_response(None, "Dirección eliminada exitosamente")
