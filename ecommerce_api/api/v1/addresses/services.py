"""
Shipping address service
Keeps exactly one default address per user
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
import logging

from ecommerce_api.models import ShippingAddress
from ecommerce_api.core.exceptions import NotFoundException, OnlyAddressException

logger = logging.getLogger(__name__)

class AddressService:
    """Service for shipping addresses"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_addresses(self, user_id: int) -> List[ShippingAddress]:
        result = await self.db.execute(
            select(ShippingAddress)
            .where(ShippingAddress.user_id == user_id)
            .order_by(ShippingAddress.is_default.desc(), ShippingAddress.created_at.asc(), ShippingAddress.id.asc())
        )
        return list(result.scalars().all())

    async def get_address(self, user_id: int, address_id: int) -> ShippingAddress:
        result = await self.db.execute(
            select(ShippingAddress).where(
                ShippingAddress.id == address_id,
                ShippingAddress.user_id == user_id
            )
        )
        address = result.scalar_one_or_none()
        if not address:
            raise NotFoundException("Dirección no encontrada")
        return address

    async def get_default(self, user_id: int) -> Optional[ShippingAddress]:
        result = await self.db.execute(
            select(ShippingAddress).where(
                ShippingAddress.user_id == user_id,
                ShippingAddress.is_default.is_(True)
            )
        )
        return result.scalars().first()

    async def _clear_defaults(self, user_id: int) -> None:
        await self.db.execute(
            update(ShippingAddress)
            .where(ShippingAddress.user_id == user_id, ShippingAddress.is_default.is_(True))
            .values(is_default=False)
        )

    async def add_address(self, user_id: int, data: Dict[str, Any], commit: bool = True) -> ShippingAddress:
        """
        Create an address; the first one always becomes default

        Args:
            user_id: Owner
            data: Address fields
            commit: Whether to commit; checkout passes False to stay in its transaction

        Returns:
            Created address
        """
        count = await self.db.scalar(
            select(func.count(ShippingAddress.id)).where(ShippingAddress.user_id == user_id)
        )
        is_default = bool(data.pop("is_default", False)) or count == 0

        if is_default:
            await self._clear_defaults(user_id)

        address = ShippingAddress(user_id=user_id, is_default=is_default, **data)
        self.db.add(address)
        await self.db.flush()

        if commit:
            await self.db.commit()
        return address

    async def update_address(self, user_id: int, address_id: int, data: Dict[str, Any]) -> ShippingAddress:
        address = await self.get_address(user_id, address_id)
        make_default = data.pop("is_default", None)

        try:
            if make_default and not address.is_default:
                await self._clear_defaults(user_id)
                address.is_default = True

            address.update_from_dict(data, exclude=["id", "user_id", "created_at", "updated_at"])
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return address

    async def delete_address(self, user_id: int, address_id: int) -> None:
        """
        Delete an address, promoting the oldest remaining one if it was default

        Raises:
            OnlyAddressException: If it is the user's only address
        """
        address = await self.get_address(user_id, address_id)
        count = await self.db.scalar(
            select(func.count(ShippingAddress.id)).where(ShippingAddress.user_id == user_id)
        )
        if count <= 1:
            raise OnlyAddressException()

        was_default = address.is_default
        try:
            await self.db.delete(address)
            await self.db.flush()

            if was_default:
                oldest = (await self.db.execute(
                    select(ShippingAddress)
                    .where(ShippingAddress.user_id == user_id)
                    .order_by(ShippingAddress.created_at.asc(), ShippingAddress.id.asc())
                    .limit(1)
                )).scalar_one()
                oldest.is_default = True

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Address %s of user %s deleted", address_id, user_id)

    async def set_default(self, user_id: int, address_id: int) -> ShippingAddress:
        """Clear every default and set one, atomically"""
        address = await self.get_address(user_id, address_id)
        try:
            await self._clear_defaults(user_id)
            address.is_default = True
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return address
