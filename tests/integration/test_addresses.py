"""Integration tests for shipping address rules."""

import pytest
from sqlalchemy import select

from ecommerce_api.api.v1.addresses.services import AddressService
from ecommerce_api.core.exceptions import NotFoundException, OnlyAddressException
from ecommerce_api.models import ShippingAddress

pytestmark = pytest.mark.integration


async def _defaults(session, user_id):
    result = await session.execute(
        select(ShippingAddress.id).where(
            ShippingAddress.user_id == user_id,
            ShippingAddress.is_default.is_(True),
        )
    )
    return result.scalars().all()


class TestAddresses:
    """Test default handling and deletion."""

    async def test_only_address_cannot_be_deleted(self, db_session, factory):
        user = await factory.user()
        address = await factory.address(user)

        with pytest.raises(OnlyAddressException):
            await AddressService(db_session).delete_address(user.id, address.id)

    async def test_deleting_default_promotes_oldest(self, db_session, factory):
        user = await factory.user()
        first = await factory.address(user, is_default=True)
        second = await factory.address(user, region="Cusco", is_default=False)
        await factory.address(user, region="Piura", is_default=False)

        await AddressService(db_session).delete_address(user.id, first.id)

        assert await _defaults(db_session, user.id) == [second.id]

    async def test_set_default_leaves_a_single_default(self, db_session, factory):
        user = await factory.user()
        await factory.address(user, is_default=True)
        other = await factory.address(user, is_default=False)

        await AddressService(db_session).set_default(user.id, other.id)

        assert await _defaults(db_session, user.id) == [other.id]

    async def test_first_address_becomes_default(self, db_session, factory):
        user = await factory.user()

        address = await AddressService(db_session).add_address(user.id, {
            "name": "Ana Torres",
            "phone": "999888777",
            "region": "Lima",
            "city": "Lima",
            "address": "Av. Arequipa 1234",
        })

        assert address.is_default is True

    async def test_foreign_address_is_not_found(self, db_session, factory):
        owner = await factory.user()
        other = await factory.user()
        address = await factory.address(owner)

        with pytest.raises(NotFoundException):
            await AddressService(db_session).get_address(other.id, address.id)
