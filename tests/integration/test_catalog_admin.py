"""
Integration tests for catalog administration.

Tests cover:
- Category detail, update and soft delete
- Stock adjustment and availability checks
"""

import pytest

from ecommerce_api.api.v1.categories import crud
from ecommerce_api.api.v1.products.services import ProductService
from ecommerce_api.core.exceptions import ConflictException, DuplicateResourceException, NotFoundException

pytestmark = pytest.mark.integration


class TestCategoryAdmin:
    """Test category maintenance."""

    async def test_detail_counts_active_products(self, db_session, factory):
        category = await factory.category()
        await factory.product(category=category)
        await factory.product(category=category)
        hidden = await factory.product(category=category)
        hidden.is_active = False
        await db_session.commit()

        detail = await crud.get_category_detail(db_session, category.id)

        assert detail["product_count"] == 2
        assert len(detail["recent_products"]) == 2
        assert hidden.id not in {p["id"] for p in detail["recent_products"]}

    async def test_inactive_category_only_visible_to_admins(self, db_session, factory):
        category = await factory.category()
        category.is_active = False
        await db_session.commit()

        with pytest.raises(NotFoundException):
            await crud.get_category_detail(db_session, category.id)
        detail = await crud.get_category_detail(db_session, category.id, include_inactive=True)
        assert detail["is_active"] is False

    async def test_rename_regenerates_slug(self, db_session, factory):
        category = await factory.category()

        updated = await crud.update_category(db_session, category.id, {"name": "Nueva Línea"})

        assert updated.name == "Nueva Línea"
        assert updated.slug == "nueva-linea"

    async def test_rename_to_existing_name(self, db_session, factory):
        first = await factory.category()
        second = await factory.category()
        first_name = first.name

        with pytest.raises(DuplicateResourceException):
            await crud.update_category(db_session, second.id, {"name": first_name})

    async def test_delete_refused_with_active_products(self, db_session, factory):
        category = await factory.category()
        await factory.product(category=category)

        with pytest.raises(ConflictException) as exc_info:
            await crud.delete_category(db_session, category.id)

        assert exc_info.value.error_code == "CATEGORY_HAS_PRODUCTS"

    async def test_delete_is_soft(self, db_session, factory):
        category = await factory.category()

        deleted = await crud.delete_category(db_session, category.id)

        assert deleted.is_active is False
        assert await crud.get_category_by_id(db_session, category.id) is not None

    async def test_unknown_category(self, db_session):
        with pytest.raises(NotFoundException):
            await crud.update_category(db_session, 9999, {"description": "x"})


class TestStockAdmin:
    """Test stock maintenance and availability."""

    async def test_update_stock(self, db_session, factory):
        product = await factory.product(stock=10)

        updated = await ProductService(db_session).update_stock(product.id, 3)

        assert updated.stock == 3

    async def test_update_stock_unknown_product(self, db_session):
        with pytest.raises(NotFoundException):
            await ProductService(db_session).update_stock(9999, 3)

    async def test_check_availability_keeps_request_order(self, db_session, factory):
        in_stock = await factory.product(stock=4)
        sold_out = await factory.product(stock=0)
        inactive = await factory.product(stock=8)
        inactive.is_active = False
        await db_session.commit()

        result = await ProductService(db_session).check_availability(
            [sold_out.id, 9999, in_stock.id, inactive.id]
        )

        assert [r["product_id"] for r in result] == [sold_out.id, 9999, in_stock.id, inactive.id]
        assert [r["available"] for r in result] == [False, False, True, False]
        assert result[2]["stock"] == 4
        assert result[1]["name"] is None
