"""
Integration tests for checkout and payment confirmation.

Tests cover:
- Checkout decrements stock or nothing at all
- Payment confirmation runs the post-payment steps
- A paid order cannot be paid again
- Admin status transitions
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from ecommerce_api.api.v1.orders.schemas import OrderCreate, OrderStatusUpdate
from ecommerce_api.api.v1.orders.services import OrderService
from ecommerce_api.core.exceptions import (
    BadRequestException,
    ForbiddenException,
    InsufficientStockException,
    OrderAlreadyProcessedException,
)
from ecommerce_api.models import (
    Affiliate,
    Cart,
    CartItem,
    Commission,
    CommissionType,
    Notification,
    Order,
    OrderStatus,
    Product,
    UserRole,
)

pytestmark = pytest.mark.integration

BCP_PAYMENT = {"method": "BCP_code", "bcp_code": "00123456"}


async def _fill_cart(session, user, lines):
    cart = Cart(user_id=user.id)
    session.add(cart)
    await session.flush()
    for product, quantity in lines:
        session.add(CartItem(cart_id=cart.id, product_id=product.id, quantity=quantity))
    await session.commit()


async def _stock(session, product_id):
    return await session.scalar(select(Product.stock).where(Product.id == product_id))


class TestCreateOrder:
    """Test checkout from the cart."""

    async def test_affiliate_checkout_uses_affiliate_price(self, db_session, factory):
        buyer = await factory.affiliate()
        address = await factory.address(buyer)
        product = await factory.product(public_price="100.00", affiliate_price="80.00", stock=10)
        await _fill_cart(db_session, buyer, [(product, 2)])

        order = await OrderService(db_session).create_order(
            buyer, OrderCreate(shipping_address_id=address.id)
        )

        assert order["status"] == "pending"
        assert order["items"][0]["unit_price"] == 80.0
        # 2 x 80.00 plus the default shipping cost
        assert order["total_amount"] == 175.0
        assert order["shipping_cost"] == 15.0
        assert await _stock(db_session, product.id) == 8
        assert await db_session.scalar(select(func.count(CartItem.id))) == 0

    async def test_visitor_pays_public_price(self, db_session, factory):
        buyer = await factory.user(UserRole.VISITOR)
        address = await factory.address(buyer)
        product = await factory.product(public_price="100.00", affiliate_price="80.00")
        await _fill_cart(db_session, buyer, [(product, 1)])

        order = await OrderService(db_session).create_order(
            buyer, OrderCreate(shipping_address_id=address.id)
        )

        assert order["items"][0]["unit_price"] == 100.0

    async def test_insufficient_stock_changes_nothing(self, db_session, factory):
        buyer = await factory.affiliate()
        address = await factory.address(buyer)
        plenty = await factory.product(stock=10)
        scarce = await factory.product(stock=1)
        plenty_id, scarce_id = plenty.id, scarce.id
        await _fill_cart(db_session, buyer, [(plenty, 2), (scarce, 3)])

        with pytest.raises(InsufficientStockException):
            await OrderService(db_session).create_order(
                buyer, OrderCreate(shipping_address_id=address.id)
            )

        assert await _stock(db_session, plenty_id) == 10
        assert await _stock(db_session, scarce_id) == 1
        assert await db_session.scalar(select(func.count(Order.id))) == 0
        assert await db_session.scalar(select(func.count(CartItem.id))) == 2

    async def test_empty_cart(self, db_session, factory):
        buyer = await factory.affiliate()
        address = await factory.address(buyer)

        with pytest.raises(BadRequestException) as exc_info:
            await OrderService(db_session).create_order(
                buyer, OrderCreate(shipping_address_id=address.id)
            )

        assert exc_info.value.error_code == "EMPTY_CART"


class TestConfirmPayment:
    """Test payment confirmation."""

    async def _pending_order(self, session, factory, buyer):
        address = await factory.address(buyer)
        product = await factory.product(stock=10)
        await _fill_cart(session, buyer, [(product, 2)])
        order = await OrderService(session).create_order(
            buyer, OrderCreate(shipping_address_id=address.id)
        )
        return order["id"]

    async def test_affiliate_payment_runs_every_step(self, db_session, factory):
        buyer = await factory.affiliate()
        order_id = await self._pending_order(db_session, factory, buyer)

        result = await OrderService(db_session).confirm_payment(order_id, buyer, dict(BCP_PAYMENT))

        assert result["order"]["status"] == "paid"
        assert result["payment"]["bcp_code"] == "00123456"
        steps = {step["name"]: step["status"] for step in result["post_payment"]["steps"]}
        assert steps == {
            "commissions": "completed",
            "points": "completed",
            "compliance": "completed",
            "notification": "completed",
        }

        direct = (await db_session.execute(
            select(Commission).where(Commission.affiliate_id == buyer.id)
        )).scalar_one()
        assert direct.type == CommissionType.DIRECT
        assert direct.amount == Decimal("32.00")
        # floor(175.00 / 10)
        assert await db_session.scalar(select(Affiliate.points).where(Affiliate.id == buyer.id)) == 17
        assert await db_session.scalar(
            select(func.count(Notification.id)).where(
                Notification.user_id == buyer.id,
                Notification.type == "payment_ok",
            )
        ) == 1

    async def test_visitor_payment_skips_affiliate_steps(self, db_session, factory):
        buyer = await factory.user(UserRole.VISITOR)
        order_id = await self._pending_order(db_session, factory, buyer)

        result = await OrderService(db_session).confirm_payment(order_id, buyer, dict(BCP_PAYMENT))

        steps = {step["name"]: step["status"] for step in result["post_payment"]["steps"]}
        assert steps["points"] == "skipped"
        assert steps["compliance"] == "skipped"
        assert steps["notification"] == "completed"

    async def test_second_confirmation_is_rejected(self, db_session, factory):
        buyer = await factory.affiliate()
        order_id = await self._pending_order(db_session, factory, buyer)
        service = OrderService(db_session)

        await service.confirm_payment(order_id, buyer, dict(BCP_PAYMENT))
        with pytest.raises(OrderAlreadyProcessedException):
            await service.confirm_payment(order_id, buyer, dict(BCP_PAYMENT))

        assert await db_session.scalar(select(func.count(Commission.id))) == 1

    async def test_other_users_order_is_forbidden(self, db_session, factory):
        buyer = await factory.affiliate()
        stranger = await factory.affiliate()
        order_id = await self._pending_order(db_session, factory, buyer)

        with pytest.raises(ForbiddenException):
            await OrderService(db_session).confirm_payment(order_id, stranger, dict(BCP_PAYMENT))


class TestOrderStatus:
    """Test admin status changes."""

    async def test_paid_order_ships_with_tracking(self, db_session, factory):
        buyer = await factory.affiliate()
        product = await factory.product()
        order = await factory.order(buyer, [(product, 1, "80.00")])

        result = await OrderService(db_session).update_order_status(
            order.id, OrderStatusUpdate(status=OrderStatus.SHIPPED, tracking_code="TRK-1")
        )

        assert result["status"] == "shipped"
        assert result["tracking_code"] == "TRK-1"
        assert result["valid_transitions"] == ["delivered"]

    async def test_cancel_restores_stock(self, db_session, factory):
        buyer = await factory.affiliate()
        product = await factory.product(stock=5)
        order = await factory.order(buyer, [(product, 2, "80.00")])

        await OrderService(db_session).update_order_status(
            order.id, OrderStatusUpdate(status=OrderStatus.CANCELLED)
        )

        assert await _stock(db_session, product.id) == 7

    async def test_invalid_transition(self, db_session, factory):
        buyer = await factory.affiliate()
        product = await factory.product()
        order = await factory.order(buyer, [(product, 1, "80.00")], status=OrderStatus.PENDING)

        with pytest.raises(BadRequestException) as exc_info:
            await OrderService(db_session).update_order_status(
                order.id, OrderStatusUpdate(status=OrderStatus.DELIVERED)
            )

        assert exc_info.value.error_code == "INVALID_STATUS_TRANSITION"
