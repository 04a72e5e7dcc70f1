"""
Order service layer
Checkout, payment confirmation and the admin order lifecycle
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timedelta
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, or_
import logging

from ecommerce_api.models import (
    AdminRegion,
    Order,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentStatus,
    Product,
    ShippingAddress,
    User,
    UserRole,
)
from ecommerce_api.core.exceptions import (
    BadRequestException,
    ForbiddenException,
    InsufficientStockException,
    NotFoundException,
    OrderAlreadyProcessedException,
)
from ecommerce_api.services.business_rules import BusinessRulesService, SHIPPING_COST
from ecommerce_api.services.post_payment import PaidOrder, PostPaymentPipeline
from ecommerce_api.utils.helpers import quantize_money, to_decimal, as_datetime
from ecommerce_api.utils.pagination import pagination_meta
from ecommerce_api.api.v1.addresses.services import AddressService
from ecommerce_api.api.v1.cart.services import CartService
from .schemas import OrderCreate, OrderFilters, OrderStatusUpdate
from .state_machine import OrderStateMachine

logger = logging.getLogger(__name__)

class OrderService:
    """Order service"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.cart_service = CartService(db)
        self.address_service = AddressService(db)
        self.rules = BusinessRulesService(db)
        self.state_machine = OrderStateMachine()

    async def create_order(self, user: User, data: OrderCreate) -> Dict[str, Any]:
        """
        Create an order from the user's cart in a single transaction

        Args:
            user: Buyer
            data: Checkout data

        Returns:
            Created order with items

        Raises:
            BadRequestException: If the cart is empty
            NotFoundException: If the stored address does not belong to the user
            InsufficientStockException: If any line lacks stock; nothing is decremented
        """
        lines = await self.cart_service.get_lines(user.id)
        if not lines:
            raise BadRequestException("El carrito está vacío", error_code="EMPTY_CART")

        # Validate every line before touching stock
        for item, product in lines:
            if not product.is_active:
                raise BadRequestException(f"El producto {product.name} no está disponible")
            if product.stock < item.quantity:
                raise InsufficientStockException(product.name, product.stock)

        try:
            if data.shipping_address_id is not None:
                address = await self.address_service.get_address(user.id, data.shipping_address_id)
            else:
                address = await self.address_service.add_address(
                    user.id, data.shipping_address.model_dump(), commit=False
                )

            subtotal = Decimal("0")
            order_items = []
            for item, product in lines:
                # Guarded decrement: stock cannot drop below zero under concurrent checkouts
                result = await self.db.execute(
                    update(Product)
                    .where(Product.id == product.id, Product.stock >= item.quantity)
                    .values(stock=Product.stock - item.quantity)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    await self.db.refresh(product)
                    raise InsufficientStockException(product.name, product.stock)

                unit_price = to_decimal(product.price_for(user.is_affiliate))
                subtotal += unit_price * item.quantity
                order_items.append(OrderItem(
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price=unit_price
                ))

            shipping_cost = quantize_money(await self.rules.get_number(SHIPPING_COST))
            order = Order(
                user_id=user.id,
                status=OrderStatus.PENDING,
                total_amount=quantize_money(subtotal + shipping_cost),
                shipping_cost=shipping_cost,
                shipping_address_id=address.id,
                items=order_items
            )
            self.db.add(order)
            await self.db.flush()

            await self.cart_service.clear_cart(user.id, commit=False)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Order %s created for user %s (total=%s)", order.id, user.id, order.total_amount)
        return await self.serialize_order(order.id)

    async def confirm_payment(self, order_id: int, user: User, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Record payment, mark the order paid and run the post-payment pipeline

        Args:
            order_id: Order ID
            user: Caller; must own the order unless admin
            data: Payment method, reference and BCP operation code

        Returns:
            Order, payment and the post-payment step report

        Raises:
            NotFoundException: If order not found
            ForbiddenException: If the order belongs to someone else
            OrderAlreadyProcessedException: If the order is not pending
        """
        order = await self.db.get(Order, order_id)
        if not order:
            raise NotFoundException("Pedido no encontrado")
        if order.user_id != user.id and not user.is_admin:
            raise ForbiddenException("No tienes acceso a este pedido")
        if order.status != OrderStatus.PENDING:
            raise OrderAlreadyProcessedException()

        try:
            flipped = await self.db.execute(
                update(Order)
                .where(Order.id == order_id, Order.status == OrderStatus.PENDING)
                .values(status=OrderStatus.PAID, updated_at=datetime.utcnow())
                .execution_options(synchronize_session=False)
            )
            if flipped.rowcount != 1:
                raise OrderAlreadyProcessedException()

            payment = Payment(
                order_id=order_id,
                amount=order.total_amount,
                method=data["method"],
                status=PaymentStatus.VALID,
                reference=data.get("reference"),
                bcp_code=data.get("bcp_code"),
                paid_at=datetime.utcnow()
            )
            self.db.add(payment)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(order)
        payment_data = payment.to_dict()
        buyer = await self.db.get(User, order.user_id)
        logger.info("Payment confirmed for order %s", order_id)

        paid = PaidOrder(
            order_id=order.id,
            user_id=order.user_id,
            is_affiliate=buyer.role == UserRole.AFFILIATE,
            total_amount=to_decimal(order.total_amount)
        )
        report = await PostPaymentPipeline(self.db).run(paid)

        return {
            "order": await self.serialize_order(order_id),
            "payment": payment_data,
            "post_payment": report.to_dict(),
        }

    async def serialize_order(self, order_id: int) -> Dict[str, Any]:
        order = await self.db.get(Order, order_id)
        data = order.to_dict()

        items = await self.db.execute(
            select(OrderItem, Product.name, Product.sku)
            .join(Product, Product.id == OrderItem.product_id)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
        )
        data["items"] = []
        for item, name, sku in items.all():
            item_data = item.to_dict(exclude=["created_at", "updated_at"])
            item_data.update(
                product_name=name,
                sku=sku,
                total_price=float(quantize_money(item.total_price))
            )
            data["items"].append(item_data)

        address = await self.db.get(ShippingAddress, order.shipping_address_id) if order.shipping_address_id else None
        data["shipping_address"] = address.to_dict() if address else None

        payments = await self.db.execute(
            select(Payment).where(Payment.order_id == order_id).order_by(Payment.id)
        )
        data["payments"] = [payment.to_dict() for payment in payments.scalars().all()]
        data["valid_transitions"] = [s.value for s in self.state_machine.get_valid_transitions(order.status)]
        return data

    def _apply_filters(self, query, filters: OrderFilters):
        if filters.status:
            query = query.where(Order.status == filters.status)
        if filters.date_from:
            query = query.where(Order.created_at >= as_datetime(filters.date_from))
        if filters.date_to:
            query = query.where(Order.created_at < as_datetime(filters.date_to) + timedelta(days=1))
        return query

    async def get_user_orders(
        self,
        user_id: int,
        filters: OrderFilters,
        page: int = 1,
        limit: int = 20
    ) -> Dict[str, Any]:
        """List the user's orders, newest first"""
        query = self._apply_filters(select(Order).where(Order.user_id == user_id), filters)
        total = await self.db.scalar(
            self._apply_filters(select(func.count(Order.id)).where(Order.user_id == user_id), filters)
        )
        result = await self.db.execute(
            query.order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        orders = result.scalars().all()

        counts = await self._item_counts([order.id for order in orders])
        data = []
        for order in orders:
            order_data = order.to_dict()
            order_data["items_count"] = counts.get(order.id, 0)
            data.append(order_data)

        return {"orders": data, "pagination": pagination_meta(total, page, limit)}

    async def _item_counts(self, order_ids: List[int]) -> Dict[int, int]:
        if not order_ids:
            return {}
        result = await self.db.execute(
            select(OrderItem.order_id, func.sum(OrderItem.quantity))
            .where(OrderItem.order_id.in_(order_ids))
            .group_by(OrderItem.order_id)
        )
        return {order_id: int(quantity or 0) for order_id, quantity in result.all()}

    async def get_order(self, order_id: int, user: User) -> Dict[str, Any]:
        order = await self.db.get(Order, order_id)
        if not order:
            raise NotFoundException("Pedido no encontrado")
        if order.user_id != user.id and not user.is_admin:
            raise ForbiddenException("No tienes acceso a este pedido")
        return await self.serialize_order(order_id)

    async def update_order_status(self, order_id: int, data: OrderStatusUpdate) -> Dict[str, Any]:
        """
        Apply an admin status change

        Raises:
            NotFoundException: If order not found
            BadRequestException: If transition not allowed
        """
        order = await self.db.get(Order, order_id)
        if not order:
            raise NotFoundException("Pedido no encontrado")

        current = order.status
        if not self.state_machine.can_transition(current, data.status):
            raise BadRequestException(
                f"No se puede cambiar el estado de {current.value} a {data.status.value}",
                error_code="INVALID_STATUS_TRANSITION"
            )

        try:
            order.status = data.status

            if data.status == OrderStatus.SHIPPED:
                order.tracking_code = data.tracking_code or order.tracking_code
                order.shalom_agency = data.shalom_agency or order.shalom_agency
                order.shalom_guide = data.shalom_guide or order.shalom_guide
            elif data.status == OrderStatus.DELIVERED:
                order.delivered_at = datetime.utcnow()
            elif data.status == OrderStatus.CANCELLED:
                await self._restore_stock(order_id)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Order %s moved from %s to %s", order_id, current.value, data.status.value)
        return await self.serialize_order(order_id)

    async def _restore_stock(self, order_id: int) -> None:
        items = await self.db.execute(
            select(OrderItem.product_id, OrderItem.quantity).where(OrderItem.order_id == order_id)
        )
        for product_id, quantity in items.all():
            await self.db.execute(
                update(Product)
                .where(Product.id == product_id)
                .values(stock=Product.stock + quantity)
                .execution_options(synchronize_session=False)
            )

    async def get_orders_for_admin(
        self,
        admin: User,
        filters: OrderFilters,
        page: int = 1,
        limit: int = 20
    ) -> Dict[str, Any]:
        """All orders; regional admins only see orders shipped to their regions"""
        def scoped(query):
            query = query.join(User, User.id == Order.user_id).outerjoin(
                ShippingAddress, ShippingAddress.id == Order.shipping_address_id
            )
            query = self._apply_filters(query, filters)
            if admin.role != UserRole.ADMIN_GENERAL:
                regions = select(AdminRegion.region).where(AdminRegion.admin_id == admin.id)
                query = query.where(ShippingAddress.region.in_(regions))
            if filters.region:
                query = query.where(ShippingAddress.region == filters.region)
            if filters.search:
                pattern = f"%{filters.search.strip()}%"
                query = query.where(or_(User.full_name.ilike(pattern), User.dni.ilike(pattern)))
            return query

        total = await self.db.scalar(scoped(select(func.count(Order.id))))
        result = await self.db.execute(
            scoped(select(Order, User.full_name, User.dni, ShippingAddress.region))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        orders = []
        for order, full_name, dni, region in result.all():
            data = order.to_dict()
            data.update(customer_name=full_name, customer_dni=dni, region=region)
            orders.append(data)

        return {"orders": orders, "pagination": pagination_meta(total, page, limit)}
