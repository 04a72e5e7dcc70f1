"""
Cart service layer
Handles shopping cart business logic
"""

from typing import Any, Dict, List
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
import logging

from ecommerce_api.models import Cart, CartItem, Product, User
from ecommerce_api.core.exceptions import (
    NotFoundException,
    BadRequestException,
    InsufficientStockException
)
from ecommerce_api.services.business_rules import BusinessRulesService, SHIPPING_COST
from ecommerce_api.utils.helpers import quantize_money, to_decimal

logger = logging.getLogger(__name__)

class CartService:
    """Shopping cart service"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_or_create_cart(self, user_id: int) -> Cart:
        result = await self.db.execute(select(Cart).where(Cart.user_id == user_id))
        cart = result.scalar_one_or_none()
        if cart is None:
            cart = Cart(user_id=user_id)
            self.db.add(cart)
            await self.db.flush()
        return cart

    async def get_lines(self, user_id: int) -> List[tuple]:
        """(CartItem, Product) pairs of the user's cart"""
        result = await self.db.execute(
            select(CartItem, Product)
            .join(Cart, Cart.id == CartItem.cart_id)
            .join(Product, Product.id == CartItem.product_id)
            .where(Cart.user_id == user_id)
            .order_by(CartItem.created_at.asc(), CartItem.id.asc())
        )
        return list(result.all())

    async def get_cart(self, user: User) -> Dict[str, Any]:
        """
        Get cart with role pricing and totals

        Args:
            user: Cart owner; affiliates see affiliate prices

        Returns:
            Items, availability and totals
        """
        items = []
        subtotal = Decimal("0")
        total_quantity = 0

        for item, product in await self.get_lines(user.id):
            unit_price = to_decimal(product.price_for(user.is_affiliate))
            line_total = unit_price * item.quantity
            is_available = product.is_active and product.stock >= item.quantity

            items.append({
                "id": item.id,
                "product_id": product.id,
                "name": product.name,
                "sku": product.sku,
                "image_url": product.image_url,
                "quantity": item.quantity,
                "unit_price": float(unit_price),
                "subtotal": float(quantize_money(line_total)),
                "stock": product.stock,
                "is_available": is_available,
            })
            if is_available:
                subtotal += line_total
                total_quantity += item.quantity

        return {
            "items": items,
            "total_items": len(items),
            "total_quantity": total_quantity,
            "subtotal": float(quantize_money(subtotal)),
        }

    async def _get_product(self, product_id: int) -> Product:
        product = await self.db.get(Product, product_id)
        if not product or not product.is_active:
            raise NotFoundException("Producto no encontrado")
        return product

    async def add_item(self, user: User, product_id: int, quantity: int) -> Dict[str, Any]:
        """Add product to cart, merging with an existing line"""
        product = await self._get_product(product_id)
        cart = await self.get_or_create_cart(user.id)

        result = await self.db.execute(
            select(CartItem).where(CartItem.cart_id == cart.id, CartItem.product_id == product_id)
        )
        item = result.scalar_one_or_none()
        new_quantity = quantity + (item.quantity if item else 0)

        if product.stock < new_quantity:
            raise InsufficientStockException(product.name, product.stock)

        if item:
            item.quantity = new_quantity
        else:
            self.db.add(CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity))

        await self.db.commit()
        return await self.get_cart(user)

    async def _get_item(self, user: User, item_id: int) -> CartItem:
        result = await self.db.execute(
            select(CartItem)
            .join(Cart, Cart.id == CartItem.cart_id)
            .where(CartItem.id == item_id, Cart.user_id == user.id)
        )
        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundException("Producto no encontrado en el carrito")
        return item

    async def update_item(self, user: User, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise BadRequestException("La cantidad debe ser mayor a 0")

        item = await self._get_item(user, item_id)
        product = await self._get_product(item.product_id)
        if product.stock < quantity:
            raise InsufficientStockException(product.name, product.stock)

        item.quantity = quantity
        await self.db.commit()
        return await self.get_cart(user)

    async def remove_item(self, user: User, item_id: int) -> Dict[str, Any]:
        item = await self._get_item(user, item_id)
        await self.db.delete(item)
        await self.db.commit()
        return await self.get_cart(user)

    async def clear_cart(self, user_id: int, commit: bool = True) -> None:
        """Delete every line of the user's cart"""
        await self.db.execute(
            delete(CartItem).where(
                CartItem.cart_id.in_(select(Cart.id).where(Cart.user_id == user_id))
            )
        )
        if commit:
            await self.db.commit()

    async def get_checkout_summary(self, user: User) -> Dict[str, Any]:
        """Cart totals including the current shipping cost"""
        cart = await self.get_cart(user)
        shipping = quantize_money(await BusinessRulesService(self.db).get_number(SHIPPING_COST))
        subtotal = to_decimal(cart["subtotal"])

        cart.update(
            shipping_cost=float(shipping),
            total=float(quantize_money(subtotal + shipping)),
            can_checkout=bool(cart["items"]) and all(item["is_available"] for item in cart["items"]),
        )
        return cart
