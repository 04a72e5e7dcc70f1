"""
Product service layer
Handles business logic for products
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
import logging

from ecommerce_api.models import Product, Category, User
from ecommerce_api.core.exceptions import NotFoundException, BadRequestException, DuplicateResourceException
from ecommerce_api.utils.pagination import pagination_meta
from .filters import ProductFilter
from .schemas import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

class ProductService:
    """Product service for business logic"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def serialize(product: Product, viewer: Optional[User] = None, category_name: Optional[str] = None) -> Dict[str, Any]:
        """Product as seen by the viewer; affiliate price only shown to affiliates and admins"""
        data = product.to_dict()
        is_affiliate = viewer is not None and viewer.is_affiliate
        data["price"] = float(product.price_for(is_affiliate))
        data["in_stock"] = product.stock > 0
        if category_name is not None:
            data["category_name"] = category_name
        if viewer is None or not (viewer.is_affiliate or viewer.is_admin):
            data.pop("affiliate_price", None)
        return data

    async def list_products(
        self,
        filters: ProductFilter,
        viewer: Optional[User] = None,
        page: int = 1,
        limit: int = 20
    ) -> Dict[str, Any]:
        """
        List products with filters and pagination

        Args:
            filters: Product filters
            viewer: Current user, if authenticated
            page: Page number
            limit: Page size

        Returns:
            Products and pagination block
        """
        query = filters.apply_filters(
            select(Product, Category.name).join(Category, Category.id == Product.category_id)
        )
        total = await self.db.scalar(
            filters.apply_filters(select(func.count(Product.id)))
        )
        result = await self.db.execute(
            query.order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        return {
            "products": [self.serialize(product, viewer, name) for product, name in result.all()],
            "pagination": pagination_meta(total, page, limit),
        }

    async def get_product(self, product_id: int, viewer: Optional[User] = None) -> Dict[str, Any]:
        result = await self.db.execute(
            select(Product, Category.name)
            .join(Category, Category.id == Product.category_id)
            .where(Product.id == product_id)
        )
        row = result.first()
        if not row or (not row[0].is_active and not (viewer and viewer.is_admin)):
            raise NotFoundException("Producto no encontrado")
        return self.serialize(row[0], viewer, row[1])

    async def _check_category(self, category_id: int) -> None:
        if not await self.db.get(Category, category_id):
            raise BadRequestException("Categoría no válida", error_code="INVALID_CATEGORY")

    async def create_product(self, data: ProductCreate) -> Product:
        """Create new product"""
        await self._check_category(data.category_id)

        existing = await self.db.scalar(select(Product.id).where(Product.sku == data.sku))
        if existing:
            raise DuplicateResourceException("El SKU ya está registrado")

        product = Product(**data.model_dump())
        self.db.add(product)
        await self.db.commit()

        logger.info("Product %s created (sku=%s)", product.id, product.sku)
        return product

    async def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        product = await self.db.get(Product, product_id)
        if not product:
            raise NotFoundException("Producto no encontrado")

        changes = data.model_dump(exclude_unset=True)
        if changes.get("category_id"):
            await self._check_category(changes["category_id"])

        product.update_from_dict(changes, exclude=["id", "sku", "created_at", "updated_at"])
        if product.affiliate_price > product.public_price:
            await self.db.rollback()
            raise BadRequestException("El precio de afiliado no puede ser mayor al precio público")

        await self.db.commit()
        return product

    async def update_stock(self, product_id: int, stock: int) -> Product:
        """Set the stock level of a product"""
        product = await self.db.get(Product, product_id)
        if not product:
            raise NotFoundException("Producto no encontrado")

        previous = product.stock
        product.stock = stock
        await self.db.commit()

        logger.info("Product %s stock set %s -> %s", product_id, previous, stock)
        return product

    async def check_availability(self, product_ids: List[int]) -> List[Dict[str, Any]]:
        """Availability per requested id; unknown or inactive products are unavailable"""
        result = await self.db.execute(
            select(Product).where(Product.id.in_(product_ids), Product.is_active.is_(True))
        )
        products = {product.id: product for product in result.scalars().all()}

        availability = []
        for product_id in product_ids:
            product = products.get(product_id)
            availability.append({
                "product_id": product_id,
                "name": product.name if product else None,
                "stock": product.stock if product else 0,
                "available": product is not None and product.stock > 0,
            })
        return availability
