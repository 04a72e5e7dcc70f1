"""
Category CRUD operations
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Optional, List, Dict, Any
import uuid

from ecommerce_api.core.exceptions import ConflictException, DuplicateResourceException, NotFoundException
from ecommerce_api.models import Category, Product
from ecommerce_api.utils.helpers import generate_slug

async def get_category_by_id(db: AsyncSession, category_id: int) -> Optional[Category]:
    """Get category by ID"""
    return await db.get(Category, category_id)

async def get_category_by_slug(db: AsyncSession, slug: str) -> Optional[Category]:
    """Get category by slug"""
    result = await db.execute(select(Category).where(Category.slug == slug))
    return result.scalar_one_or_none()

async def list_categories(db: AsyncSession, include_inactive: bool = False) -> List[Dict[str, Any]]:
    """Categories with their active product count"""
    product_count = (
        select(func.count(Product.id))
        .where(Product.category_id == Category.id, Product.is_active.is_(True))
        .correlate(Category)
        .scalar_subquery()
    )
    stmt = select(Category, product_count.label("product_count")).order_by(Category.name)
    if not include_inactive:
        stmt = stmt.where(Category.is_active.is_(True))

    result = await db.execute(stmt)
    categories = []
    for category, count in result.all():
        data = category.to_dict()
        data["product_count"] = count
        categories.append(data)
    return categories

async def create_category(db: AsyncSession, data: Dict[str, Any]) -> Category:
    """Create category with a unique slug"""
    slug = generate_slug(data["name"])
    if await get_category_by_slug(db, slug):
        # Add random suffix for uniqueness
        slug = f"{slug}-{uuid.uuid4().hex[:6]}"

    category = Category(slug=slug, **data)
    db.add(category)
    await db.commit()
    return category

RECENT_PRODUCTS_LIMIT = 10

async def _active_product_count(db: AsyncSession, category_id: int) -> int:
    return await db.scalar(
        select(func.count(Product.id)).where(
            Product.category_id == category_id,
            Product.is_active.is_(True)
        )
    )

async def get_category_detail(db: AsyncSession, category_id: int, include_inactive: bool = False) -> Dict[str, Any]:
    """Category with product count and its newest active products"""
    category = await get_category_by_id(db, category_id)
    if not category or (not category.is_active and not include_inactive):
        raise NotFoundException("Categoría no encontrada")

    result = await db.execute(
        select(Product)
        .where(Product.category_id == category_id, Product.is_active.is_(True))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(RECENT_PRODUCTS_LIMIT)
    )
    data = category.to_dict()
    data["product_count"] = await _active_product_count(db, category_id)
    data["recent_products"] = [
        {
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
            "public_price": float(product.public_price),
            "stock": product.stock,
            "image_url": product.image_url,
        }
        for product in result.scalars().all()
    ]
    return data

async def update_category(db: AsyncSession, category_id: int, data: Dict[str, Any]) -> Category:
    """Partial update; a new name regenerates the slug"""
    category = await get_category_by_id(db, category_id)
    if not category:
        raise NotFoundException("Categoría no encontrada")

    name = data.get("name")
    if name and name != category.name:
        slug = generate_slug(name)
        conflict = await db.scalar(
            select(Category.id).where(
                Category.id != category_id,
                (Category.name == name) | (Category.slug == slug)
            )
        )
        if conflict:
            raise DuplicateResourceException("Ya existe una categoría con ese nombre")
        category.slug = slug

    for field, value in data.items():
        setattr(category, field, value)
    await db.commit()
    return category

async def delete_category(db: AsyncSession, category_id: int) -> Category:
    """Soft delete; refused while the category still has active products"""
    category = await get_category_by_id(db, category_id)
    if not category:
        raise NotFoundException("Categoría no encontrada")

    active = await _active_product_count(db, category_id)
    if active > 0:
        raise ConflictException(
            f"No se puede eliminar la categoría porque tiene {active} productos activos",
            error_code="CATEGORY_HAS_PRODUCTS"
        )

    category.is_active = False
    await db.commit()
    return category
