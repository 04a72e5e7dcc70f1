"""
Pagination utilities
"""

from typing import Any, Dict, Callable, Optional
from pydantic import BaseModel, Field
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from ecommerce_api.core.config import settings

class PaginationParams(BaseModel):
    """Pagination parameters"""
    page: int = Field(1, ge=1, description="Page number")
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Page size")

    @property
    def offset(self) -> int:
        """Calculate offset"""
        return (self.page - 1) * self.limit

def pagination_meta(total: int, page: int, limit: int) -> Dict[str, Any]:
    """Pagination block of the response envelope"""
    total = total or 0
    pages = (total + limit - 1) // limit if limit else 0
    return {
        "currentPage": page,
        "totalPages": pages,
        "totalItems": total,
        "itemsPerPage": limit,
        "hasNextPage": page < pages,
        "hasPrevPage": page > 1,
    }

async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    limit: int = 20,
    serializer: Optional[Callable[[Any], Any]] = None
) -> dict:
    """
    Paginate query results

    Args:
        db: Database session
        query: SQLAlchemy query
        page: Page number
        limit: Page size
        serializer: Optional callable applied to each row

    Returns:
        Dictionary with items and pagination block
    """
    # Get total count
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await db.scalar(count_query)

    # Apply pagination
    offset = (page - 1) * limit
    result = await db.execute(query.offset(offset).limit(limit))
    items = result.scalars().all()
    if serializer:
        items = [serializer(item) for item in items]

    return {
        "items": items,
        "pagination": pagination_meta(total, page, limit)
    }
