"""
Admin service layer
Dashboard reporting and user management, scoped by admin region
"""

from typing import Any, Dict, List, Optional
from datetime import date, datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, and_
import logging

from ecommerce_api.models import (
    AdminRegion,
    Affiliate,
    AffiliateStatus,
    Category,
    Commission,
    CommissionStatus,
    Order,
    PURCHASED_STATUSES,
    Product,
    ShippingAddress,
    User,
    UserRole,
)
from ecommerce_api.core.exceptions import NotFoundException, BadRequestException
from ecommerce_api.services.user_service import UserService
from ecommerce_api.utils.helpers import quantize_money, month_start, next_month_start, as_datetime
from ecommerce_api.utils.pagination import pagination_meta
from .schemas import UserFilters

logger = logging.getLogger(__name__)

RECENT_ORDERS_LIMIT = 10
LOW_STOCK_LIMIT = 10

class AdminService:
    """Service for admin reporting"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_regions(self, admin: User) -> Optional[List[str]]:
        """Regions visible to an admin; None means all regions"""
        if admin.role == UserRole.ADMIN_GENERAL:
            return None
        result = await self.db.execute(
            select(AdminRegion.region).where(AdminRegion.admin_id == admin.id)
        )
        return list(result.scalars().all())

    @staticmethod
    def _scope_orders(query, regions: Optional[List[str]]):
        if regions is None:
            return query
        return query.join(ShippingAddress, ShippingAddress.id == Order.shipping_address_id).where(
            ShippingAddress.region.in_(regions)
        )

    @staticmethod
    def _scope_commissions(query, regions: Optional[List[str]]):
        if regions is None:
            return query
        return query.join(Affiliate, Affiliate.id == Commission.affiliate_id).where(
            Affiliate.region.in_(regions)
        )

    async def get_kpis(self, regions: Optional[List[str]], today: Optional[date] = None) -> Dict[str, Any]:
        start = month_start(today or datetime.utcnow().date())
        month_from, month_to = as_datetime(start), as_datetime(next_month_start(start))

        sales = self._scope_orders(
            select(func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0))
            .where(Order.status.in_(PURCHASED_STATUSES)),
            regions
        )
        _, total_sales = (await self.db.execute(sales)).one()
        monthly_orders, monthly_revenue = (await self.db.execute(
            sales.where(Order.created_at >= month_from, Order.created_at < month_to)
        )).one()

        affiliates = (
            select(func.count(User.id))
            .join(Affiliate, Affiliate.id == User.id)
            .where(User.role == UserRole.AFFILIATE, User.is_active.is_(True))
        )
        if regions is not None:
            affiliates = affiliates.where(Affiliate.region.in_(regions))
        active_affiliates = await self.db.scalar(affiliates)

        users = (
            select(func.count(User.id))
            .outerjoin(Affiliate, Affiliate.id == User.id)
            .where(User.is_active.is_(True))
        )
        if regions is not None:
            users = users.where(self._visible_users(regions))
        total_users = await self.db.scalar(users)

        pending = await self.db.scalar(self._scope_commissions(
            select(func.coalesce(func.sum(Commission.amount), 0))
            .where(Commission.status == CommissionStatus.PENDING),
            regions
        ))

        return {
            "total_sales": float(quantize_money(total_sales)),
            "monthly_orders": monthly_orders,
            "monthly_revenue": float(quantize_money(monthly_revenue)),
            "active_affiliates": active_affiliates,
            "total_users": total_users,
            "pending_commissions": float(quantize_money(pending)),
        }

    async def get_recent_orders(self, regions: Optional[List[str]], limit: int = RECENT_ORDERS_LIMIT) -> List[Dict[str, Any]]:
        query = (
            select(Order, User.full_name, User.dni, ShippingAddress.region, ShippingAddress.city)
            .join(User, User.id == Order.user_id)
            .outerjoin(ShippingAddress, ShippingAddress.id == Order.shipping_address_id)
        )
        if regions is not None:
            query = query.where(ShippingAddress.region.in_(regions))

        result = await self.db.execute(
            query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
        )
        orders = []
        for order, full_name, dni, region, city in result.all():
            data = order.to_dict()
            data.update(customer_name=full_name, customer_dni=dni, region=region, city=city)
            orders.append(data)
        return orders

    async def get_low_stock_products(self, limit: int = LOW_STOCK_LIMIT) -> List[Dict[str, Any]]:
        """Active products at or below their minimum stock"""
        result = await self.db.execute(
            select(Product, Category.name)
            .join(Category, Category.id == Product.category_id)
            .where(Product.is_active.is_(True), Product.stock <= Product.min_stock)
            .order_by(Product.stock.asc(), Product.id.asc())
            .limit(limit)
        )
        products = []
        for product, category_name in result.all():
            data = product.to_dict()
            data["category_name"] = category_name
            products.append(data)
        return products

    async def get_dashboard(self, admin: User) -> Dict[str, Any]:
        """
        Dashboard figures for an admin

        Args:
            admin: Requesting admin; regional admins see only their regions

        Returns:
            KPIs, recent orders, low stock products and pending commission count
        """
        regions = await self.get_regions(admin)

        pending_count = await self.db.scalar(self._scope_commissions(
            select(func.count(Commission.id)).where(Commission.status == CommissionStatus.PENDING),
            regions
        ))

        return {
            "kpis": await self.get_kpis(regions),
            "recent_orders": await self.get_recent_orders(regions),
            "low_stock_products": await self.get_low_stock_products(),
            "pending_commissions": pending_count,
            "admin_info": {
                "role": admin.role.value,
                "regions": regions or [],
                "is_global": regions is None,
            },
        }

    @staticmethod
    def _visible_users(regions: List[str]):
        return or_(
            User.role == UserRole.VISITOR,
            and_(User.role == UserRole.AFFILIATE, Affiliate.region.in_(regions))
        )

    async def get_users(self, admin: User, filters: UserFilters, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        """User listing with role, search and active filters"""
        query = select(User, Affiliate).outerjoin(Affiliate, Affiliate.id == User.id)

        if filters.role:
            query = query.where(User.role == filters.role)
        if filters.is_active is not None:
            query = query.where(User.is_active.is_(filters.is_active))
        if filters.search:
            term = f"%{filters.search.strip()}%"
            query = query.where(or_(
                User.full_name.ilike(term),
                User.dni.ilike(term),
                User.email.ilike(term)
            ))

        regions = await self.get_regions(admin)
        if regions is not None:
            query = query.where(self._visible_users(regions))

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        return {
            "users": [UserService.serialize_user(user, affiliate) for user, affiliate in result.all()],
            "pagination": pagination_meta(total, page, limit),
        }

    async def toggle_user_status(self, admin: User, user_id: int, is_active: bool) -> Dict[str, Any]:
        """
        Activate or deactivate a user account

        Raises:
            BadRequestException: If an admin targets its own account
            NotFoundException: If the user does not exist
        """
        if user_id == admin.id:
            raise BadRequestException("No puedes cambiar tu propio estado")

        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundException("Usuario no encontrado")

        user.is_active = is_active
        # Affiliate status must follow the account flag
        affiliate = await self.db.get(Affiliate, user_id)
        if affiliate is not None:
            affiliate.status = AffiliateStatus.ACTIVE if is_active else AffiliateStatus.INACTIVE
        await self.db.commit()

        logger.info("Admin %s set user %s active=%s", admin.id, user_id, is_active)
        response = {"id": user.id, "full_name": user.full_name, "is_active": user.is_active}
        if affiliate is not None:
            response["affiliate_status"] = affiliate.status.value
        return response
