"""
Affiliate network service layer
Downline listing, per-referral statistics and sponsor-driven registration
"""

from typing import Any, Dict, Optional
from datetime import date, datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
import logging

from ecommerce_api.models import (
    Affiliate,
    AffiliateStatus,
    Commission,
    CommissionStatus,
    CommissionType,
    Order,
    OrderItem,
    PURCHASED_STATUSES,
    User,
    UserRole,
)
from ecommerce_api.core.exceptions import NotFoundException, DuplicateResourceException
from ecommerce_api.core.security import SecurityUtils
from ecommerce_api.services.user_service import UserService
from ecommerce_api.utils.helpers import quantize_money, month_start, next_month_start, as_datetime
from ecommerce_api.utils.pagination import pagination_meta
from .schemas import RegisterReferralRequest, NetworkFilters

logger = logging.getLogger(__name__)

SETTLED_STATUSES = (CommissionStatus.APPROVED, CommissionStatus.PAID)

def _money(value) -> float:
    return float(quantize_money(value or 0))

class AffiliateService:
    """Service for a sponsor's affiliate network"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserService(db)

    @staticmethod
    def _current_month(today: Optional[date] = None):
        start = month_start(today or datetime.utcnow().date())
        return as_datetime(start), as_datetime(next_month_start(start))

    async def _get_downline_member(self, sponsor_id: int, affiliate_id: int):
        result = await self.db.execute(
            select(Affiliate, User)
            .join(User, User.id == Affiliate.id)
            .where(Affiliate.id == affiliate_id, Affiliate.sponsor_id == sponsor_id)
        )
        row = result.first()
        if not row:
            raise NotFoundException("Afiliado no encontrado en tu red")
        return row.Affiliate, row.User

    async def get_affiliate_stats(self, affiliate_id: int, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Purchase and commission figures for one affiliate

        Commissions generated are referral commissions produced by this
        affiliate's own orders for the sponsor.
        """
        start, end = self._current_month(today)
        in_month = (Order.created_at >= start) & (Order.created_at < end)

        orders = select(
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_amount), 0)
        ).where(Order.user_id == affiliate_id, Order.status.in_(PURCHASED_STATUSES))

        total_orders, total_spent = (await self.db.execute(orders)).one()
        monthly_orders, monthly_spent = (await self.db.execute(orders.where(in_month))).one()

        generated = (
            select(func.coalesce(func.sum(Commission.amount), 0))
            .join(OrderItem, OrderItem.id == Commission.order_item_id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(
                Order.user_id == affiliate_id,
                Commission.type == CommissionType.REFERRAL,
                Commission.status.in_(SETTLED_STATUSES)
            )
        )
        commissions_generated = await self.db.scalar(generated)
        monthly_generated = await self.db.scalar(
            generated.where(Commission.created_at >= start, Commission.created_at < end)
        )

        return {
            "total_orders": total_orders,
            "monthly_orders": monthly_orders,
            "total_spent": _money(total_spent),
            "monthly_spent": _money(monthly_spent),
            "commissions_generated": _money(commissions_generated),
            "monthly_commissions_generated": _money(monthly_generated),
        }

    async def get_network_summary(self, sponsor_id: int, today: Optional[date] = None) -> Dict[str, Any]:
        start, end = self._current_month(today)

        total = await self.db.scalar(
            select(func.count(Affiliate.id)).where(Affiliate.sponsor_id == sponsor_id)
        )
        active = await self.db.scalar(
            select(func.count(Affiliate.id))
            .join(User, User.id == Affiliate.id)
            .where(
                Affiliate.sponsor_id == sponsor_id,
                Affiliate.status == AffiliateStatus.ACTIVE,
                User.is_active.is_(True)
            )
        )

        earned = select(func.coalesce(func.sum(Commission.amount), 0)).where(
            Commission.affiliate_id == sponsor_id,
            Commission.type == CommissionType.REFERRAL,
            Commission.status.in_(SETTLED_STATUSES)
        )
        total_earned = await self.db.scalar(earned)
        monthly_earned = await self.db.scalar(
            earned.where(Commission.created_at >= start, Commission.created_at < end)
        )

        return {
            "total_affiliates": total,
            "active_affiliates": active,
            "total_commissions_generated": _money(total_earned),
            "monthly_commissions_generated": _money(monthly_earned),
        }

    async def get_affiliate_network(
        self,
        sponsor_id: int,
        filters: NetworkFilters,
        page: int = 1,
        limit: int = 20
    ) -> Dict[str, Any]:
        """
        Direct referrals of a sponsor with per-referral statistics

        Args:
            sponsor_id: Sponsor user ID
            filters: Name/DNI search and status filter
            page: Page number
            limit: Page size

        Returns:
            Network summary, referrals and pagination
        """
        query = (
            select(Affiliate, User)
            .join(User, User.id == Affiliate.id)
            .where(Affiliate.sponsor_id == sponsor_id)
        )
        if filters.status:
            query = query.where(Affiliate.status == filters.status)
        if filters.search:
            term = f"%{filters.search.strip()}%"
            query = query.where(or_(User.full_name.ilike(term), User.dni.ilike(term)))

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(Affiliate.created_at.desc(), Affiliate.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        affiliates = []
        for affiliate, user in result.all():
            affiliates.append({
                "id": affiliate.id,
                "full_name": user.full_name,
                "dni": user.dni,
                "phone": affiliate.phone,
                "city": affiliate.city,
                "status": affiliate.status.value,
                "is_active": user.is_active,
                "referred_at": affiliate.created_at.isoformat() if affiliate.created_at else None,
                "stats": await self.get_affiliate_stats(affiliate.id),
            })

        return {
            "summary": await self.get_network_summary(sponsor_id),
            "affiliates": affiliates,
            "pagination": pagination_meta(total, page, limit),
        }

    async def get_affiliate_stats_for_sponsor(self, sponsor_id: int, affiliate_id: int) -> Dict[str, Any]:
        affiliate, user = await self._get_downline_member(sponsor_id, affiliate_id)
        return {
            "affiliate": {
                "id": affiliate.id,
                "full_name": user.full_name,
                "dni": user.dni,
                "phone": affiliate.phone,
                "city": affiliate.city,
                "status": affiliate.status.value,
                "is_active": user.is_active,
            },
            "stats": await self.get_affiliate_stats(affiliate.id),
        }

    async def register_referral(self, sponsor: User, data: RegisterReferralRequest) -> Dict[str, Any]:
        """
        Create a downline affiliate with a temporary password

        Args:
            sponsor: Sponsoring user (affiliate or admin)
            data: New affiliate data

        Returns:
            Created user with its temporary password

        Raises:
            DuplicateResourceException: If DNI or email already registered
            ReferralLimitReachedException: If the sponsor has no referral slots left
        """
        await self.users.validate_sponsor(sponsor.id)
        await self.users.ensure_unique(data.dni, data.email)

        temp_password = SecurityUtils.generate_temp_password()

        try:
            user = await self.users.build_user(
                dni=data.dni,
                full_name=data.full_name,
                email=data.email,
                password=temp_password,
                role=UserRole.AFFILIATE,
                created_by_id=sponsor.id
            )
            await self.users.build_affiliate(
                user,
                data.model_dump(include={"phone", "region", "city", "address", "reference"}),
                sponsor_id=sponsor.id
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceException("El DNI o email ya está registrado")
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Sponsor %s registered referral %s", sponsor.id, user.id)
        return {
            "user": {
                "id": user.id,
                "dni": user.dni,
                "full_name": user.full_name,
                "email": user.email,
                "role": user.role.value,
                "temp_password": temp_password,
            }
        }

    async def toggle_affiliate_status(
        self,
        sponsor_id: int,
        affiliate_id: int,
        status: AffiliateStatus
    ) -> Dict[str, Any]:
        """Activate or deactivate a member of the sponsor's own downline"""
        affiliate, user = await self._get_downline_member(sponsor_id, affiliate_id)

        affiliate.status = status
        user.is_active = status == AffiliateStatus.ACTIVE
        await self.db.commit()

        logger.info("Sponsor %s set affiliate %s to %s", sponsor_id, affiliate_id, status.value)
        return {
            "id": affiliate.id,
            "full_name": user.full_name,
            "status": affiliate.status.value,
            "is_active": user.is_active,
        }
