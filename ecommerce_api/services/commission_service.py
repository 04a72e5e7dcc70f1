"""
Commission service
Computes direct and referral commissions for paid orders
"""

from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime, date
from decimal import Decimal
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, case, distinct
from sqlalchemy.orm import aliased

from ecommerce_api.models import (
    Affiliate,
    AffiliateStatus,
    AdminRegion,
    Commission,
    CommissionStatus,
    CommissionType,
    Order,
    OrderItem,
    Product,
    Referral,
    User,
    UserRole,
)
from ecommerce_api.core.exceptions import NotFoundException, BadRequestException
from ecommerce_api.services.business_rules import (
    BusinessRulesService,
    DIRECT_SALE_COMMISSION_PERCENTAGE,
    REFERRAL_COMMISSION_PERCENTAGE,
)
from ecommerce_api.services.notification import NotificationService
from ecommerce_api.utils.helpers import (
    quantize_money,
    to_decimal,
    month_start,
    next_month_start,
    as_datetime,
)
from ecommerce_api.utils.pagination import pagination_meta

logger = logging.getLogger(__name__)

# Levels of the sponsor chain that earn referral commissions
REFERRAL_DEPTH = 1

def calculate_commission_amount(unit_price, quantity: int, percentage) -> Decimal:
    """unit_price x quantity x percentage / 100, rounded half-up to cents"""
    return quantize_money(to_decimal(unit_price) * quantity * to_decimal(percentage) / Decimal(100))

def _month_bounds(month: date):
    start = month_start(month)
    return as_datetime(start), as_datetime(next_month_start(start))

class CommissionService:
    """Service for commission calculation and lifecycle"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.rules = BusinessRulesService(db)

    async def _is_active_affiliate(self, user_id: int) -> bool:
        result = await self.db.execute(
            select(User.id)
            .join(Affiliate, Affiliate.id == User.id)
            .where(
                User.id == user_id,
                User.role == UserRole.AFFILIATE,
                User.is_active.is_(True),
                Affiliate.status == AffiliateStatus.ACTIVE
            )
        )
        return result.scalar_one_or_none() is not None

    async def get_upline(self, user_id: int, depth: int = REFERRAL_DEPTH) -> List[int]:
        """Referrer ids walking up the referral table, nearest first"""
        upline = []
        current = user_id
        for _ in range(depth):
            referrer_id = await self.db.scalar(
                select(Referral.referrer_id).where(Referral.referred_id == current)
            )
            if referrer_id is None or referrer_id in upline:
                break
            upline.append(referrer_id)
            current = referrer_id
        return upline

    async def _existing_keys(self, item_ids: Sequence[int]) -> set:
        if not item_ids:
            return set()
        result = await self.db.execute(
            select(Commission.affiliate_id, Commission.order_item_id, Commission.type)
            .where(Commission.order_item_id.in_(item_ids))
        )
        return {(row.affiliate_id, row.order_item_id, row.type) for row in result.all()}

    async def calculate_commissions(self, order_id: int) -> List[Commission]:
        """
        Create pending commissions for every line of a paid order

        Args:
            order_id: Order ID

        Returns:
            Commissions created by this call (empty when already calculated)

        Raises:
            NotFoundException: If order not found
        """
        order = await self.db.get(Order, order_id)
        if not order:
            raise NotFoundException("Pedido no encontrado")

        buyer = await self.db.get(User, order.user_id)
        items = (await self.db.execute(
            select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        )).scalars().all()

        # Percentages are read at calculation time
        direct_pct = to_decimal(await self.rules.get_number(DIRECT_SALE_COMMISSION_PERCENTAGE))
        referral_pct = to_decimal(await self.rules.get_number(REFERRAL_COMMISSION_PERCENTAGE))

        beneficiaries = []
        if buyer is not None and buyer.role == UserRole.AFFILIATE:
            beneficiaries.append((buyer.id, CommissionType.DIRECT, direct_pct))

        for referrer_id in await self.get_upline(order.user_id):
            if await self._is_active_affiliate(referrer_id):
                beneficiaries.append((referrer_id, CommissionType.REFERRAL, referral_pct))

        existing = await self._existing_keys([item.id for item in items])
        created: List[Commission] = []

        try:
            for item in items:
                for affiliate_id, commission_type, percentage in beneficiaries:
                    if (affiliate_id, item.id, commission_type) in existing:
                        continue
                    commission = Commission(
                        affiliate_id=affiliate_id,
                        order_item_id=item.id,
                        type=commission_type,
                        amount=calculate_commission_amount(item.unit_price, item.quantity, percentage),
                        percentage=percentage,
                        status=CommissionStatus.PENDING
                    )
                    self.db.add(commission)
                    created.append(commission)

            if created:
                await self.db.flush()
                await self._notify(created)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        if created:
            logger.info("Created %d commissions for order %s", len(created), order_id)
        else:
            logger.debug("No new commissions for order %s", order_id)

        return created

    async def _notify(self, commissions: List[Commission]) -> None:
        totals: Dict[tuple, Decimal] = {}
        for commission in commissions:
            key = (commission.affiliate_id, commission.type)
            totals[key] = totals.get(key, Decimal("0")) + to_decimal(commission.amount)

        notifications = NotificationService(self.db)
        for (affiliate_id, commission_type), amount in totals.items():
            await notifications.create_commission_notification(
                affiliate_id, amount, commission_type.value
            )

    def _serialize(self, row) -> Dict[str, Any]:
        commission = row.Commission
        data = commission.to_dict()
        data.update(
            order_id=row.order_id,
            product_name=row.product_name,
            quantity=row.quantity,
            buyer_name=row.buyer_name,
        )
        return data

    def _detail_query(self):
        buyer = aliased(User)
        return (
            select(
                Commission,
                OrderItem.order_id.label("order_id"),
                OrderItem.quantity.label("quantity"),
                Product.name.label("product_name"),
                buyer.full_name.label("buyer_name"),
            )
            .join(OrderItem, OrderItem.id == Commission.order_item_id)
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .join(buyer, buyer.id == Order.user_id)
        )

    async def _summary(self, affiliate_id: int, since: Optional[datetime] = None,
                       until: Optional[datetime] = None) -> Dict[str, Any]:
        conditions = [Commission.affiliate_id == affiliate_id]
        if since is not None:
            conditions.append(Commission.created_at >= since)
        if until is not None:
            conditions.append(Commission.created_at < until)

        result = await self.db.execute(
            select(Commission.type, Commission.status, func.count(Commission.id), func.sum(Commission.amount))
            .where(*conditions)
            .group_by(Commission.type, Commission.status)
        )

        summary = {
            "total": Decimal("0"),
            "count": 0,
            "by_type": {t.value: Decimal("0") for t in CommissionType},
            "by_status": {s.value: Decimal("0") for s in CommissionStatus},
        }
        for commission_type, status, count, amount in result.all():
            amount = to_decimal(amount or 0)
            summary["total"] += amount
            summary["count"] += count
            summary["by_type"][CommissionType(commission_type).value] += amount
            summary["by_status"][CommissionStatus(status).value] += amount

        summary["total"] = float(quantize_money(summary["total"]))
        summary["by_type"] = {k: float(quantize_money(v)) for k, v in summary["by_type"].items()}
        summary["by_status"] = {k: float(quantize_money(v)) for k, v in summary["by_status"].items()}
        return summary

    async def get_affiliate_commissions(
        self,
        affiliate_id: int,
        month: Optional[date] = None,
        type: Optional[CommissionType] = None,
        status: Optional[CommissionStatus] = None,
        page: int = 1,
        limit: int = 20,
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """List commissions of an affiliate with monthly and all-time summary"""
        query = self._detail_query().where(Commission.affiliate_id == affiliate_id)
        count_query = select(func.count(Commission.id)).where(Commission.affiliate_id == affiliate_id)

        if month is not None:
            start, end = _month_bounds(month)
            query = query.where(Commission.created_at >= start, Commission.created_at < end)
            count_query = count_query.where(Commission.created_at >= start, Commission.created_at < end)
        if type is not None:
            query = query.where(Commission.type == type)
            count_query = count_query.where(Commission.type == type)
        if status is not None:
            query = query.where(Commission.status == status)
            count_query = count_query.where(Commission.status == status)

        total = await self.db.scalar(count_query)
        result = await self.db.execute(
            query.order_by(Commission.created_at.desc(), Commission.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        current_start, current_end = _month_bounds(today or datetime.utcnow().date())

        return {
            "commissions": [self._serialize(row) for row in result.all()],
            "summary": {
                "current_month": await self._summary(affiliate_id, current_start, current_end),
                "all_time": await self._summary(affiliate_id),
            },
            "pagination": pagination_meta(total, page, limit),
        }

    async def get_commissions_by_referral(
        self,
        affiliate_id: int,
        month: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        """Referral commissions grouped per referred buyer"""
        start, end = _month_bounds(month or datetime.utcnow().date())
        in_month = (Commission.created_at >= start) & (Commission.created_at < end)

        result = await self.db.execute(
            select(
                User.id,
                User.full_name,
                User.dni,
                func.sum(Commission.amount).label("total"),
                func.sum(case((in_month, Commission.amount), else_=0)).label("monthly"),
                func.count(distinct(Order.id)).label("orders"),
            )
            .select_from(Commission)
            .join(OrderItem, OrderItem.id == Commission.order_item_id)
            .join(Order, Order.id == OrderItem.order_id)
            .join(User, User.id == Order.user_id)
            .where(
                Commission.affiliate_id == affiliate_id,
                Commission.type == CommissionType.REFERRAL
            )
            .group_by(User.id, User.full_name, User.dni)
            .order_by(func.sum(Commission.amount).desc())
        )

        return [
            {
                "referred_id": row.id,
                "full_name": row.full_name,
                "dni": row.dni,
                "total_commission": float(quantize_money(row.total or 0)),
                "monthly_commission": float(quantize_money(row.monthly or 0)),
                "orders": row.orders,
            }
            for row in result.all()
        ]

    async def approve_commission(self, commission_id: int) -> Commission:
        """Move a commission from pending to approved"""
        commission = await self.db.get(Commission, commission_id)
        if not commission:
            raise NotFoundException("Comisión no encontrada")

        if commission.status != CommissionStatus.PENDING:
            raise BadRequestException("La comisión ya fue procesada", error_code="COMMISSION_ALREADY_PROCESSED")

        commission.status = CommissionStatus.APPROVED
        commission.approved_at = datetime.utcnow()
        await self.db.commit()

        logger.info("Commission %s approved", commission_id)
        return commission

    async def mark_commissions_as_paid(self, commission_ids: List[int]) -> int:
        """Move approved commissions to paid; other states are left untouched"""
        if not commission_ids:
            return 0

        result = await self.db.execute(
            update(Commission)
            .where(
                Commission.id.in_(commission_ids),
                Commission.status == CommissionStatus.APPROVED
            )
            .values(status=CommissionStatus.PAID, paid_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        logger.info("Marked %d commissions as paid", result.rowcount)
        return result.rowcount

    async def get_pending_commissions(
        self,
        admin: User,
        region: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> Dict[str, Any]:
        """Pending commissions; regional admins only see their regions"""
        earner = aliased(Affiliate)
        query = (
            self._detail_query()
            .join(earner, earner.id == Commission.affiliate_id)
            .where(Commission.status == CommissionStatus.PENDING)
        )
        count_query = (
            select(func.count(Commission.id))
            .join(earner, earner.id == Commission.affiliate_id)
            .where(Commission.status == CommissionStatus.PENDING)
        )

        if admin.role != UserRole.ADMIN_GENERAL:
            regions = select(AdminRegion.region).where(AdminRegion.admin_id == admin.id)
            query = query.where(earner.region.in_(regions))
            count_query = count_query.where(earner.region.in_(regions))
        if region:
            query = query.where(earner.region == region)
            count_query = count_query.where(earner.region == region)

        total = await self.db.scalar(count_query)
        result = await self.db.execute(
            query.add_columns(earner.region.label("region"))
            .order_by(Commission.created_at.asc(), Commission.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        commissions = []
        for row in result.all():
            data = self._serialize(row)
            data["region"] = row.region
            commissions.append(data)

        return {
            "commissions": commissions,
            "pagination": pagination_meta(total, page, limit),
        }
