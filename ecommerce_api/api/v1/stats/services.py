"""
Statistics service layer
Affiliate performance and best-selling products
"""

from typing import Any, Dict, List, Optional
from datetime import date, datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
import logging

from ecommerce_api.models import (
    Affiliate,
    AffiliateStatus,
    Category,
    Commission,
    CommissionStatus,
    MinMonthlyBuy,
    Order,
    OrderItem,
    PURCHASED_STATUSES,
    Product,
    Referral,
    User,
)
from ecommerce_api.core.exceptions import NotFoundException
from ecommerce_api.services.monthly_tracking import MonthlyTrackingService
from ecommerce_api.utils.helpers import (
    as_datetime,
    month_start,
    next_month_start,
    previous_month_start,
    quantize_money,
)

logger = logging.getLogger(__name__)

TOP_PRODUCTS_LIMIT = 10
EARNED_STATUSES = (CommissionStatus.APPROVED, CommissionStatus.PAID)

def _percentage(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole else 0.0

def compliance_streak(records: List[MinMonthlyBuy], before: date) -> int:
    """Consecutive achieved months ending with the month before `before`"""
    achieved = {record.month: record.achieved for record in records}
    streak = 0
    expected = previous_month_start(month_start(before))
    while achieved.get(expected):
        streak += 1
        expected = previous_month_start(expected)
    return streak

class StatsService:
    """Reporting for affiliates and the catalog"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _sales_metrics(self, affiliate_id: int, month_from: datetime, month_to: datetime) -> Dict[str, Any]:
        purchased = (
            select(func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0))
            .where(Order.user_id == affiliate_id, Order.status.in_(PURCHASED_STATUSES))
        )
        total_orders, total_sales = (await self.db.execute(purchased)).one()
        monthly_orders, monthly_sales = (await self.db.execute(
            purchased.where(Order.created_at >= month_from, Order.created_at < month_to)
        )).one()

        total_sales = float(quantize_money(total_sales))
        return {
            "total_sales": total_sales,
            "total_orders": total_orders,
            "monthly_orders": monthly_orders,
            "monthly_sales": float(quantize_money(monthly_sales)),
            "average_order_value": round(total_sales / total_orders, 2) if total_orders else 0.0,
        }

    async def _network_metrics(self, affiliate_id: int) -> Dict[str, Any]:
        total = await self.db.scalar(
            select(func.count(Referral.id)).where(Referral.referrer_id == affiliate_id)
        )
        active = await self.db.scalar(
            select(func.count(Referral.id))
            .join(User, User.id == Referral.referred_id)
            .join(Affiliate, Affiliate.id == Referral.referred_id)
            .where(
                Referral.referrer_id == affiliate_id,
                User.is_active.is_(True),
                Affiliate.status == AffiliateStatus.ACTIVE
            )
        )
        return {
            "total_referrals": total,
            "active_referrals": active,
            "active_rate": _percentage(active, total),
        }

    async def _commission_metrics(self, affiliate_id: int, month_from: datetime, month_to: datetime) -> Dict[str, Any]:
        def total(*conditions):
            return select(func.coalesce(func.sum(Commission.amount), 0)).where(
                Commission.affiliate_id == affiliate_id, *conditions
            )

        earned = await self.db.scalar(total(Commission.status.in_(EARNED_STATUSES)))
        monthly = await self.db.scalar(total(
            Commission.status.in_(EARNED_STATUSES),
            Commission.created_at >= month_from,
            Commission.created_at < month_to
        ))
        pending = await self.db.scalar(total(Commission.status == CommissionStatus.PENDING))
        return {
            "total_earned": float(quantize_money(earned)),
            "monthly_earnings": float(quantize_money(monthly)),
            "pending_commissions": float(quantize_money(pending)),
        }

    async def get_affiliate_performance(self, affiliate_id: int, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Sales, network, commission and compliance figures for one affiliate

        Args:
            affiliate_id: Affiliate user ID
            today: Reference date for the "current month" figures

        Raises:
            NotFoundException: If the affiliate does not exist
        """
        if await self.db.get(Affiliate, affiliate_id) is None:
            raise NotFoundException("Afiliado no encontrado")

        today = today or datetime.utcnow().date()
        start = month_start(today)
        month_from, month_to = as_datetime(start), as_datetime(next_month_start(start))

        records = (await self.db.execute(
            select(MinMonthlyBuy).where(
                MinMonthlyBuy.affiliate_id == affiliate_id,
                MinMonthlyBuy.month < start
            )
        )).scalars().all()
        current = await MonthlyTrackingService(self.db).compute_monthly_buy(affiliate_id, today)

        return {
            "sales_metrics": await self._sales_metrics(affiliate_id, month_from, month_to),
            "network_metrics": await self._network_metrics(affiliate_id),
            "commission_metrics": await self._commission_metrics(affiliate_id, month_from, month_to),
            "monthly_buy_status": {
                "current_month_achieved": current.achieved,
                "current_month_quantity": current.quantity,
                "streak": compliance_streak(records, today),
                "compliance_rate": _percentage(sum(1 for r in records if r.achieved), len(records)),
            },
        }

    async def get_top_products(self, limit: int = TOP_PRODUCTS_LIMIT) -> List[Dict[str, Any]]:
        """Best sellers by units in purchased orders"""
        total_sold = func.sum(OrderItem.quantity).label("total_sold")
        result = await self.db.execute(
            select(
                Product.id,
                Product.name,
                Category.name,
                total_sold,
                func.sum(OrderItem.unit_price * OrderItem.quantity).label("revenue")
            )
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .join(Category, Category.id == Product.category_id)
            .where(Order.status.in_(PURCHASED_STATUSES))
            .group_by(Product.id, Product.name, Category.name)
            .order_by(total_sold.desc(), Product.id.asc())
            .limit(limit)
        )
        return [
            {
                "product_id": product_id,
                "name": name,
                "category": category,
                "total_sold": int(sold),
                "revenue": float(quantize_money(revenue)),
            }
            for product_id, name, category, sold, revenue in result.all()
        ]
