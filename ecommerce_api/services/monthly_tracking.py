"""
Monthly minimum-purchase tracking
Evaluates affiliate compliance per calendar month and deactivates
affiliates that missed the previous month's minimum
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional
import calendar
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from ecommerce_api.models import (
    Affiliate,
    AffiliateStatus,
    MinMonthlyBuy,
    Order,
    OrderItem,
    PURCHASED_STATUSES,
    User,
    UserRole,
)
from ecommerce_api.core.exceptions import BadRequestException, NotFoundException
from ecommerce_api.services.business_rules import BusinessRulesService, MIN_MONTHLY_BUY
from ecommerce_api.services.notification import NotificationService
from ecommerce_api.utils.helpers import (
    as_datetime,
    month_label,
    month_start,
    next_month_start,
    previous_month_start,
)

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class MonthlyBuyResult:
    """Compliance of one affiliate for one calendar month"""
    month_start: date
    quantity: int
    required: int
    achieved: bool

class MonthlyTrackingService:
    """Service for monthly purchase compliance"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.rules = BusinessRulesService(db)
        self.notifications = NotificationService(db)

    async def compute_monthly_buy(self, affiliate_id: int, month: date) -> MonthlyBuyResult:
        """Sum purchased quantity in the month containing `month`; writes nothing"""
        start = month_start(month)
        end = next_month_start(start)

        quantity = await self.db.scalar(
            select(func.coalesce(func.sum(OrderItem.quantity), 0))
            .join(Order, Order.id == OrderItem.order_id)
            .where(
                Order.user_id == affiliate_id,
                Order.status.in_(PURCHASED_STATUSES),
                Order.created_at >= as_datetime(start),
                Order.created_at < as_datetime(end)
            )
        )
        required = int(await self.rules.get_number(MIN_MONTHLY_BUY))
        quantity = int(quantity or 0)

        return MonthlyBuyResult(
            month_start=start,
            quantity=quantity,
            required=required,
            achieved=quantity >= required
        )

    async def _store(self, affiliate_id: int, result: MonthlyBuyResult) -> MinMonthlyBuy:
        """Upsert the (affiliate, month) row, overwriting previous values"""
        record = (await self.db.execute(
            select(MinMonthlyBuy).where(
                MinMonthlyBuy.affiliate_id == affiliate_id,
                MinMonthlyBuy.month == result.month_start
            )
        )).scalar_one_or_none()

        if record is None:
            record = MinMonthlyBuy(affiliate_id=affiliate_id, month=result.month_start)
            self.db.add(record)

        record.quantity = result.quantity
        record.achieved = result.achieved
        await self.db.flush()
        return record

    async def check_monthly_buy(self, affiliate_id: int, month: Optional[date] = None) -> bool:
        """
        Recompute and persist compliance for a month

        Args:
            affiliate_id: Affiliate user ID
            month: Any day of the month to evaluate (defaults to today)

        Returns:
            Whether the monthly minimum was achieved
        """
        result = await self.compute_monthly_buy(affiliate_id, month or datetime.utcnow().date())
        try:
            await self._store(affiliate_id, result)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.debug(
            "Monthly buy for affiliate %s in %s: %s/%s",
            affiliate_id, month_label(result.month_start), result.quantity, result.required
        )
        return result.achieved

    async def deactivate_inactive_affiliates(self, today: Optional[date] = None) -> List[int]:
        """
        Deactivate active affiliates that missed the previous month's minimum

        Args:
            today: Reference date; the month before it is evaluated

        Returns:
            IDs of the affiliates deactivated by this run
        """
        target = previous_month_start(today or datetime.utcnow().date())
        label = month_label(target)

        affiliate_ids = (await self.db.execute(
            select(User.id)
            .join(Affiliate, Affiliate.id == User.id)
            .where(
                User.role == UserRole.AFFILIATE,
                User.is_active.is_(True),
                Affiliate.status == AffiliateStatus.ACTIVE
            )
            .order_by(User.id)
        )).scalars().all()

        deactivated = []
        try:
            for affiliate_id in affiliate_ids:
                result = await self.compute_monthly_buy(affiliate_id, target)
                await self._store(affiliate_id, result)
                if result.achieved:
                    continue

                user = await self.db.get(User, affiliate_id)
                affiliate = await self.db.get(Affiliate, affiliate_id)
                user.is_active = False
                affiliate.status = AffiliateStatus.INACTIVE
                await self.notifications.create_deactivation_notification(affiliate_id, label)
                deactivated.append(affiliate_id)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Monthly sweep for %s: %d affiliates evaluated, %d deactivated",
            label, len(affiliate_ids), len(deactivated)
        )
        return deactivated

    async def deactivate_for_month(self, month: date, today: Optional[date] = None) -> List[int]:
        """
        Run the deactivation sweep for an explicit, already closed month

        Raises:
            BadRequestException: If the month is the running one or later
        """
        target = month_start(month)
        if target >= month_start(today or datetime.utcnow().date()):
            raise BadRequestException(
                "Solo se pueden evaluar meses ya cerrados",
                error_code="MONTH_NOT_CLOSED"
            )
        return await self.deactivate_inactive_affiliates(next_month_start(target))

    async def get_monthly_history(self, affiliate_id: int, months: int = 12) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(MinMonthlyBuy)
            .where(MinMonthlyBuy.affiliate_id == affiliate_id)
            .order_by(MinMonthlyBuy.month.desc())
            .limit(months)
        )
        return [
            {
                "month": month_label(record.month),
                "quantity": record.quantity,
                "achieved": record.achieved,
            }
            for record in result.scalars().all()
        ]

    async def get_current_month_status(
        self,
        affiliate_id: int,
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """Live compliance for the running month"""
        if await self.db.get(Affiliate, affiliate_id) is None:
            raise NotFoundException("Afiliado no encontrado")

        today = today or datetime.utcnow().date()
        result = await self.compute_monthly_buy(affiliate_id, today)
        days_in_month = calendar.monthrange(today.year, today.month)[1]

        return {
            "month": month_label(result.month_start),
            "quantity": result.quantity,
            "required": result.required,
            "remaining": max(result.required - result.quantity, 0),
            "achieved": result.achieved,
            "days_remaining": days_in_month - today.day,
            "status": "compliant" if result.achieved else "pending",
        }
