"""
Post-payment pipeline
Ordered best-effort handlers run after a payment has been committed
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ecommerce_api.services.commission_service import CommissionService
from ecommerce_api.services.monthly_tracking import MonthlyTrackingService
from ecommerce_api.services.notification import NotificationService
from ecommerce_api.services.rewards_service import RewardsService

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class PaidOrder:
    """Snapshot of the paid order handed to every step"""
    order_id: int
    user_id: int
    is_affiliate: bool
    total_amount: Decimal

@dataclass
class StepResult:
    name: str
    status: str  # completed, skipped, failed
    result: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "status": self.status, "error": self.error}

@dataclass
class PipelineReport:
    order_id: int
    steps: List[StepResult] = field(default_factory=list)

    @property
    def failed(self) -> List[str]:
        return [step.name for step in self.steps if step.status == "failed"]

    def to_dict(self) -> Dict[str, Any]:
        return {"order_id": self.order_id, "steps": [step.to_dict() for step in self.steps]}

SKIPPED = object()

Step = Callable[[PaidOrder], Awaitable[Any]]

class PostPaymentPipeline:
    """Runs commissions, points, compliance and notification in order

    Each step commits on its own. A failing step is rolled back and logged;
    the steps after it still run and the payment stays final.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.steps: List[Tuple[str, Step]] = [
            ("commissions", self._commissions),
            ("points", self._points),
            ("compliance", self._compliance),
            ("notification", self._notification),
        ]

    async def _commissions(self, order: PaidOrder):
        created = await CommissionService(self.db).calculate_commissions(order.order_id)
        return len(created)

    async def _points(self, order: PaidOrder):
        if not order.is_affiliate:
            return SKIPPED
        return await RewardsService(self.db).add_points_for_purchase(
            order.user_id, order.total_amount, order_id=order.order_id
        )

    async def _compliance(self, order: PaidOrder):
        if not order.is_affiliate:
            return SKIPPED
        return await MonthlyTrackingService(self.db).check_monthly_buy(order.user_id)

    async def _notification(self, order: PaidOrder):
        await NotificationService(self.db).create_payment_success_notification(
            order.user_id, order.order_id
        )
        await self.db.commit()

    async def run(self, order: PaidOrder) -> PipelineReport:
        report = PipelineReport(order_id=order.order_id)

        for name, step in self.steps:
            try:
                result = await step(order)
            except Exception as exc:
                await self.db.rollback()
                logger.exception("Post-payment step %s failed for order %s", name, order.order_id)
                report.steps.append(StepResult(name=name, status="failed", error=str(exc)))
                continue

            if result is SKIPPED:
                report.steps.append(StepResult(name=name, status="skipped"))
            else:
                report.steps.append(StepResult(name=name, status="completed", result=result))

        if report.failed:
            logger.warning(
                "Post-payment pipeline for order %s finished with failures: %s",
                order.order_id, ", ".join(report.failed)
            )
        else:
            logger.info("Post-payment pipeline for order %s completed", order.order_id)

        return report
