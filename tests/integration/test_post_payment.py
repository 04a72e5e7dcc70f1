"""Integration tests for the post-payment pipeline."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from ecommerce_api.models import Affiliate, Commission, Notification
from ecommerce_api.services.post_payment import PaidOrder, PipelineReport, PostPaymentPipeline, StepResult

pytestmark = pytest.mark.integration


async def _paid_order(factory, buyer):
    product = await factory.product()
    order = await factory.order(buyer, [(product, 1, "150.00")])
    return PaidOrder(order_id=order.id, user_id=buyer.id, is_affiliate=True, total_amount=Decimal("150.00"))


class TestPostPaymentPipeline:
    """Test step ordering and failure isolation."""

    async def test_steps_run_in_order(self, db_session, factory):
        buyer = await factory.affiliate()
        paid = await _paid_order(factory, buyer)

        report = await PostPaymentPipeline(db_session).run(paid)

        assert [step.name for step in report.steps] == ["commissions", "points", "compliance", "notification"]
        assert report.failed == []
        assert report.steps[0].result == 1
        assert report.steps[1].result == 15
        assert report.steps[2].result is True

    async def test_failing_step_does_not_stop_the_rest(self, db_session, factory):
        buyer = await factory.affiliate()
        buyer_id = buyer.id
        paid = await _paid_order(factory, buyer)

        async def broken(order):
            raise RuntimeError("commission engine unavailable")

        pipeline = PostPaymentPipeline(db_session)
        pipeline.steps[0] = ("commissions", broken)
        report = await pipeline.run(paid)

        assert report.failed == ["commissions"]
        assert report.steps[0].error == "commission engine unavailable"
        assert await db_session.scalar(select(func.count(Commission.id))) == 0
        assert await db_session.scalar(select(Affiliate.points).where(Affiliate.id == buyer_id)) == 15
        assert await db_session.scalar(
            select(func.count(Notification.id)).where(
                Notification.user_id == buyer_id,
                Notification.type == "payment_ok",
            )
        ) == 1

    async def test_rerun_adds_nothing(self, db_session, factory):
        buyer = await factory.affiliate()
        buyer_id = buyer.id
        paid = await _paid_order(factory, buyer)
        pipeline = PostPaymentPipeline(db_session)

        await pipeline.run(paid)
        report = await pipeline.run(paid)

        assert report.failed == []
        assert report.steps[0].result == 0
        assert report.steps[1].result == 0
        assert await db_session.scalar(select(Affiliate.points).where(Affiliate.id == buyer_id)) == 15
        assert await db_session.scalar(select(func.count(Notification.id)).where(
            Notification.user_id == buyer_id,
            Notification.type == "payment_ok",
        )) == 1

    def test_report_serialization(self):
        report = PipelineReport(order_id=7, steps=[
            StepResult(name="commissions", status="failed", error="boom"),
            StepResult(name="points", status="skipped"),
        ])

        assert report.to_dict() == {
            "order_id": 7,
            "steps": [
                {"name": "commissions", "status": "failed", "error": "boom"},
                {"name": "points", "status": "skipped", "error": None},
            ],
        }
