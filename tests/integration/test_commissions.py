"""
Integration tests for commission calculation.

Tests cover:
- Direct commission for affiliate buyers
- Referral commission for the active sponsor
- Recalculation never duplicates rows
- Inactive sponsors and visitor buyers
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from ecommerce_api.models import (
    Commission,
    CommissionStatus,
    CommissionType,
    Notification,
    Referral,
    UserRole,
)
from ecommerce_api.core.exceptions import BadRequestException
from ecommerce_api.services.business_rules import DIRECT_SALE_COMMISSION_PERCENTAGE
from ecommerce_api.services.commission_service import CommissionService

pytestmark = pytest.mark.integration


async def _commissions(session, affiliate_id=None):
    query = select(Commission).order_by(Commission.id)
    if affiliate_id is not None:
        query = query.where(Commission.affiliate_id == affiliate_id)
    return (await session.execute(query)).scalars().all()


class TestCalculateCommissions:
    """Test commissions created for a paid order."""

    async def test_direct_and_referral_commissions(self, db_session, factory):
        sponsor = await factory.affiliate()
        buyer = await factory.affiliate(sponsor=sponsor)
        product = await factory.product()
        order = await factory.order(buyer, [(product, 2, "80.00")])

        created = await CommissionService(db_session).calculate_commissions(order.id)

        assert len(created) == 2
        by_type = {c.type: c for c in created}
        assert by_type[CommissionType.DIRECT].affiliate_id == buyer.id
        assert by_type[CommissionType.DIRECT].amount == Decimal("32.00")
        assert by_type[CommissionType.REFERRAL].affiliate_id == sponsor.id
        assert by_type[CommissionType.REFERRAL].amount == Decimal("16.00")
        assert all(c.status == CommissionStatus.PENDING for c in created)

    async def test_recalculation_is_idempotent(self, db_session, factory):
        sponsor = await factory.affiliate()
        buyer = await factory.affiliate(sponsor=sponsor)
        product = await factory.product()
        order = await factory.order(buyer, [(product, 1, "80.00")])
        service = CommissionService(db_session)

        await service.calculate_commissions(order.id)
        second = await service.calculate_commissions(order.id)

        assert second == []
        assert len(await _commissions(db_session)) == 2

    async def test_one_notification_per_affiliate_and_type(self, db_session, factory):
        sponsor = await factory.affiliate()
        buyer = await factory.affiliate(sponsor=sponsor)
        first = await factory.product()
        second = await factory.product()
        order = await factory.order(buyer, [(first, 1, "80.00"), (second, 3, "50.00")])

        await CommissionService(db_session).calculate_commissions(order.id)

        sponsor_notifications = await db_session.scalar(
            select(func.count(Notification.id)).where(
                Notification.user_id == sponsor.id,
                Notification.type == "commission",
            )
        )
        assert sponsor_notifications == 1
        assert len(await _commissions(db_session, sponsor.id)) == 2

    async def test_inactive_sponsor_earns_nothing(self, db_session, factory):
        sponsor = await factory.affiliate(is_active=False)
        buyer = await factory.affiliate(sponsor=sponsor)
        product = await factory.product()
        order = await factory.order(buyer, [(product, 1, "80.00")])

        created = await CommissionService(db_session).calculate_commissions(order.id)

        assert [c.type for c in created] == [CommissionType.DIRECT]
        assert await _commissions(db_session, sponsor.id) == []

    async def test_visitor_buyer_only_pays_referral(self, db_session, factory):
        sponsor = await factory.affiliate()
        visitor = await factory.user(UserRole.VISITOR)
        db_session.add(Referral(referrer_id=sponsor.id, referred_id=visitor.id))
        await db_session.commit()
        product = await factory.product()
        order = await factory.order(visitor, [(product, 1, "100.00")])

        created = await CommissionService(db_session).calculate_commissions(order.id)

        assert len(created) == 1
        assert created[0].type == CommissionType.REFERRAL
        assert created[0].affiliate_id == sponsor.id
        assert created[0].amount == Decimal("10.00")

    async def test_percentage_is_read_from_rules(self, db_session, factory):
        await factory.rule(DIRECT_SALE_COMMISSION_PERCENTAGE, 25)
        buyer = await factory.affiliate()
        product = await factory.product()
        order = await factory.order(buyer, [(product, 2, "80.00")])

        created = await CommissionService(db_session).calculate_commissions(order.id)

        assert created[0].amount == Decimal("40.00")
        assert created[0].percentage == Decimal("25")


class TestCommissionLifecycle:
    """Test approval, payout and the admin pending list."""

    async def _commissions_for_order(self, session, factory, region="Lima"):
        sponsor = await factory.affiliate(region=region)
        buyer = await factory.affiliate(sponsor=sponsor, region=region)
        product = await factory.product()
        order = await factory.order(buyer, [(product, 1, "80.00")])
        return await CommissionService(session).calculate_commissions(order.id)

    async def test_approve_once(self, db_session, factory):
        direct, _ = await self._commissions_for_order(db_session, factory)
        service = CommissionService(db_session)

        approved = await service.approve_commission(direct.id)
        assert approved.status == CommissionStatus.APPROVED
        assert approved.approved_at is not None

        with pytest.raises(BadRequestException) as exc_info:
            await service.approve_commission(direct.id)
        assert exc_info.value.error_code == "COMMISSION_ALREADY_PROCESSED"

    async def test_mark_paid_only_moves_approved(self, db_session, factory):
        direct, referral = await self._commissions_for_order(db_session, factory)
        service = CommissionService(db_session)
        await service.approve_commission(direct.id)

        assert await service.mark_commissions_as_paid([direct.id, referral.id]) == 1

        statuses = {
            c.id: c.status
            for c in (await db_session.execute(
                select(Commission).execution_options(populate_existing=True)
            )).scalars()
        }
        assert statuses == {direct.id: CommissionStatus.PAID, referral.id: CommissionStatus.PENDING}

    async def test_regional_admin_sees_own_regions(self, db_session, factory):
        await self._commissions_for_order(db_session, factory, region="Lima")
        await self._commissions_for_order(db_session, factory, region="Cusco")
        regional = await factory.admin(regions=["Cusco"])
        general = await factory.admin(general=True)
        service = CommissionService(db_session)

        scoped = await service.get_pending_commissions(regional)
        everything = await service.get_pending_commissions(general)

        assert scoped["pagination"]["totalItems"] == 2
        assert {c["region"] for c in scoped["commissions"]} == {"Cusco"}
        assert everything["pagination"]["totalItems"] == 4
