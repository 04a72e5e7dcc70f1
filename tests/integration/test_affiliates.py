"""
Integration tests for sponsor registration and the affiliate network.

Tests cover:
- Sponsor validation and referral limits
- Downline registration with a temporary password
- Network listing with per-referral statistics
- Sponsor-driven activation
"""

import pytest
from sqlalchemy import select

from ecommerce_api.api.v1.affiliates.schemas import NetworkFilters, RegisterReferralRequest
from ecommerce_api.api.v1.affiliates.services import AffiliateService
from ecommerce_api.core.exceptions import (
    DuplicateResourceException,
    InvalidSponsorException,
    NotFoundException,
    ReferralLimitReachedException,
)
from ecommerce_api.models import (
    Affiliate,
    AffiliateStatus,
    CommissionStatus,
    Referral,
    User,
    UserRole,
)
from ecommerce_api.services.commission_service import CommissionService
from ecommerce_api.services.user_service import UserService

pytestmark = pytest.mark.integration


def _referral_request(dni="71234567", email="nuevo@example.com"):
    return RegisterReferralRequest(
        dni=dni,
        full_name="Nuevo Afiliado",
        email=email,
        phone="987654321",
        region="Lima",
        city="Lima",
        address="Jr. Las Flores 456",
    )


class TestSponsorValidation:
    """Test who may sponsor new affiliates."""

    async def test_affiliate_under_limit(self, db_session, factory):
        sponsor = await factory.affiliate(max_referrals=2)
        await factory.affiliate(sponsor=sponsor)

        assert (await UserService(db_session).validate_sponsor(sponsor.id)).id == sponsor.id

    async def test_referral_limit_reached(self, db_session, factory):
        sponsor = await factory.affiliate(max_referrals=1)
        await factory.affiliate(sponsor=sponsor)

        with pytest.raises(ReferralLimitReachedException):
            await UserService(db_session).validate_sponsor(sponsor.id)

    async def test_visitor_cannot_sponsor(self, db_session, factory):
        visitor = await factory.user(UserRole.VISITOR)

        with pytest.raises(InvalidSponsorException):
            await UserService(db_session).validate_sponsor(visitor.id)

    async def test_inactive_affiliate_cannot_sponsor(self, db_session, factory):
        sponsor = await factory.affiliate(is_active=False)

        with pytest.raises(InvalidSponsorException):
            await UserService(db_session).validate_sponsor(sponsor.id)

    async def test_admin_has_no_referral_limit(self, db_session, factory):
        admin = await factory.admin(general=True)

        assert (await UserService(db_session).validate_sponsor(admin.id)).id == admin.id


class TestRegisterReferral:
    """Test sponsor-driven registration."""

    async def test_creates_affiliate_with_referral_edge(self, db_session, factory):
        sponsor = await factory.affiliate()

        result = await AffiliateService(db_session).register_referral(sponsor, _referral_request())

        user = result["user"]
        assert user["role"] == "affiliate"
        assert len(user["temp_password"]) == 8
        profile = await db_session.get(Affiliate, user["id"])
        assert profile.sponsor_id == sponsor.id
        edge = await db_session.scalar(select(Referral).where(Referral.referred_id == user["id"]))
        assert edge.referrer_id == sponsor.id

    async def test_limit_blocks_registration(self, db_session, factory):
        sponsor = await factory.affiliate(max_referrals=1)
        await factory.affiliate(sponsor=sponsor)

        with pytest.raises(ReferralLimitReachedException):
            await AffiliateService(db_session).register_referral(sponsor, _referral_request())

    async def test_duplicate_dni(self, db_session, factory):
        sponsor = await factory.affiliate()
        service = AffiliateService(db_session)
        await service.register_referral(sponsor, _referral_request())

        with pytest.raises(DuplicateResourceException):
            await service.register_referral(sponsor, _referral_request(email="otro@example.com"))


class TestAffiliateNetwork:
    """Test network listing and status changes."""

    async def test_network_with_stats(self, db_session, factory):
        sponsor = await factory.affiliate()
        buyer = await factory.affiliate(sponsor=sponsor)
        await factory.affiliate(sponsor=sponsor)
        await factory.affiliate()
        product = await factory.product()
        order = await factory.order(buyer, [(product, 1, "80.00")])

        created = await CommissionService(db_session).calculate_commissions(order.id)
        for commission in created:
            commission.status = CommissionStatus.APPROVED
        await db_session.commit()

        network = await AffiliateService(db_session).get_affiliate_network(sponsor.id, NetworkFilters())

        assert network["summary"]["total_affiliates"] == 2
        assert network["summary"]["active_affiliates"] == 2
        assert network["summary"]["total_commissions_generated"] == 8.0
        assert network["pagination"]["totalItems"] == 2
        stats = {a["id"]: a["stats"] for a in network["affiliates"]}
        assert stats[buyer.id]["total_orders"] == 1
        assert stats[buyer.id]["total_spent"] == 80.0
        assert stats[buyer.id]["commissions_generated"] == 8.0

    async def test_network_search(self, db_session, factory):
        sponsor = await factory.affiliate()
        member = await factory.affiliate(sponsor=sponsor)
        await factory.affiliate(sponsor=sponsor)

        network = await AffiliateService(db_session).get_affiliate_network(
            sponsor.id, NetworkFilters(search=member.dni)
        )

        assert [a["id"] for a in network["affiliates"]] == [member.id]

    async def test_toggle_status_follows_login_flag(self, db_session, factory):
        sponsor = await factory.affiliate()
        member = await factory.affiliate(sponsor=sponsor)
        service = AffiliateService(db_session)

        result = await service.toggle_affiliate_status(sponsor.id, member.id, AffiliateStatus.INACTIVE)
        assert result == {
            "id": member.id,
            "full_name": member.full_name,
            "status": "inactive",
            "is_active": False,
        }

        await service.toggle_affiliate_status(sponsor.id, member.id, AffiliateStatus.ACTIVE)
        assert (await db_session.get(User, member.id)).is_active is True

    async def test_stats_outside_network(self, db_session, factory):
        sponsor = await factory.affiliate()
        outsider = await factory.affiliate()

        with pytest.raises(NotFoundException):
            await AffiliateService(db_session).get_affiliate_stats_for_sponsor(sponsor.id, outsider.id)
