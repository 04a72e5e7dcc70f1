"""User service for account creation shared by registration flows"""

from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
import logging

from ecommerce_api.models import User, Affiliate, Referral, UserRole, AdminRegion, ADMIN_ROLES
from ecommerce_api.core.security import SecurityUtils
from ecommerce_api.core.exceptions import (
    DuplicateResourceException,
    InvalidSponsorException,
    ReferralLimitReachedException,
)
from ecommerce_api.services.business_rules import BusinessRulesService, MAX_REFERRALS_DEFAULT

logger = logging.getLogger(__name__)

class UserService:
    """Service class for user operations"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.rules = BusinessRulesService(db)

    async def get_by_dni(self, dni: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.dni == dni))
        return result.scalar_one_or_none()

    async def ensure_unique(self, dni: str, email: str) -> None:
        """Reject a DNI or email that is already registered"""
        result = await self.db.execute(
            select(User).where(or_(User.dni == dni, User.email == email))
        )
        for existing in result.scalars().all():
            if existing.dni == dni:
                raise DuplicateResourceException("El DNI ya está registrado")
            if existing.email == email:
                raise DuplicateResourceException("El email ya está registrado")

    async def count_referrals(self, sponsor_id: int) -> int:
        return await self.db.scalar(
            select(func.count(Referral.id)).where(Referral.referrer_id == sponsor_id)
        )

    async def validate_sponsor(self, sponsor_id: int, allow_admins: bool = True) -> User:
        """
        Check that a sponsor may add another referral

        Args:
            sponsor_id: Sponsor user ID
            allow_admins: Whether admins may sponsor directly

        Returns:
            Sponsor user

        Raises:
            InvalidSponsorException: If sponsor is missing, inactive or has a wrong role
            ReferralLimitReachedException: If an affiliate sponsor is at its limit
        """
        roles = [UserRole.AFFILIATE, *ADMIN_ROLES] if allow_admins else [UserRole.AFFILIATE]
        sponsor = (await self.db.execute(
            select(User).where(
                User.id == sponsor_id,
                User.role.in_(roles),
                User.is_active.is_(True)
            )
        )).scalar_one_or_none()

        if not sponsor:
            raise InvalidSponsorException()

        if sponsor.role == UserRole.AFFILIATE:
            limit = sponsor.max_referrals
            if limit is None:
                limit = int(await self.rules.get_number(MAX_REFERRALS_DEFAULT))
            if await self.count_referrals(sponsor.id) >= limit:
                raise ReferralLimitReachedException()

        return sponsor

    async def build_user(
        self,
        dni: str,
        full_name: str,
        email: str,
        password: str,
        role: UserRole,
        created_by_id: Optional[int] = None
    ) -> User:
        """Add a user to the session without committing"""
        user = User(
            dni=dni,
            full_name=full_name,
            email=email,
            password_hash=SecurityUtils.hash_password(password),
            role=role,
            is_active=True,
            created_by_id=created_by_id
        )
        if role == UserRole.AFFILIATE:
            user.max_referrals = int(await self.rules.get_number(MAX_REFERRALS_DEFAULT))
        self.db.add(user)
        await self.db.flush()
        return user

    async def build_affiliate(
        self,
        user: User,
        profile: Dict[str, Any],
        sponsor_id: Optional[int] = None
    ) -> Affiliate:
        """Add affiliate profile and referral edge for a flushed user"""
        affiliate = Affiliate(
            id=user.id,
            sponsor_id=sponsor_id,
            phone=profile.get("phone") or "",
            region=profile.get("region"),
            city=profile.get("city"),
            address=profile.get("address"),
            reference=profile.get("reference")
        )
        self.db.add(affiliate)

        if sponsor_id is not None:
            self.db.add(Referral(referrer_id=sponsor_id, referred_id=user.id))

        await self.db.flush()
        return affiliate

    async def set_admin_regions(self, admin: User, regions) -> None:
        for region in regions or []:
            self.db.add(AdminRegion(admin_id=admin.id, region=region))
        await self.db.flush()

    @staticmethod
    def serialize_user(user: User, affiliate: Optional[Affiliate] = None) -> Dict[str, Any]:
        data = user.to_dict(exclude=["password_hash", "updated_at"])
        if affiliate is not None:
            data["affiliate"] = affiliate.to_dict(exclude=["id", "updated_at"])
        return data
