"""
Authentication service layer
Handles login, role-scoped registration and profile changes
"""

from typing import Any, Dict, Optional
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
import logging

from ecommerce_api.models import User, Affiliate, AdminRegion, UserRole
from ecommerce_api.core.config import settings
from ecommerce_api.core.security import SecurityUtils
from ecommerce_api.core.exceptions import (
    BadRequestException,
    DuplicateResourceException,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
)
from ecommerce_api.services.user_service import UserService
from .schemas import (
    RegisterUserRequest,
    RegisterAffiliateRequest,
    RegisterAdminRequest,
    UpdateProfileRequest,
)

logger = logging.getLogger(__name__)

AFFILIATE_CONTACT_FIELDS = frozenset({"phone", "region", "city", "address", "reference"})

class AuthService:
    """Authentication service"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserService(db)

    def _token_response(self, user: User, affiliate: Optional[Affiliate] = None) -> Dict[str, Any]:
        return {
            "user": UserService.serialize_user(user, affiliate),
            "token": SecurityUtils.create_access_token(SecurityUtils.token_payload(user)),
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        }

    async def login(self, dni: str, password: str) -> Dict[str, Any]:
        """
        Authenticate with DNI and password

        Args:
            dni: National ID
            password: Plain password

        Returns:
            User data and access token

        Raises:
            UnauthorizedException: If credentials are wrong or the account is inactive
        """
        user = await self.users.get_by_dni(dni)
        if not user or not SecurityUtils.verify_password(password, user.password_hash):
            raise UnauthorizedException("DNI o contraseña incorrectos", error_code="INVALID_CREDENTIALS")

        if not user.is_active:
            raise UnauthorizedException(
                "Cuenta desactivada. Contacte al administrador.",
                error_code="ACCOUNT_INACTIVE"
            )

        user.last_login = datetime.utcnow()
        await self.db.commit()

        affiliate = await self.db.get(Affiliate, user.id)
        logger.info("User %s logged in", user.id)
        return self._token_response(user, affiliate)

    async def register_user(self, data: RegisterUserRequest) -> Dict[str, Any]:
        """Register a visitor account"""
        await self.users.ensure_unique(data.dni, data.email)

        try:
            user = await self.users.build_user(
                dni=data.dni,
                full_name=data.full_name,
                email=data.email,
                password=data.password,
                role=UserRole.VISITOR
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceException("El DNI o email ya está registrado")
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Visitor %s registered", user.id)
        return self._token_response(user)

    async def register_affiliate(self, data: RegisterAffiliateRequest) -> Dict[str, Any]:
        """
        Register an affiliate with profile and referral edge in one transaction

        Raises:
            DuplicateResourceException: If DNI or email already registered
            InvalidSponsorException: If sponsor is not an active affiliate or admin
            ReferralLimitReachedException: If the sponsor has no referral slots left
        """
        await self.users.ensure_unique(data.dni, data.email)
        if data.sponsor_id is not None:
            await self.users.validate_sponsor(data.sponsor_id)

        try:
            user = await self.users.build_user(
                dni=data.dni,
                full_name=data.full_name,
                email=data.email,
                password=data.password,
                role=UserRole.AFFILIATE,
                created_by_id=data.sponsor_id
            )
            affiliate = await self.users.build_affiliate(
                user,
                data.model_dump(include={"phone", "region", "city", "address", "reference"}),
                sponsor_id=data.sponsor_id
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceException("El DNI o email ya está registrado")
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Affiliate %s registered (sponsor=%s)", user.id, data.sponsor_id)
        return self._token_response(user, affiliate)

    async def register_admin(self, creator: User, data: RegisterAdminRequest) -> Dict[str, Any]:
        """Create an admin account; callers are restricted to general admins"""
        await self.users.ensure_unique(data.dni, data.email)

        try:
            user = await self.users.build_user(
                dni=data.dni,
                full_name=data.full_name,
                email=data.email,
                password=data.password,
                role=data.role,
                created_by_id=creator.id
            )
            await self.users.set_admin_regions(user, data.regions)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceException("El DNI o email ya está registrado")
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Admin %s created by %s", user.id, creator.id)
        admin = UserService.serialize_user(user)
        admin["regions"] = list(data.regions)
        return admin

    async def get_profile(self, user: User) -> Dict[str, Any]:
        affiliate = await self.db.get(Affiliate, user.id)
        profile = UserService.serialize_user(user, affiliate)

        if user.is_admin:
            result = await self.db.execute(
                select(AdminRegion.region).where(AdminRegion.admin_id == user.id)
            )
            profile["regions"] = list(result.scalars().all())

        return profile

    async def update_profile(self, user: User, data: UpdateProfileRequest) -> Dict[str, Any]:
        """
        Update name, email and, for affiliates, contact data

        Raises:
            BadRequestException: If a non-affiliate sends affiliate contact fields
            DuplicateResourceException: If the email belongs to another user
        """
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        affiliate = await self.db.get(Affiliate, user.id)

        contact_fields = changes.keys() & AFFILIATE_CONTACT_FIELDS
        if contact_fields and affiliate is None:
            raise BadRequestException(
                "Solo los afiliados tienen datos de contacto",
                error_code="VALIDATION_ERROR"
            )

        if "email" in changes and changes["email"] != user.email:
            taken = await self.db.scalar(
                select(User.id).where(User.email == changes["email"], User.id != user.id)
            )
            if taken:
                raise DuplicateResourceException("El email ya está registrado")

        try:
            for field, value in changes.items():
                setattr(affiliate if field in AFFILIATE_CONTACT_FIELDS else user, field, value)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceException("El email ya está registrado")
        except Exception:
            await self.db.rollback()
            raise

        logger.info("User %s updated profile fields %s", user.id, sorted(changes))
        return await self.get_profile(user)

    async def update_max_referrals(self, admin: User, affiliate_id: int, max_referrals: int) -> Dict[str, Any]:
        """
        Change how many direct referrals an affiliate may sponsor

        Regional admins may only change affiliates of their own regions.
        Lowering the cap below the current count keeps existing referrals
        and blocks new ones.
        """
        user = await self.db.get(User, affiliate_id)
        affiliate = await self.db.get(Affiliate, affiliate_id)
        if not user or user.role != UserRole.AFFILIATE or affiliate is None:
            raise NotFoundException("Afiliado no encontrado")

        if admin.role != UserRole.ADMIN_GENERAL:
            regions = (await self.db.execute(
                select(AdminRegion.region).where(AdminRegion.admin_id == admin.id)
            )).scalars().all()
            if affiliate.region not in regions:
                raise ForbiddenException("El afiliado no pertenece a tus regiones")

        user.max_referrals = max_referrals
        await self.db.commit()

        current = await self.users.count_referrals(affiliate_id)
        logger.info("Admin %s set max_referrals=%s for affiliate %s", admin.id, max_referrals, affiliate_id)
        return {
            "id": user.id,
            "full_name": user.full_name,
            "max_referrals": user.max_referrals,
            "current_referrals": current,
            "available_slots": max(max_referrals - current, 0),
        }
