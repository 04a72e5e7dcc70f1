"""
Common dependencies for FastAPI
"""

from typing import Callable, Optional
from datetime import date
from fastapi import Query, Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ecommerce_api.core.config import settings
from ecommerce_api.core.database import get_db
from ecommerce_api.core.exceptions import UnauthorizedException, ForbiddenException, BadRequestException
from ecommerce_api.core.security import SecurityUtils, get_current_user, security
from ecommerce_api.models import User, UserRole, ADMIN_ROLES
from .pagination import PaginationParams
from .helpers import parse_month

def get_pagination_params(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Page size")
) -> PaginationParams:
    """Get pagination parameters from query"""
    return PaginationParams(page=page, limit=limit)

def get_month_param(
    month: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}$", description="Month as YYYY-MM")
) -> Optional[date]:
    """Parse an optional YYYY-MM query parameter"""
    if month is None:
        return None
    try:
        return parse_month(month)
    except ValueError as e:
        raise BadRequestException(str(e), error_code="VALIDATION_ERROR")

async def get_current_active_user(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get current active user from database

    Args:
        current_user: Current user claims from JWT
        db: Database session

    Returns:
        User model instance

    Raises:
        UnauthorizedException: If user not found or inactive
    """
    result = await db.execute(
        select(User).where(User.id == current_user["id"])
    )
    user = result.scalar_one_or_none()

    if not user:
        raise UnauthorizedException("Usuario no encontrado")

    if not user.is_active:
        raise UnauthorizedException("Cuenta inactiva", error_code="ACCOUNT_INACTIVE")

    return user

def require_roles(*roles: UserRole) -> Callable:
    """Dependency factory restricting a route to the given roles"""
    allowed = set(roles)

    async def role_checker(user: User = Depends(get_current_active_user)) -> User:
        if user.role not in allowed:
            raise ForbiddenException()
        return user

    return role_checker

# Specific role dependencies
require_affiliate = require_roles(UserRole.AFFILIATE)
require_admin = require_roles(*ADMIN_ROLES)
require_admin_general = require_roles(UserRole.ADMIN_GENERAL)
require_affiliate_or_admin = require_roles(UserRole.AFFILIATE, *ADMIN_ROLES)

async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Get current user if authenticated, None otherwise"""
    if credentials is None:
        return None

    payload = SecurityUtils.decode_token(credentials.credentials)
    result = await db.execute(
        select(User).where(User.id == int(payload.get("sub", 0)), User.is_active.is_(True))
    )
    return result.scalar_one_or_none()
