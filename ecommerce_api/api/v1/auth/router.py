"""
Authentication API routes
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ecommerce_api.core.config import settings
from ecommerce_api.core.database import get_db
from ecommerce_api.middleware.rate_limit import limiter
from ecommerce_api.models import User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.utils.dependencies import get_current_active_user, require_admin, require_admin_general
from .schemas import (
    LoginRequest,
    RegisterUserRequest,
    RegisterAffiliateRequest,
    RegisterAdminRequest,
    UpdateProfileRequest,
    MaxReferralsUpdate
)
from .services import AuthService

router = APIRouter()

@router.post(
    "/login",
    response_model=ApiResponse,
    summary="Login",
    description="Authenticate with DNI and password"
)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login and receive an access token"""
    service = AuthService(db)
    result = await service.login(credentials.dni, credentials.password)
    return success_response(result, "Inicio de sesión exitoso")

@router.post(
    "/register/user",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register visitor"
)
async def register_user(
    data: RegisterUserRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register a visitor account"""
    service = AuthService(db)
    result = await service.register_user(data)
    return success_response(result, "Usuario registrado exitosamente")

@router.post(
    "/register/affiliate",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register affiliate"
)
async def register_affiliate(
    data: RegisterAffiliateRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register an affiliate, optionally under a sponsor"""
    service = AuthService(db)
    result = await service.register_affiliate(data)
    return success_response(result, "Afiliado registrado exitosamente")

@router.post(
    "/register/admin",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register admin"
)
async def register_admin(
    data: RegisterAdminRequest,
    current_user: User = Depends(require_admin_general),
    db: AsyncSession = Depends(get_db)
):
    """Create an admin account"""
    service = AuthService(db)
    result = await service.register_admin(current_user, data)
    return success_response(result, "Administrador registrado exitosamente")

@router.get(
    "/profile",
    response_model=ApiResponse,
    summary="Current user profile"
)
async def get_profile(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Get profile of the authenticated user"""
    service = AuthService(db)
    return success_response(await service.get_profile(current_user))

@router.patch(
    "/profile",
    response_model=ApiResponse,
    summary="Update profile"
)
async def update_profile(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """Update name, email and affiliate contact data"""
    service = AuthService(db)
    result = await service.update_profile(current_user, data)
    return success_response(result, "Perfil actualizado exitosamente")

@router.put(
    "/affiliates/{affiliate_id}/max-referrals",
    response_model=ApiResponse,
    summary="Update affiliate referral limit"
)
async def update_max_referrals(
    affiliate_id: int,
    data: MaxReferralsUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Change how many direct referrals an affiliate may sponsor"""
    service = AuthService(db)
    result = await service.update_max_referrals(current_user, affiliate_id, data.max_referrals)
    return success_response(result, "Límite de referidos actualizado")
