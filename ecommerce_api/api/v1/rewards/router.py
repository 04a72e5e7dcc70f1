"""
Rewards API routes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ecommerce_api.core.database import get_db
from ecommerce_api.models import User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.services.rewards_service import RewardsService
from ecommerce_api.utils.dependencies import (
    get_optional_current_user,
    get_pagination_params,
    require_admin,
    require_affiliate,
)
from ecommerce_api.utils.pagination import PaginationParams
from .schemas import RewardCreate, RewardUpdate, RewardClaimRequest

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("", response_model=ApiResponse, summary="List rewards")
async def list_rewards(
    current_user: User = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active rewards; admins also see inactive ones"""
    include_inactive = bool(current_user and current_user.is_admin)
    rewards = await RewardsService(db).get_rewards(include_inactive=include_inactive)
    return success_response({"rewards": rewards}, "Premios obtenidos")

@router.get("/my-points", response_model=ApiResponse, summary="My points")
async def get_my_points(
    current_user: User = Depends(require_affiliate),
    db: AsyncSession = Depends(get_db)
):
    result = await RewardsService(db).get_affiliate_points(current_user.id)
    return success_response(result, "Puntos obtenidos")

@router.get("/my-claims", response_model=ApiResponse, summary="My reward claims")
async def get_my_claims(
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(require_affiliate),
    db: AsyncSession = Depends(get_db)
):
    result = await RewardsService(db).get_claim_history(current_user.id, pagination.page, pagination.limit)
    return success_response(result, "Historial de canjes obtenido")

@router.post("/claim", response_model=ApiResponse, status_code=status.HTTP_201_CREATED, summary="Claim reward")
async def claim_reward(
    data: RewardClaimRequest,
    current_user: User = Depends(require_affiliate),
    db: AsyncSession = Depends(get_db)
):
    """Redeem points for a reward"""
    claim = await RewardsService(db).claim_reward(current_user.id, data.reward_id)
    return success_response(claim.to_dict(), "Premio canjeado exitosamente")

@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED, summary="Create reward")
async def create_reward(
    data: RewardCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    reward = await RewardsService(db).create_reward(data.model_dump())
    logger.info("Admin %s created reward %s", current_user.id, reward.id)
    return success_response(reward.to_dict(), "Premio creado exitosamente")

@router.put("/{reward_id}", response_model=ApiResponse, summary="Update reward")
async def update_reward(
    reward_id: int,
    data: RewardUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    reward = await RewardsService(db).update_reward(reward_id, data.model_dump(exclude_unset=True))
    return success_response(reward.to_dict(), "Premio actualizado")

@router.put("/claims/{claim_id}/approve", response_model=ApiResponse, summary="Approve reward claim")
async def approve_claim(
    claim_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    claim = await RewardsService(db).approve_reward_claim(claim_id)
    logger.info("Admin %s approved reward claim %s", current_user.id, claim_id)
    return success_response(claim.to_dict(), "Canje aprobado")
