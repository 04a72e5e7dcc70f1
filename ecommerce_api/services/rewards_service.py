"""
Rewards service
Loyalty points ledger and reward claims
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal
import math
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update

from ecommerce_api.models import (
    Affiliate,
    ClaimStatus,
    PointsTransaction,
    PointsTransactionType,
    Reward,
    RewardClaim,
)
from ecommerce_api.core.config import settings
from ecommerce_api.core.exceptions import (
    NotFoundException,
    BadRequestException,
    InsufficientPointsException,
    RewardOutOfStockException,
)
from ecommerce_api.services.notification import NotificationService
from ecommerce_api.utils.helpers import to_decimal
from ecommerce_api.utils.pagination import pagination_meta

logger = logging.getLogger(__name__)

def calculate_purchase_points(amount) -> int:
    """One point per full currency block spent"""
    points = math.floor(to_decimal(amount) / Decimal(settings.POINTS_PER_CURRENCY_UNIT))
    return max(int(points), 0)

class RewardsService:
    """Service for points and reward claims"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    @staticmethod
    def calculate_purchase_points(amount) -> int:
        return calculate_purchase_points(amount)

    async def add_points_for_purchase(
        self,
        affiliate_id: int,
        order_amount,
        order_id: Optional[int] = None
    ) -> int:
        """
        Award purchase points to an affiliate

        Args:
            affiliate_id: Affiliate user ID
            order_amount: Amount the points are computed from
            order_id: Source order; awarding twice for one order is a no-op

        Returns:
            Points awarded by this call
        """
        points = calculate_purchase_points(order_amount)
        if points <= 0:
            return 0

        if order_id is not None:
            already = await self.db.scalar(
                select(PointsTransaction.id).where(
                    PointsTransaction.affiliate_id == affiliate_id,
                    PointsTransaction.reference_type == "order",
                    PointsTransaction.reference_id == order_id
                )
            )
            if already:
                logger.debug("Points for order %s already awarded", order_id)
                return 0

        try:
            result = await self.db.execute(
                update(Affiliate)
                .where(Affiliate.id == affiliate_id)
                .values(points=Affiliate.points + points)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise NotFoundException("Afiliado no encontrado")

            balance = await self.db.scalar(
                select(Affiliate.points).where(Affiliate.id == affiliate_id)
            )
            self.db.add(PointsTransaction(
                affiliate_id=affiliate_id,
                type=PointsTransactionType.EARNED,
                points=points,
                balance_after=balance,
                reference_type="order" if order_id is not None else None,
                reference_id=order_id,
                description=f"Puntos por compra #{order_id}" if order_id is not None else "Puntos por compra"
            ))
            await self.notifications.create_points_earned_notification(affiliate_id, points)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Affiliate %s earned %d points", affiliate_id, points)
        return points

    async def claim_reward(self, affiliate_id: int, reward_id: int) -> RewardClaim:
        """
        Redeem points for a reward in a single transaction

        Args:
            affiliate_id: Affiliate user ID
            reward_id: Reward ID

        Returns:
            Created reward claim

        Raises:
            NotFoundException: If reward unknown or inactive, or affiliate missing
            RewardOutOfStockException: If reward has no stock
            InsufficientPointsException: If balance is below the required points
        """
        try:
            reward = (await self.db.execute(
                select(Reward)
                .where(Reward.id == reward_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )).scalar_one_or_none()
            if not reward or not reward.is_active:
                raise NotFoundException("Premio no encontrado")

            affiliate = (await self.db.execute(
                select(Affiliate)
                .where(Affiliate.id == affiliate_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )).scalar_one_or_none()
            if not affiliate:
                raise NotFoundException("Afiliado no encontrado")

            required = reward.points_required
            if reward.stock <= 0:
                raise RewardOutOfStockException()
            if affiliate.points < required:
                raise InsufficientPointsException(affiliate.points, required)

            # Guarded decrements: a concurrent claim that got here first leaves rowcount 0
            stock_update = await self.db.execute(
                update(Reward)
                .where(Reward.id == reward_id, Reward.stock > 0)
                .values(stock=Reward.stock - 1)
                .execution_options(synchronize_session=False)
            )
            if stock_update.rowcount != 1:
                raise RewardOutOfStockException()

            points_update = await self.db.execute(
                update(Affiliate)
                .where(Affiliate.id == affiliate_id, Affiliate.points >= required)
                .values(points=Affiliate.points - required)
                .execution_options(synchronize_session=False)
            )
            if points_update.rowcount != 1:
                raise InsufficientPointsException(affiliate.points, required)

            await self.db.refresh(reward)
            await self.db.refresh(affiliate)

            claim = RewardClaim(
                affiliate_id=affiliate_id,
                reward_id=reward_id,
                points_used=required,
                status=ClaimStatus.PENDING
            )
            self.db.add(claim)
            await self.db.flush()

            self.db.add(PointsTransaction(
                affiliate_id=affiliate_id,
                type=PointsTransactionType.REDEEMED,
                points=required,
                balance_after=affiliate.points,
                reference_type="reward_claim",
                reference_id=claim.id,
                description=f"Canje de premio: {reward.name}"
            ))
            await self.notifications.create_reward_claimed_notification(
                affiliate_id, reward.name, required
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Affiliate %s claimed reward %s for %d points", affiliate_id, reward_id, required)
        return claim

    async def get_rewards(self, include_inactive: bool = False) -> List[Dict[str, Any]]:
        query = select(Reward).order_by(Reward.points_required.asc(), Reward.id.asc())
        if not include_inactive:
            query = query.where(Reward.is_active.is_(True))
        result = await self.db.execute(query)
        return [reward.to_dict() for reward in result.scalars().all()]

    async def get_affiliate_points(self, affiliate_id: int) -> Dict[str, Any]:
        """Balance, lifetime totals and rewards the balance can cover"""
        affiliate = await self.db.get(Affiliate, affiliate_id, populate_existing=True)
        if not affiliate:
            raise NotFoundException("Afiliado no encontrado")

        totals = dict((await self.db.execute(
            select(PointsTransaction.type, func.coalesce(func.sum(PointsTransaction.points), 0))
            .where(PointsTransaction.affiliate_id == affiliate_id)
            .group_by(PointsTransaction.type)
        )).all())

        available = await self.db.execute(
            select(Reward)
            .where(
                Reward.is_active.is_(True),
                Reward.stock > 0,
                Reward.points_required <= affiliate.points
            )
            .order_by(Reward.points_required.asc())
        )

        return {
            "current_points": affiliate.points,
            "total_earned": int(totals.get(PointsTransactionType.EARNED, 0)),
            "total_spent": int(totals.get(PointsTransactionType.REDEEMED, 0)),
            "available_rewards": [reward.to_dict() for reward in available.scalars().all()],
        }

    async def get_claim_history(self, affiliate_id: int, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        total = await self.db.scalar(
            select(func.count(RewardClaim.id)).where(RewardClaim.affiliate_id == affiliate_id)
        )
        result = await self.db.execute(
            select(RewardClaim, Reward.name)
            .join(Reward, Reward.id == RewardClaim.reward_id)
            .where(RewardClaim.affiliate_id == affiliate_id)
            .order_by(RewardClaim.created_at.desc(), RewardClaim.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        claims = []
        for claim, reward_name in result.all():
            data = claim.to_dict()
            data["reward_name"] = reward_name
            claims.append(data)

        return {"claims": claims, "pagination": pagination_meta(total, page, limit)}

    async def create_reward(self, data: Dict[str, Any]) -> Reward:
        reward = Reward(**data)
        self.db.add(reward)
        await self.db.commit()
        await self.db.refresh(reward)

        logger.info("Reward %s created", reward.id)
        return reward

    async def update_reward(self, reward_id: int, data: Dict[str, Any]) -> Reward:
        reward = await self.db.get(Reward, reward_id)
        if not reward:
            raise NotFoundException("Premio no encontrado")

        reward.update_from_dict(data, exclude=["id", "created_at", "updated_at"])
        await self.db.commit()
        await self.db.refresh(reward)
        return reward

    async def approve_reward_claim(self, claim_id: int) -> RewardClaim:
        """Mark a pending claim as approved and delivered"""
        claim = await self.db.get(RewardClaim, claim_id)
        if not claim:
            raise NotFoundException("Canje no encontrado")

        if claim.status != ClaimStatus.PENDING:
            raise BadRequestException("El canje ya fue procesado", error_code="CLAIM_ALREADY_PROCESSED")

        claim.status = ClaimStatus.APPROVED
        claim.delivered_at = datetime.utcnow()
        await self.db.commit()

        logger.info("Reward claim %s approved", claim_id)
        return claim
