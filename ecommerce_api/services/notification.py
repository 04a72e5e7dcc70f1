"""
Notification service
Records in-app notifications as side effects of business operations
"""

from typing import Optional, Dict, Any
from decimal import Decimal
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update

from ecommerce_api.models import Notification, NotificationType
from ecommerce_api.core.exceptions import NotFoundException
from ecommerce_api.utils.pagination import paginate

logger = logging.getLogger(__name__)

class NotificationService:
    """Service for managing notifications

    Creation never commits: notifications belong to the caller's transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_notification(
        self,
        user_id: int,
        type: str,
        title: str,
        message: str,
        dedupe_key: Optional[str] = None
    ) -> Notification:
        """Create in-app notification, at most once per dedupe key"""
        if dedupe_key:
            result = await self.db.execute(
                select(Notification).where(
                    Notification.user_id == user_id,
                    Notification.dedupe_key == dedupe_key
                )
            )
            existing = result.scalar_one_or_none()
            if existing:
                logger.debug("Notification %s already sent to user %s", dedupe_key, user_id)
                return existing

        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            dedupe_key=dedupe_key
        )
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def create_payment_success_notification(self, user_id: int, order_id: int) -> Notification:
        return await self.create_notification(
            user_id=user_id,
            type=NotificationType.PAYMENT_OK,
            title="Pago confirmado",
            message=f"Tu pedido #{order_id} ha sido pagado exitosamente.",
            dedupe_key=f"payment_ok:{order_id}"
        )

    async def create_points_earned_notification(self, user_id: int, points: int) -> Notification:
        return await self.create_notification(
            user_id=user_id,
            type=NotificationType.POINTS_EARNED,
            title="Puntos ganados",
            message=f"Has ganado {points} puntos por tu compra."
        )

    async def create_reward_claimed_notification(
        self,
        user_id: int,
        reward_name: str,
        points: int
    ) -> Notification:
        return await self.create_notification(
            user_id=user_id,
            type=NotificationType.REWARD_CLAIMED,
            title="Premio canjeado",
            message=f"Has canjeado {reward_name} por {points} puntos."
        )

    async def create_commission_notification(
        self,
        user_id: int,
        amount: Decimal,
        commission_type: str
    ) -> Notification:
        label = "venta directa" if commission_type == "direct" else "referido"
        return await self.create_notification(
            user_id=user_id,
            type=NotificationType.COMMISSION,
            title="Nueva comisión",
            message=f"Has ganado S/ {Decimal(amount):.2f} en comisión por {label}."
        )

    async def create_deactivation_notification(self, user_id: int, month_label: str) -> Notification:
        return await self.create_notification(
            user_id=user_id,
            type=NotificationType.ACCOUNT_PENDING,
            title="Cuenta desactivada",
            message="Tu cuenta ha sido desactivada por no cumplir la compra mínima mensual.",
            dedupe_key=f"monthly_deactivation:{month_label}"
        )

    async def get_user_notifications(
        self,
        user_id: int,
        unread: Optional[bool] = None,
        type: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> Dict[str, Any]:
        """List notifications with unread count"""
        conditions = [Notification.user_id == user_id]
        if unread is not None:
            conditions.append(Notification.read_flag == (not unread))
        if type:
            conditions.append(Notification.type == type)

        unread_count = await self.db.scalar(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.read_flag.is_(False)
            )
        )
        page_data = await paginate(
            self.db,
            select(Notification)
            .where(*conditions)
            .order_by(Notification.created_at.desc(), Notification.id.desc()),
            page,
            limit,
            serializer=lambda n: n.to_dict(exclude=["dedupe_key"])
        )

        return {
            "unread_count": unread_count,
            "notifications": page_data["items"],
            "pagination": page_data["pagination"],
        }

    async def mark_as_read(self, user_id: int, notification_id: int) -> Notification:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id
            )
        )
        notification = result.scalar_one_or_none()
        if not notification:
            raise NotFoundException("Notificación no encontrada")

        notification.read_flag = True
        await self.db.commit()
        return notification

    async def mark_all_as_read(self, user_id: int) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read_flag.is_(False))
            .values(read_flag=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount
