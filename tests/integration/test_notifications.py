"""Integration tests for in-app notifications."""

import pytest

from ecommerce_api.core.exceptions import NotFoundException
from ecommerce_api.services.notification import NotificationService

pytestmark = pytest.mark.integration


class TestNotifications:
    """Test notification creation and read state."""

    async def test_dedupe_key_returns_existing(self, db_session, factory):
        user = await factory.user()
        service = NotificationService(db_session)

        first = await service.create_payment_success_notification(user.id, 10)
        second = await service.create_payment_success_notification(user.id, 10)
        await db_session.commit()

        assert first.id == second.id

    async def test_listing_with_unread_count(self, db_session, factory):
        user = await factory.user()
        service = NotificationService(db_session)
        await service.create_points_earned_notification(user.id, 15)
        await service.create_payment_success_notification(user.id, 3)
        await db_session.commit()

        result = await service.get_user_notifications(user.id)

        assert result["unread_count"] == 2
        assert result["pagination"]["totalItems"] == 2
        assert all("dedupe_key" not in n for n in result["notifications"])

    async def test_mark_read(self, db_session, factory):
        user = await factory.user()
        service = NotificationService(db_session)
        notification = await service.create_points_earned_notification(user.id, 15)
        await service.create_points_earned_notification(user.id, 20)
        await db_session.commit()

        await service.mark_as_read(user.id, notification.id)
        unread = await service.get_user_notifications(user.id, unread=True)
        assert unread["unread_count"] == 1
        assert len(unread["notifications"]) == 1

        assert await service.mark_all_as_read(user.id) == 1
        assert (await service.get_user_notifications(user.id))["unread_count"] == 0

    async def test_cannot_read_someone_elses(self, db_session, factory):
        owner = await factory.user()
        other = await factory.user()
        service = NotificationService(db_session)
        notification = await service.create_points_earned_notification(owner.id, 15)
        await db_session.commit()

        with pytest.raises(NotFoundException):
            await service.mark_as_read(other.id, notification.id)
