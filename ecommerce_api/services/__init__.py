"""Services package"""

from .business_rules import BusinessRulesService
from .notification import NotificationService
from .commission_service import CommissionService
from .rewards_service import RewardsService
from .monthly_tracking import MonthlyTrackingService
from .post_payment import PostPaymentPipeline
from .user_service import UserService

__all__ = [
    "BusinessRulesService",
    "NotificationService",
    "CommissionService",
    "RewardsService",
    "MonthlyTrackingService",
    "PostPaymentPipeline",
    "UserService",
]
