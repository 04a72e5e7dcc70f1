"""Models package initialization"""

from .base import Base
from .user import User, Affiliate, AdminRegion, UserRole, AffiliateStatus, ADMIN_ROLES
from .referral import Referral
from .category import Category
from .product import Product
from .address import ShippingAddress
from .cart import Cart, CartItem
from .order import Order, OrderItem, OrderStatus, PURCHASED_STATUSES
from .payment import Payment, PaymentStatus, PaymentMethod
from .commission import Commission, CommissionType, CommissionStatus
from .monthly_buy import MinMonthlyBuy
from .reward import Reward, RewardClaim, ClaimStatus, PointsTransaction, PointsTransactionType
from .notification import Notification, NotificationType
from .business_rule import BusinessRule, RuleType

# Export all models
__all__ = [
    "Base",
    "User",
    "Affiliate",
    "AdminRegion",
    "UserRole",
    "AffiliateStatus",
    "ADMIN_ROLES",
    "Referral",
    "Category",
    "Product",
    "ShippingAddress",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PURCHASED_STATUSES",
    "Payment",
    "PaymentStatus",
    "PaymentMethod",
    "Commission",
    "CommissionType",
    "CommissionStatus",
    "MinMonthlyBuy",
    "Reward",
    "RewardClaim",
    "ClaimStatus",
    "PointsTransaction",
    "PointsTransactionType",
    "Notification",
    "NotificationType",
    "BusinessRule",
    "RuleType",
]
