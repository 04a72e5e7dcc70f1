"""API v1 routes aggregation"""

from fastapi import APIRouter

from .auth.router import router as auth_router
from .addresses.router import router as addresses_router
from .cart.router import router as cart_router
from .categories.router import router as categories_router
from .products.router import router as products_router
from .orders.router import router as orders_router
from .payments.router import router as payments_router
from .commissions.router import router as commissions_router
from .affiliates.router import router as affiliates_router
from .monthly_tracking.router import router as monthly_tracking_router
from .rewards.router import router as rewards_router
from .notifications.router import router as notifications_router
from .admin.router import router as admin_router
from .config.router import router as config_router
from .stats.router import router as stats_router

# Create v1 router
api_router = APIRouter()

# Include all routers
api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
api_router.include_router(addresses_router, prefix="/addresses", tags=["Addresses"])
api_router.include_router(cart_router, prefix="/cart", tags=["Cart"])
api_router.include_router(categories_router, prefix="/categories", tags=["Categories"])
api_router.include_router(products_router, prefix="/products", tags=["Products"])
api_router.include_router(orders_router, prefix="/orders", tags=["Orders"])
api_router.include_router(payments_router, prefix="/payments", tags=["Payments"])
api_router.include_router(commissions_router, prefix="/commissions", tags=["Commissions"])
api_router.include_router(affiliates_router, prefix="/affiliates", tags=["Affiliates"])
api_router.include_router(monthly_tracking_router, prefix="/monthly-tracking", tags=["Monthly Tracking"])
api_router.include_router(rewards_router, prefix="/rewards", tags=["Rewards"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(admin_router, prefix="/admin", tags=["Admin"])
api_router.include_router(config_router, prefix="/config", tags=["Config"])
api_router.include_router(stats_router, prefix="/stats", tags=["Stats"])

# Export router
router = api_router
