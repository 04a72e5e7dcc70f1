"""HTTP middleware"""

from .rate_limit import limiter, custom_rate_limit_handler
from .security import SecurityMiddleware

__all__ = ["limiter", "custom_rate_limit_handler", "SecurityMiddleware"]
