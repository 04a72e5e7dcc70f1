"""API package; versioned routers live under api.v1"""

from .v1 import api_router

__all__ = ["api_router"]
