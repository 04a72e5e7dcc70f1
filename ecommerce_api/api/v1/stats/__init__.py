"""Statistics module exports"""

from . import router, services

__all__ = ["router", "services"]
