"""Cart module exports"""

from . import router

__all__ = ["router"]
