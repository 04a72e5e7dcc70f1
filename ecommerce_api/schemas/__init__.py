"""Shared response schemas"""

from .base import BaseSchema, ApiResponse, success_response

__all__ = ["BaseSchema", "ApiResponse", "success_response"]
