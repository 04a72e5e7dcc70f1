"""Utilities package"""

from .helpers import generate_slug, quantize_money, month_start, month_label
from .pagination import paginate, pagination_meta, PaginationParams

__all__ = [
    "generate_slug",
    "quantize_money",
    "month_start",
    "month_label",
    "paginate",
    "pagination_meta",
    "PaginationParams",
]
