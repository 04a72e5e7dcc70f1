"""
Helper utilities
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Union
import slugify as python_slugify

CENTS = Decimal("0.01")

def generate_slug(text: str) -> str:
    """
    Generate URL-friendly slug from text

    Args:
        text: Input text

    Returns:
        Slug
    """
    return python_slugify.slugify(text)

def to_decimal(value: Union[Decimal, float, int, str]) -> Decimal:
    """Convert a number to Decimal without float artifacts"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

def quantize_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """Round an amount half-up to cents"""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)

def format_currency(amount: Union[Decimal, float]) -> str:
    """Format amount in soles"""
    return f"S/ {quantize_money(amount):,.2f}"

def month_start(day: Union[date, datetime]) -> date:
    """First day of the month containing `day`"""
    return date(day.year, day.month, 1)

def next_month_start(day: Union[date, datetime]) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)

def previous_month_start(day: Union[date, datetime]) -> date:
    if day.month == 1:
        return date(day.year - 1, 12, 1)
    return date(day.year, day.month - 1, 1)

def month_label(day: Union[date, datetime]) -> str:
    """YYYY-MM label of the month containing `day`"""
    return f"{day.year:04d}-{day.month:02d}"

def parse_month(value: str) -> date:
    """Parse a YYYY-MM string into the first day of that month"""
    try:
        parsed = datetime.strptime(value, "%Y-%m")
    except ValueError:
        raise ValueError("Mes inválido, use el formato YYYY-MM")
    return date(parsed.year, parsed.month, 1)

def as_datetime(day: date) -> datetime:
    """Midnight of `day` as a naive datetime"""
    return datetime(day.year, day.month, day.day)
