"""Monthly minimum-purchase compliance records"""

from sqlalchemy import Column, Integer, Boolean, Date, ForeignKey, UniqueConstraint

from .base import BaseModel, TimestampedModel, IDModel

class MinMonthlyBuy(BaseModel, TimestampedModel, IDModel):
    """Materialized compliance result for one affiliate and calendar month"""

    __tablename__ = "min_monthly_buys"

    affiliate_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    month = Column(Date, nullable=False)  # first day of the month
    quantity = Column(Integer, default=0, nullable=False)
    achieved = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("affiliate_id", "month", name="uq_aff_month"),
    )
