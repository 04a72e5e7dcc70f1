"""Tunable business rules stored as key/value rows"""

from sqlalchemy import Column, String, Text

from .base import BaseModel, TimestampedModel, IDModel

class RuleType:
    NUMBER = "number"
    STRING = "string"
    JSON = "json"

class BusinessRule(BaseModel, TimestampedModel, IDModel):
    """Business rule; `type` decides how `value` is parsed back"""

    __tablename__ = "business_rules"

    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default=RuleType.STRING)
