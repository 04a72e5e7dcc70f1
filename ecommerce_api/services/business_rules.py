"""
Business rules store
Key/value configuration read fresh on every evaluation
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import json
import logging

from ecommerce_api.models import BusinessRule, RuleType
from ecommerce_api.core.config import settings

logger = logging.getLogger(__name__)

MIN_MONTHLY_BUY = "minMonthlyBuy"
REFERRAL_COMMISSION_PERCENTAGE = "referralCommissionPercentage"
DIRECT_SALE_COMMISSION_PERCENTAGE = "directSaleCommissionPercentage"
SHIPPING_COST = "shippingCost"
MAX_REFERRALS_DEFAULT = "maxReferralsDefault"

AVAILABLE_RULES: List[Dict[str, Any]] = [
    {
        "key": MIN_MONTHLY_BUY,
        "name": "Compra mínima mensual",
        "description": "Cantidad mínima de productos que debe comprar un afiliado por mes",
        "type": RuleType.NUMBER,
        "default_value": settings.DEFAULT_MIN_MONTHLY_BUY,
    },
    {
        "key": REFERRAL_COMMISSION_PERCENTAGE,
        "name": "Porcentaje comisión por referido",
        "description": "Porcentaje de comisión que recibe por ventas de sus referidos",
        "type": RuleType.NUMBER,
        "default_value": settings.DEFAULT_REFERRAL_COMMISSION_PERCENTAGE,
    },
    {
        "key": DIRECT_SALE_COMMISSION_PERCENTAGE,
        "name": "Porcentaje comisión venta directa",
        "description": "Porcentaje de comisión por ventas propias",
        "type": RuleType.NUMBER,
        "default_value": settings.DEFAULT_DIRECT_SALE_COMMISSION_PERCENTAGE,
    },
    {
        "key": SHIPPING_COST,
        "name": "Costo de envío",
        "description": "Costo fijo de envío para todos los pedidos",
        "type": RuleType.NUMBER,
        "default_value": settings.DEFAULT_SHIPPING_COST,
    },
    {
        "key": MAX_REFERRALS_DEFAULT,
        "name": "Máximo referidos por defecto",
        "description": "Número máximo de referidos permitidos para nuevos afiliados",
        "type": RuleType.NUMBER,
        "default_value": settings.DEFAULT_MAX_REFERRALS,
    },
]

DEFAULT_RULES: Dict[str, Any] = {rule["key"]: rule["default_value"] for rule in AVAILABLE_RULES}

def parse_rule_value(value: str, rule_type: str) -> Any:
    """Parse a stored value back according to its type"""
    if rule_type == RuleType.NUMBER:
        try:
            return float(value)
        except ValueError:
            return value
    if rule_type == RuleType.JSON:
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value

def infer_rule_type(value: Any) -> str:
    """Infer the stored type of a rule value"""
    if isinstance(value, bool):
        return RuleType.JSON
    if isinstance(value, (int, float)):
        return RuleType.NUMBER
    if isinstance(value, (dict, list)):
        return RuleType.JSON
    return RuleType.STRING

def serialize_rule_value(value: Any) -> str:
    if isinstance(value, (dict, list, bool)):
        return json.dumps(value)
    return str(value)

class BusinessRulesService:
    """Resolves business rules from the database"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_rules(self) -> Dict[str, Any]:
        """All rules parsed by type, merged over the defaults"""
        result = await self.db.execute(select(BusinessRule).order_by(BusinessRule.key))
        rules = dict(DEFAULT_RULES)
        for rule in result.scalars().all():
            rules[rule.key] = parse_rule_value(rule.value, rule.type)
        return rules

    async def get_value(self, key: str, default: Optional[Any] = None) -> Any:
        """Single rule value; falls back to the configured default"""
        result = await self.db.execute(
            select(BusinessRule).where(BusinessRule.key == key)
        )
        rule = result.scalar_one_or_none()
        if rule is None:
            return DEFAULT_RULES.get(key, default)
        return parse_rule_value(rule.value, rule.type)

    async def get_number(self, key: str) -> float:
        value = await self.get_value(key)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning("Business rule %s has non-numeric value %r, using default", key, value)
            return float(DEFAULT_RULES[key])

    async def update_rules(self, rules: Dict[str, Any]) -> List[str]:
        """Upsert rules; the caller's transaction is committed here"""
        try:
            for key, value in rules.items():
                result = await self.db.execute(
                    select(BusinessRule).where(BusinessRule.key == key)
                )
                rule = result.scalar_one_or_none()
                if rule is None:
                    rule = BusinessRule(key=key)
                    self.db.add(rule)
                rule.value = serialize_rule_value(value)
                rule.type = infer_rule_type(value)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Business rules updated: %s", ", ".join(rules.keys()))
        return list(rules.keys())

    @staticmethod
    def get_available_rules() -> Dict[str, Any]:
        return {"rules": AVAILABLE_RULES}
