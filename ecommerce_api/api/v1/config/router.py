"""
Configuration API routes
Business rules and static reference data
"""

from typing import Any, Dict
from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ecommerce_api.core.database import get_db
from ecommerce_api.core.exceptions import BadRequestException
from ecommerce_api.models import User
from ecommerce_api.schemas.base import ApiResponse, success_response
from ecommerce_api.services.business_rules import BusinessRulesService
from ecommerce_api.utils.dependencies import require_admin_general

logger = logging.getLogger(__name__)

router = APIRouter()

SHIPPING_REGIONS = [
    {"code": "LIM", "name": "Lima", "cities": ["Lima", "San Isidro", "Miraflores", "Surco", "La Molina", "San Borja"]},
    {"code": "ARE", "name": "Arequipa", "cities": ["Arequipa", "Cayma", "Cerro Colorado", "Paucarpata"]},
    {"code": "CUS", "name": "Cusco", "cities": ["Cusco", "San Sebastián", "San Jerónimo", "Wanchaq"]},
    {"code": "TRU", "name": "La Libertad", "cities": ["Trujillo", "La Esperanza", "El Porvenir", "Florencia de Mora"]},
    {"code": "PIU", "name": "Piura", "cities": ["Piura", "Castilla", "Catacaos", "La Unión"]},
]

@router.get("/business-rules", response_model=ApiResponse, summary="Get business rules")
async def get_business_rules(db: AsyncSession = Depends(get_db)):
    """Current rule values merged over the defaults"""
    rules = await BusinessRulesService(db).get_rules()
    return success_response(rules, "Reglas de negocio obtenidas")

@router.put("/business-rules", response_model=ApiResponse, summary="Update business rules")
async def update_business_rules(
    rules: Dict[str, Any] = Body(..., examples=[{"minMonthlyBuy": 3, "shippingCost": 15}]),
    current_user: User = Depends(require_admin_general),
    db: AsyncSession = Depends(get_db)
):
    """Upsert rule values; changes apply to the next calculation"""
    if not rules:
        raise BadRequestException("Debe enviar al menos una regla", error_code="VALIDATION_ERROR")
    if any(value is None for value in rules.values()):
        raise BadRequestException("Las reglas no pueden tener valor nulo", error_code="VALIDATION_ERROR")

    service = BusinessRulesService(db)
    updated = await service.update_rules(rules)
    logger.info("Admin %s updated business rules", current_user.id)
    return success_response(
        {"updated": updated, "rules": await service.get_rules()},
        "Reglas de negocio actualizadas exitosamente"
    )

@router.get("/business-rules/available", response_model=ApiResponse, summary="Available business rules")
async def get_available_rules(current_user: User = Depends(require_admin_general)):
    return success_response(BusinessRulesService.get_available_rules(), "Reglas disponibles obtenidas")

@router.get("/regions", response_model=ApiResponse, summary="Shipping regions")
async def get_regions():
    return success_response(SHIPPING_REGIONS, "Regiones disponibles obtenidas")
