"""
Custom exception classes and error handlers
Provides consistent error responses across the application
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

class ShopException(HTTPException):
    """Base exception class for the shop application"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

class BadRequestException(ShopException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )

class UnauthorizedException(ShopException):
    """401 Unauthorized"""

    def __init__(self, detail: str = "No autorizado", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )

class ForbiddenException(ShopException):
    """403 Forbidden"""

    def __init__(self, detail: str = "Permisos insuficientes", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )

class NotFoundException(ShopException):
    """404 Not Found"""

    def __init__(self, detail: str = "Recurso no encontrado", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )

class ConflictException(ShopException):
    """409 Conflict"""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )

# Business logic exceptions
class InsufficientStockException(BadRequestException):
    """Product stock insufficient"""

    def __init__(self, product_name: str, available: int):
        super().__init__(
            detail=f"Stock insuficiente para {product_name}. Disponible: {available}",
            error_code="INSUFFICIENT_STOCK"
        )

class InsufficientPointsException(BadRequestException):
    """Affiliate does not have enough points for a claim"""

    def __init__(self, available: int, required: int):
        super().__init__(
            detail=f"Puntos insuficientes. Disponibles: {available}, requeridos: {required}",
            error_code="INSUFFICIENT_POINTS"
        )

class RewardOutOfStockException(BadRequestException):
    """Reward has no stock left"""

    def __init__(self, detail: str = "Premio agotado"):
        super().__init__(detail=detail, error_code="REWARD_OUT_OF_STOCK")

class ReferralLimitReachedException(BadRequestException):
    """Sponsor already has the maximum number of referrals"""

    def __init__(self, detail: str = "Has alcanzado el límite máximo de referidos"):
        super().__init__(detail=detail, error_code="REFERRAL_LIMIT_REACHED")

class InvalidSponsorException(BadRequestException):
    """Sponsor does not exist or cannot refer"""

    def __init__(self, detail: str = "Patrocinador no válido"):
        super().__init__(detail=detail, error_code="INVALID_SPONSOR")

class OrderAlreadyProcessedException(BadRequestException):
    """Order is no longer pending"""

    def __init__(self, detail: str = "El pedido ya ha sido procesado"):
        super().__init__(detail=detail, error_code="ORDER_ALREADY_PROCESSED")

class OnlyAddressException(BadRequestException):
    """Users must keep at least one address"""

    def __init__(self, detail: str = "No puedes eliminar tu única dirección"):
        super().__init__(detail=detail, error_code="ONLY_ADDRESS")

class DuplicateResourceException(ConflictException):
    """Resource already exists"""

    def __init__(self, detail: str):
        super().__init__(detail=detail, error_code="DUPLICATE_RESOURCE")

def _error_body(message: str, error_code: Optional[str]) -> Dict[str, Any]:
    return {"success": False, "message": message, "error_code": error_code}

def register_exception_handlers(app: FastAPI) -> None:
    """Render every error with the standard response envelope"""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail), getattr(exc, "error_code", None)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Datos inválidos") if errors else "Datos inválidos"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(message, "VALIDATION_ERROR"),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Error interno del servidor", "INTERNAL_ERROR"),
        )
