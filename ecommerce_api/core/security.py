"""
Security utilities for authentication
Handles JWT tokens and password hashing
"""

from datetime import datetime, timedelta
from typing import Dict, Any, Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
import secrets
import string

from .config import settings
from .exceptions import UnauthorizedException

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

class SecurityUtils:
    """Security utility functions"""

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify password against hash"""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash password using bcrypt"""
        return pwd_context.hash(password)

    @staticmethod
    def create_access_token(data: Dict[str, Any]) -> str:
        """Create JWT access token"""
        to_encode = data.copy()
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """Decode and validate JWT token"""
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except ExpiredSignatureError:
            raise UnauthorizedException("Token expirado", error_code="TOKEN_EXPIRED")
        except JWTError:
            raise UnauthorizedException("Token inválido", error_code="INVALID_TOKEN")

    @staticmethod
    def generate_temp_password(length: int = 8) -> str:
        """Generate alphanumeric temporary password"""
        characters = string.ascii_letters + string.digits
        return ''.join(secrets.choice(characters) for _ in range(length))

    @staticmethod
    def token_payload(user) -> Dict[str, Any]:
        """Claims stored in the access token"""
        return {
            "sub": str(user.id),
            "dni": user.dni,
            "role": user.role.value if hasattr(user.role, "value") else user.role,
        }

# Security scheme
security = HTTPBearer(auto_error=False)

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Dict[str, Any]:
    """Extract and validate user claims from JWT token"""
    if credentials is None:
        raise UnauthorizedException("Token no proporcionado", error_code="MISSING_TOKEN")

    payload = SecurityUtils.decode_token(credentials.credentials)

    if payload.get("type") != "access" or not payload.get("sub"):
        raise UnauthorizedException("Token inválido", error_code="INVALID_TOKEN")

    return {
        "id": int(payload["sub"]),
        "dni": payload.get("dni"),
        "role": payload.get("role"),
    }
