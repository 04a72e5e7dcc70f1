"""Base schemas and the response envelope"""

from pydantic import BaseModel, ConfigDict
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")

class BaseSchema(BaseModel):
    """Base schema with common configuration"""

    model_config = ConfigDict(from_attributes=True)

class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every successful response"""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None

def success_response(data: Any = None, message: Optional[str] = None) -> dict:
    """Build the success envelope"""
    return {"success": True, "data": data, "message": message}
