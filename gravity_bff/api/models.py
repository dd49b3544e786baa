"""
API response schemas that are not domain models.
"""

from typing import Dict, Optional

from pydantic import BaseModel


# --- Error codes ---

class ErrorCode:
    """Error codes used in API error responses."""
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "resource_not_found"
    INTERNAL_ERROR = "internal_error"
    VALIDATION_FAILED = "validation_failed"


# --- Errors ---

class ErrorDetail(BaseModel):
    """Error detail."""
    code: str
    message: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: ErrorDetail


def error_body(code: str, message: str) -> dict:
    """Build a JSON-ready error response body."""
    return ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump()


# --- Health ---

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    services: Dict[str, Optional[bool]] = {}
