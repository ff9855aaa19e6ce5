"""
Pizza Gateway — Shared Schemas
===============================

Error envelope, plain acknowledgements, login payloads, and the health report.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {
            "error": "validation_error",
            "message": "Missing required fields: IngredientId",
            "details": {"missing": ["IngredientId"]},
            "request_id": "1f3a9c2e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class TokenResponse(BaseModel):
    token: str = Field(description="Signed HS256 bearer token")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    auth_strategy: str = Field(description="jwt or api_key")
    unhandled_errors: int = Field(description="Asynchronous errors caught by the loop handler")
    uptime_seconds: float
