"""
Archinnection Backend: Shared Response Schemas
================================================

What:  Error, health and acknowledgement payloads used across every router.
Who:   Route handlers (`responses={...}` docs) and the global exception handlers.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error body returned by every global exception handler.

    Example:
        {
            "error": "validation_error",
            "message": "Post must contain text or an image",
            "details": {"field": "content"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable explanation")
    details: Optional[Dict[str, Any]] = Field(default=None)
    request_id: Optional[str] = Field(default=None, description="Correlation ID for support")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    storage: str = Field(description="writable or unavailable")
    uptime_seconds: float
