"""
Muffin Vault Backend — Shared Response Schemas
===============================================

What:  Error and health payloads shared across routers.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Error body returned by every global exception handler.

    Example:
        {
            "error": "Not enough muffins",
            "code": "insufficient_funds",
            "request_id": "a1b2c3d4"
        }

    `error` is a static, human-readable message. Store failure details are
    logged server-side and never appear here.
    """
    error: str = Field(description="Human-readable error message")
    code: str = Field(description="Machine-readable error code")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
