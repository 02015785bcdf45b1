"""
Lemonade Backend: Shared Schema Types
======================================

What:  Types shared by every API schema: the Money field type and the error
       and health response bodies.
"""

from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, Field, PlainSerializer

from lemonade.money import format_money

# Decimal in Python, "6.00" in JSON (always two fractional digits, never a float)
Money = Annotated[Decimal, PlainSerializer(format_money, return_type=str, when_used="json")]


class ErrorResponse(BaseModel):
    """
    Standardized error body for every API error.

    Example:
        {
            "error": "duplicate_link",
            "message": "A price link for type '...' and size '...' already exists",
            "details": {"beverage_type_id": "...", "beverage_size_id": "..."},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check body: overall status plus database connectivity."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
