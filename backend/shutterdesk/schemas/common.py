"""
ShutterDesk Backend - Shared Pydantic Schemas
===============================================

What:  Base model and the response shapes shared by every router.
Why:   Schemas are separate from SQLAlchemy models so the API contract
       (camelCase, no password hashes, no session rows) can evolve
       independently of the tables.
How:   Every schema derives from CamelModel: snake_case attributes in
       Python, camelCase keys on the wire. `populate_by_name` keeps
       snake_case input working for internal callers and tests.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SuccessResponse(CamelModel):
    success: bool = True


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models - Consistent error format across all endpoints
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(CamelModel):
    """
    What:  Standardized error envelope for all API errors.
    Why:   The dashboards read `error` for display and `code` for branching.

    Example:
        {
            "success": false,
            "error": "Amount must be a positive number",
            "code": "validation_error",
            "details": {"field": "amount"},
            "requestId": "a1b2c3d4"
        }
    """
    success: bool = Field(default=False)
    error: str = Field(description="Human-readable error description")
    code: str = Field(description="Machine-readable error code")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for load balancers and uptime monitors.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    stripe: str = Field(description="Stripe integration: configured, not_configured")
    google_oauth: str = Field(description="Google login: enabled, disabled")
    uptime_seconds: float = Field(description="Seconds since service started")


class DashboardSummary(CamelModel):
    """Headline numbers for the owner dashboard."""
    new_inquiries: int
    active_projects: int
    total_revenue: Decimal
    pending_revenue: Decimal
