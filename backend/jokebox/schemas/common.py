"""
Jokebox Backend: Shared Response Schemas
=========================================

What:  Base model with camelCase JSON keys, plus the error and health models
       shared by every route.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for API models serialized with camelCase keys (isOwner, jokesterId).

    populate_by_name lets Python code keep using snake_case attribute names;
    FastAPI serializes response models by alias.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """
    Consistent error body for terminal failures (400, 401, 403, 404, 429, 500).

    Example:
        {
            "error": "not_found",
            "message": "What a joke! Not found.",
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
