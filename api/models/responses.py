"""
API Response Models
===================

Pydantic models for API responses. `code` always mirrors the HTTP status.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class RegisterResponse(BaseModel):
    """Response model for a successful registration."""

    code: int = Field(200, description="HTTP status code")


class LoginResponse(BaseModel):
    """Response model for a successful login."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "code": 200,
                "token": "k3j9x0q2m1v8b7n6c5z4a3s2d1f0g9h8",
                "ttlSeconds": 3600
            }
        }
    )

    code: int = Field(200, description="HTTP status code")
    token: str = Field(..., description="Session token")
    ttl_seconds: int = Field(..., alias="ttlSeconds", description="Seconds until the session expires")


class ErrorResponse(BaseModel):
    """Body of every protocol failure."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "code": 403,
                "message": "Expired",
                "error_type": "ExpiredError",
                "details": {"client": "alice"}
            }
        }
    )

    code: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Human-readable failure reason")
    error_type: str = Field(..., description="Exception class name")
    details: dict[str, Any] = Field(default_factory=dict)
    err_code: Optional[str] = Field(
        None,
        alias="errCode",
        description="Hash engine failure code (login only)"
    )
