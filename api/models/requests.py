"""
API Request Models
==================

Pydantic models for API request validation.

Field names match the wire format (`regToken` is camelCase on the wire).
Secrets and registration tokens must fit bcrypt whole: no NUL bytes and at
most 72 UTF-8 bytes.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.hashing import BCRYPT_MAX_BYTES, secret_problem


def _check_hashable(value: str) -> str:
    problem = secret_problem(value)
    if problem:
        raise ValueError(problem)
    return value


class RegisterRequest(BaseModel):
    """Request model for redeeming a registration token."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "client": "alice",
                "secret": "s3cr3t",
                "regToken": "plain-token"
            }
        }
    )

    client: str = Field(..., description="Client identifier provisioned out-of-band")
    secret: str = Field(
        ...,
        max_length=BCRYPT_MAX_BYTES,
        description="Login secret to bind to the client (max 72 UTF-8 bytes)"
    )
    reg_token: str = Field(
        ...,
        alias="regToken",
        max_length=BCRYPT_MAX_BYTES,
        description="One-time registration token (max 72 UTF-8 bytes)"
    )

    @field_validator("secret", "reg_token")
    @classmethod
    def check_hashable(cls, v: str) -> str:
        """max_length counts characters; bcrypt counts bytes."""
        return _check_hashable(v)


class LoginRequest(BaseModel):
    """Request model for exchanging a secret for a session token."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "client": "alice",
                "secret": "s3cr3t"
            }
        }
    )

    client: str = Field(..., description="Registered client identifier")
    secret: str = Field(
        ...,
        max_length=BCRYPT_MAX_BYTES,
        description="Login secret (max 72 UTF-8 bytes)"
    )

    @field_validator("secret")
    @classmethod
    def check_hashable(cls, v: str) -> str:
        return _check_hashable(v)
