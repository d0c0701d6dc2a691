"""
Domain Models for RegAuth
=========================

This module defines the core data structures used throughout the application.

Design Principle: These models are "pure" - they have no dependencies on
Redis, passlib or FastAPI. The protocol code in `core` produces and consumes
them; the API layer converts them into response bodies.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# Registration deadlines earlier than this are treated as corrupt data.
MIN_REG_BY_MS = int(datetime(2019, 1, 1, tzinfo=timezone.utc).timestamp() * 1000)


class HashCheckStatus(str, Enum):
    """
    Result of comparing a plaintext against a stored password hash.

    ERROR is kept apart from NO_MATCH so a faulting hash engine never looks
    like a wrong password in counters or logs.
    """
    MATCH = "match"
    NO_MATCH = "no_match"
    ERROR = "error"


class HashCheck(BaseModel):
    """Tri-state answer from the password hasher."""

    status: HashCheckStatus
    err_code: Optional[str] = Field(
        default=None,
        description="Short identifier of the failure when status is ERROR"
    )

    @property
    def matched(self) -> bool:
        return self.status == HashCheckStatus.MATCH


class RegisterOutcome(str, Enum):
    """Counter names recorded by the registration protocol."""
    START = "start"
    NO_REG_TOKEN = "no_reg_token"
    BAD_REG_TOKEN = "bad_reg_token"
    HASH_ERROR = "hash_error"
    INVALID_SECRET = "invalid_secret"
    NO_REG_BY = "no_reg_by"
    INVALID_EXPIRY = "invalid_expiry"
    EXPIRED = "expired"
    REGISTERED = "registered"


class LoginOutcome(str, Enum):
    """Counter names recorded by the login protocol."""
    START = "start"
    UNREGISTERED = "unregistered"
    BAD_SECRET = "bad_secret"
    HASH_ERROR = "hash_error"
    SESSION_ISSUED = "session_issued"


class SessionGrant(BaseModel):
    """
    A freshly issued session.

    Attributes:
        client: Client identifier that owns the session
        token: Opaque session token handed to the caller
        ttl_seconds: Seconds until Redis expires the session record
    """
    client: str
    token: str
    ttl_seconds: int = Field(gt=0)
