"""
Custom Exceptions for RegAuth
=============================

Every failure branch of the registration and login protocols has its own
exception type. Each carries the HTTP status it maps to, so the error
middleware can turn it into a response without a lookup table per route.

Exception Hierarchy:
    RegAuthError (base)
    ├── UnregisteredError
    ├── UnauthorisedError
    ├── InternalHashError
    ├── InvalidSecretError
    ├── ExpiryError
    │   ├── InvalidExpiryError
    │   └── ExpiredError
    └── ConfigurationError
"""

from typing import Optional


class RegAuthError(Exception):
    """
    Base exception for all RegAuth errors.

    All custom exceptions inherit from this, allowing code to catch
    all protocol failures with a single except clause:

        try:
            await service.login(client, secret)
        except RegAuthError as e:
            logger.info(f"Login refused: {e}")

    Attributes:
        message: Human-readable error description
        details: Additional context (dict for API responses)
        status_code: HTTP status used when this reaches the API layer
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        status_code: Optional[int] = None
    ):
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """
        Convert to dictionary for API responses.

        `code` mirrors the HTTP status so clients that only read the body
        still see the outcome.
        """
        return {
            "code": self.status_code,
            "message": self.message,
            "error_type": self.__class__.__name__,
            "details": self.details
        }


# =============================================================================
# Credential Errors
# =============================================================================

class UnregisteredError(RegAuthError):
    """Raised when the client has no provisioned credential state."""

    status_code = 403

    def __init__(self, client: str, message: str = "Unregistered", field: Optional[str] = None):
        details = {"client": client}
        if field:
            details["field"] = field
        super().__init__(message=message, details=details)


class UnauthorisedError(RegAuthError):
    """Raised when a presented credential does not match the stored hash."""

    status_code = 403

    def __init__(self, client: str, message: str = "Unauthorised", status_code: Optional[int] = None):
        super().__init__(
            message=message,
            details={"client": client},
            status_code=status_code
        )


class InternalHashError(RegAuthError):
    """Raised when the password hash engine faults instead of answering."""

    status_code = 401

    def __init__(
        self,
        client: str,
        err_code: str,
        message: str = "Unauthorised",
        status_code: Optional[int] = None
    ):
        self.err_code = err_code
        super().__init__(
            message=message,
            details={"client": client, "err_code": err_code},
            status_code=status_code
        )

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errCode"] = self.err_code
        return body


class InvalidSecretError(RegAuthError):
    """Raised when a new secret cannot be hashed without loss (NUL byte, over 72 bytes)."""

    status_code = 403

    def __init__(self, client: str, reason: str):
        super().__init__(
            message="Invalid secret",
            details={"client": client, "reason": reason}
        )


# =============================================================================
# Registration Window Errors
# =============================================================================

class ExpiryError(RegAuthError):
    """Base class for registration deadline violations."""

    status_code = 403


class InvalidExpiryError(ExpiryError):
    """Raised when the stored regBy is unparseable or predates the sanity floor."""

    def __init__(self, client: str, reg_by: str):
        super().__init__(
            message="Invalid expiry",
            details={"client": client, "reg_by": reg_by}
        )


class ExpiredError(ExpiryError):
    """Raised when the registration deadline has passed."""

    def __init__(self, client: str, reg_by: int, now: int):
        super().__init__(
            message="Expired",
            details={"client": client, "reg_by": reg_by, "now": now}
        )


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(RegAuthError):
    """Raised when there's a configuration problem."""

    def __init__(self, setting_name: str, issue: str):
        super().__init__(
            message=f"Configuration error for '{setting_name}': {issue}",
            details={
                "setting_name": setting_name,
                "issue": issue
            }
        )
