"""
core/errors.py -- Error taxonomy for the portal auth service.

Every failure the service reports to a client is a PortalError subclass. Each
class fixes its HTTP status and machine-readable code; the message is the
client-safe text. Internal detail (driver errors, stack traces) travels only
through exception chaining and the logs, never through `message`.

The API layer renders all of these with a single exception handler
(api/main.py), so route handlers just let them propagate.

Layer rule: core/ is the kernel. No imports from api/, auth/ or tenants/.
"""

from __future__ import annotations


class PortalError(Exception):
    """Base class for every typed failure the service reports."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def extra(self) -> dict:
        """Additional top-level fields for the JSON error body."""
        return {}


class ValidationError(PortalError):
    status_code = 400
    code = "validation_error"
    default_message = "Username and password are required"


class InvalidCredentials(PortalError):
    """Authentication failed. Deliberately says nothing about which half was wrong."""

    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid username or password"


class AccessRestricted(PortalError):
    """Credentials matched but the tenant's lifecycle status forbids access."""

    status_code = 403
    code = "access_restricted"
    default_message = "Access to this account is restricted."

    def __init__(self, message: str | None = None, *, status: str = "") -> None:
        super().__init__(message)
        self.status = status

    def extra(self) -> dict:
        return {
            "spa_status": self.status,
            "statusMessage": self.message,
            "access_denied": True,
            "allowedTabs": [],
        }


class TokenInvalid(PortalError):
    status_code = 401
    code = "token_invalid"
    default_message = "Invalid token"


class TokenExpired(PortalError):
    status_code = 401
    code = "token_expired"
    default_message = "Token has expired"


class Forbidden(PortalError):
    """Cross-tenant access attempt."""

    status_code = 403
    code = "forbidden"
    default_message = "Access denied to this spa"


class TenantResolutionError(PortalError):
    """The tenant's status could not be turned into a policy. Never grants access."""

    status_code = 500
    code = "status_check_failed"
    default_message = "Error checking spa status"


class UnknownStatus(TenantResolutionError):
    code = "unknown_status"


class TenantNotFound(TenantResolutionError):
    code = "tenant_not_found"


class LookupFailed(TenantResolutionError):
    code = "lookup_failed"


class SystemFailure(PortalError):
    """Unexpected collaborator failure during a protected operation."""

    status_code = 500
    code = "system_error"
    default_message = "Internal server error"
