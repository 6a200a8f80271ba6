"""
API request and response models for the portal auth REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
tenants/models.py, which own the internal domain representation. Route
handlers map between the two.

Field names follow the portal frontend's JSON contract: snake_case for the
user object, camelCase (via aliases) for the status payloads.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tenants.models import AccessPolicy, NavItem

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    Both fields are optional and unbounded at the schema level so a missing
    or over-long value reaches the credential verifier and comes back as a
    400, not a schema-level 422.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    username: Optional[str] = None
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "Login successful"
    user: dict
    token: str


class VerifyResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    user: dict


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str


class RouteCheckResponse(MessageResponse):
    timestamp: str


class StatusInfo(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: str
    access_level: str = Field(alias="accessLevel")
    status_message: str = Field(alias="statusMessage")
    can_login: bool = Field(alias="canLogin")

    @classmethod
    def from_policy(cls, policy: AccessPolicy) -> "StatusInfo":
        return cls(
            status=policy.status.value,
            access_level=policy.access_level.value,
            status_message=policy.status_message,
            can_login=policy.can_login,
        )


class NavItemModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    icon: str

    @classmethod
    def from_item(cls, item: NavItem) -> "NavItemModel":
        return cls(**item.to_dict())


class NavigationResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool = True
    navigation: list[NavItemModel]
    status_info: StatusInfo = Field(alias="statusInfo")


class SpaRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    status: str


class SpaStatusResponse(BaseModel):
    """Response for GET /api/v1/auth/spa-status/{spa_id}."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool = True
    spa: SpaRef
    status: str
    access_level: str = Field(alias="accessLevel")
    allowed_tabs: list[str] = Field(alias="allowedTabs")
    status_message: str = Field(alias="statusMessage")
    can_login: bool = Field(alias="canLogin")

    @classmethod
    def from_policy(cls, spa_id: int, policy: AccessPolicy) -> "SpaStatusResponse":
        return cls(
            spa=SpaRef(id=spa_id, status=policy.status.value),
            status=policy.status.value,
            access_level=policy.access_level.value,
            allowed_tabs=list(policy.allowed_tabs),
            status_message=policy.status_message,
            can_login=policy.can_login,
        )


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    message: str
    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
