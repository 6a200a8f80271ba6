"""
tenants/models.py -- Domain types for spa (tenant) status and access policy.

TenantRecord is owned by the registration subsystem; this service only reads
its status. AccessPolicy is derived per request from that status and is never
persisted or cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TenantStatus(str, Enum):
    """Closed set of spa lifecycle states. Adding one requires a policy in resolver.py."""

    pending = "pending"
    approved = "approved"
    blacklisted = "blacklisted"


class AccessLevel(str, Enum):
    full = "full"
    none = "none"


@dataclass
class TenantRecord:
    name: str
    status: str  # raw column value; parsed into TenantStatus by the resolver
    id: int | None = None


@dataclass(frozen=True)
class AccessPolicy:
    """Request-time authorization decision for one spa.

    Invariant: a policy that forbids login grants no tabs.
    """

    status: TenantStatus
    can_login: bool
    access_level: AccessLevel
    allowed_tabs: tuple[str, ...] = ()
    status_message: str = ""

    def __post_init__(self) -> None:
        if not self.can_login and self.allowed_tabs:
            raise ValueError("a policy that forbids login cannot grant tabs")

    def status_info(self) -> dict:
        return {
            "status": self.status.value,
            "accessLevel": self.access_level.value,
            "statusMessage": self.status_message,
            "canLogin": self.can_login,
        }


# ---------------------------------------------------------------------------
# Navigation catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NavItem:
    id: str
    label: str
    icon: str

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "icon": self.icon}


# Every destination of the spa admin portal, in display order.
NAVIGATION_CATALOG: tuple[NavItem, ...] = (
    NavItem("dashboard", "Dashboard", "home"),
    NavItem("add-therapist", "Add Therapist", "user-plus"),
    NavItem("view-therapists", "View Therapists", "users"),
    NavItem("resign-terminate", "Resign / Terminate", "user-x"),
    NavItem("notifications", "Notifications", "bell"),
    NavItem("payment-plans", "Payment Plans", "credit-card"),
    NavItem("spa-profile", "Spa Profile", "building"),
    NavItem("account-settings", "Account Settings", "settings"),
)

ALL_TABS: tuple[str, ...] = tuple(item.id for item in NAVIGATION_CATALOG)
