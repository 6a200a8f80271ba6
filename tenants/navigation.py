"""
tenants/navigation.py -- Navigation listing and status checks for a spa.

Both operations enforce the same ownership rule before touching the store:
the caller's token must be scoped to the requested spa. A mismatch is a
Forbidden, never a not-found. Identities without a spa (global roles) are
denied as well.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from core.errors import Forbidden
from tenants.models import NAVIGATION_CATALOG, AccessPolicy, NavItem
from tenants.resolver import TenantStatusResolver

logger = logging.getLogger("lsaportal.tenants")


@dataclass(frozen=True)
class NavigationView:
    items: tuple[NavItem, ...]
    policy: AccessPolicy


class NavigationFilter:
    def __init__(self, resolver: TenantStatusResolver) -> None:
        self._resolver = resolver

    def filtered_navigation(self, caller_tenant_id: int | None, tenant_id: int) -> NavigationView:
        """Catalog entries the spa's live policy allows, in catalog order."""
        policy = self.status_check(caller_tenant_id, tenant_id)
        allowed = set(policy.allowed_tabs)
        items = tuple(item for item in NAVIGATION_CATALOG if item.id in allowed)
        return NavigationView(items=items, policy=policy)

    def status_check(self, caller_tenant_id: int | None, tenant_id: int) -> AccessPolicy:
        """Live policy for the caller's own spa."""
        _require_same_tenant(caller_tenant_id, tenant_id)
        return self._resolver.resolve(tenant_id)


def _require_same_tenant(caller_tenant_id: int | None, tenant_id: int) -> None:
    if caller_tenant_id is None or caller_tenant_id != tenant_id:
        logger.warning("Cross-spa access attempt: token spa_id=%s requested spa_id=%s", caller_tenant_id, tenant_id)
        raise Forbidden()
