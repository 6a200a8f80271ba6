"""
tenants/resolver.py -- Map a spa's current lifecycle status to an AccessPolicy.

This is the single source of the status -> policy rule. Login, token
verification, navigation and the status endpoint all call resolve(); none of
them keeps a policy past the request that computed it, because an LSA
administrator can approve or blacklist a spa at any moment.

Failure modes all deny access:
  TenantNotFound -- no spa row for the id.
  UnknownStatus  -- the row holds a status outside TenantStatus.
  LookupFailed   -- the store raised; the driver error is chained, not shown.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from core.errors import LookupFailed, TenantNotFound, UnknownStatus
from tenants.models import ALL_TABS, AccessLevel, AccessPolicy, TenantStatus
from tenants.store import TenantStore

logger = logging.getLogger("lsaportal.tenants")

PENDING_MESSAGE = "Your spa registration is pending approval. Please wait for LSA verification."
SUSPENDED_MESSAGE = "Your account has been suspended by the admin panel. Please contact LSA administration."

_POLICIES: dict[TenantStatus, AccessPolicy] = {
    TenantStatus.approved: AccessPolicy(
        status=TenantStatus.approved,
        can_login=True,
        access_level=AccessLevel.full,
        allowed_tabs=ALL_TABS,
        status_message="",
    ),
    TenantStatus.pending: AccessPolicy(
        status=TenantStatus.pending,
        can_login=False,
        access_level=AccessLevel.none,
        status_message=PENDING_MESSAGE,
    ),
    TenantStatus.blacklisted: AccessPolicy(
        status=TenantStatus.blacklisted,
        can_login=False,
        access_level=AccessLevel.none,
        status_message=SUSPENDED_MESSAGE,
    ),
}

_unmapped = set(TenantStatus) - set(_POLICIES)
if _unmapped:
    raise RuntimeError(f"No access policy defined for tenant statuses: {sorted(s.value for s in _unmapped)}")


def policy_for(status: TenantStatus) -> AccessPolicy:
    return _POLICIES[status]


class TenantStatusResolver:
    """Read a spa's status and return the policy it implies. Never memoizes."""

    def __init__(self, store: TenantStore) -> None:
        self._store = store

    def resolve(self, tenant_id: int) -> AccessPolicy:
        try:
            record = self._store.get_tenant(tenant_id)
        except SQLAlchemyError as exc:
            logger.error("Spa status lookup failed for spa_id=%s: %s", tenant_id, exc)
            raise LookupFailed() from exc

        if record is None:
            logger.warning("Spa status requested for unknown spa_id=%s", tenant_id)
            raise TenantNotFound()

        try:
            status = TenantStatus(record.status)
        except ValueError as exc:
            logger.error("Spa spa_id=%s has unrecognized status %r; denying", tenant_id, record.status)
            raise UnknownStatus() from exc

        return policy_for(status)
