"""
Policy Engine - pure authorization decisions.

Nothing here performs I/O. The guard layer builds a ``Principal`` from a
fresh database read and asks these functions for allow/deny.

Usage:
    from menu_api.services.permissions.policy import can, can_access_resource

    if can_access_resource(principal, menu) and can(principal, PermissionKey.MENU_UPDATE):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

from shared.config.constants import Roles
from shared.config.settings import settings

from .catalog import PermissionKey, get_permissions_for_role, to_permission_key
from .hierarchy import get_role_level, is_role_higher_than


@dataclass(frozen=True)
class Principal:
    """
    The authenticated actor of one request.

    ``permissions`` is the per-user override: None means unset (role
    defaults apply), an empty tuple means every permission is revoked.
    """

    id: int
    email: str
    role: str
    tenant_id: int
    permissions: Optional[tuple[str, ...]] = None
    location_ids: frozenset[int] = field(default_factory=frozenset)

    @property
    def effective_permissions(self) -> frozenset[str]:
        """Override if set, else role defaults. Values are plain key strings."""
        if self.permissions is not None:
            return frozenset(self.permissions)
        return frozenset(key.value for key in get_permissions_for_role(self.role))

    @property
    def is_superuser(self) -> bool:
        return self.role == settings.superuser_role


class Resource(Protocol):
    """Anything tenant-scoped: ORM rows and ResourceRef both qualify."""

    tenant_id: int


@dataclass(frozen=True)
class ResourceRef:
    """Lightweight resource descriptor for checks made before loading a row."""

    tenant_id: int
    location_id: Optional[int] = None
    owner_id: Optional[int] = None


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: Optional[str] = None


# =============================================================================
# Core policy
# =============================================================================


def can(principal: Principal, permission: PermissionKey | str) -> bool:
    """
    Whether the principal holds a permission.

    The superuser bypass is bounded by the catalog: a key outside it is
    denied for every principal, the superuser included. For any catalog
    key the superuser role is allowed without consulting its permission
    set.
    """
    key = to_permission_key(permission)
    if key is None:
        return False
    if principal.is_superuser:
        return True
    return key.value in principal.effective_permissions


def can_with_reason(principal: Principal, permission: PermissionKey | str) -> PolicyDecision:
    """Same as ``can`` but explains a denial."""
    if can(principal, permission):
        return PolicyDecision(allowed=True)
    if to_permission_key(permission) is None:
        return PolicyDecision(allowed=False, reason=f"Permission '{permission}' is not registered")
    return PolicyDecision(
        allowed=False,
        reason=f"Role '{principal.role}' does not have permission '{permission}'",
    )


def can_access_resource(principal: Principal, resource: Resource) -> bool:
    """Tenant isolation. Must be evaluated before any permission check on a resource."""
    return principal.tenant_id == resource.tenant_id


def can_access_and_do(
    principal: Principal,
    resource: Resource,
    permission: PermissionKey | str,
) -> PolicyDecision:
    """Tenant check first, then the permission."""
    if not can_access_resource(principal, resource):
        return PolicyDecision(
            allowed=False,
            reason="Access denied: Resource belongs to a different tenant",
        )
    return can_with_reason(principal, permission)


# =============================================================================
# Staff management
# =============================================================================


def can_manage_user(principal: Principal, target_role: str | None) -> bool:
    """Only users with a strictly lower role may be managed."""
    return is_role_higher_than(principal.role, target_role)


def can_assign_role(principal: Principal, target_role: str | None) -> bool:
    """Only roles strictly below one's own may be granted."""
    return is_role_higher_than(principal.role, target_role)


def can_modify_self(principal: Principal, new_role: str | None = None) -> PolicyDecision:
    """Owners cannot demote themselves."""
    if new_role and new_role != principal.role:
        if principal.role == Roles.OWNER and new_role != Roles.OWNER:
            return PolicyDecision(allowed=False, reason="Owners cannot demote themselves")
    return PolicyDecision(allowed=True)


# =============================================================================
# Location scope
# =============================================================================


def can_access_location(principal: Principal, location_id: int) -> bool:
    """
    Managers and above see every location of their tenant. Lower roles with
    a non-empty location scope are restricted to it; an empty scope means
    unrestricted.
    """
    if get_role_level(principal.role) >= get_role_level(Roles.MANAGER):
        return True
    if principal.location_ids:
        return location_id in principal.location_ids
    return True
