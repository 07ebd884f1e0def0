"""
Role-based authorization.

Layers, leaves first:
- catalog: PermissionKey and role definitions (pure data)
- hierarchy: role levels and strict comparison
- policy: pure allow/deny decisions over a Principal
- guards: per-request principal resolution and error mapping
- dependencies: FastAPI adapters

Usage:
    from menu_api.services.permissions import PermissionKey, RequirePermission

    @router.get("/menus")
    def list_menus(principal: Principal = Depends(RequirePermission(PermissionKey.MENU_READ))):
        ...
"""

from .catalog import (
    PermissionKey,
    RoleDefinition,
    ROLE_DEFINITIONS,
    get_permissions_for_role,
    get_role,
    get_default_role,
    parse_permission_keys,
    validate_catalog,
)
from .hierarchy import (
    UNKNOWN_ROLE_LEVEL,
    get_role_level,
    is_role_higher_than,
    assignable_roles,
)
from .policy import (
    Principal,
    ResourceRef,
    PolicyDecision,
    can,
    can_with_reason,
    can_access_resource,
    can_access_and_do,
    can_manage_user,
    can_assign_role,
    can_modify_self,
    can_access_location,
)
from .guards import AuthorizationGuard, GuardResult
from .dependencies import RequirePermission, current_principal, get_guard

__all__ = [
    # Catalog
    "PermissionKey",
    "RoleDefinition",
    "ROLE_DEFINITIONS",
    "get_permissions_for_role",
    "get_role",
    "get_default_role",
    "parse_permission_keys",
    "validate_catalog",
    # Hierarchy
    "UNKNOWN_ROLE_LEVEL",
    "get_role_level",
    "is_role_higher_than",
    "assignable_roles",
    # Policy
    "Principal",
    "ResourceRef",
    "PolicyDecision",
    "can",
    "can_with_reason",
    "can_access_resource",
    "can_access_and_do",
    "can_manage_user",
    "can_assign_role",
    "can_modify_self",
    "can_access_location",
    # Guards
    "AuthorizationGuard",
    "GuardResult",
    # FastAPI
    "RequirePermission",
    "current_principal",
    "get_guard",
]
