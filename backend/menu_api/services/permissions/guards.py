"""
Authorization Guard Layer.

Bridges the session (an identity pointer only) to the policy engine. The
guard is created once per request; ``get_auth_user`` reads the user row
exactly once for that request, so permission or role edits apply on the
caller's very next request without a new login.

Usage:
    guard = AuthorizationGuard(db, session)
    result = guard.require_permission(PermissionKey.MENU_UPDATE)
    if not result.authorized:
        raise result.error
    principal = result.principal
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from menu_api.models import User
from shared.config.logging import audit_authz_event, get_logger
from shared.infrastructure.correlation import bind_principal
from shared.security.auth import SessionClaims
from shared.utils.exceptions import (
    AppException,
    PermissionDeniedError,
    ResourceNotFoundError,
    RoleAssignmentError,
    RoleHierarchyError,
    UnauthenticatedError,
)

from .catalog import PermissionKey
from .policy import (
    Principal,
    Resource,
    can,
    can_access_resource,
    can_assign_role,
    can_manage_user,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class GuardResult:
    """Outcome of a guard check. ``error`` is set exactly when not authorized."""

    authorized: bool
    principal: Optional[Principal] = None
    error: Optional[AppException] = None

    def principal_or_raise(self) -> Principal:
        """Return the principal, or raise the denial error."""
        if not self.authorized:
            raise self.error
        return self.principal


class AuthorizationGuard:
    """Per-request authorization entry point."""

    def __init__(self, db: Session, session: SessionClaims | None):
        self._db = db
        self._session = session
        self._resolved = False
        self._principal: Principal | None = None

    def get_auth_user(self) -> Principal | None:
        """
        Resolve the principal for this request.

        Returns None when there is no session, the user no longer exists or
        is deactivated, or the user's tenant differs from the session's.
        """
        if not self._resolved:
            self._principal = self._load_principal()
            self._resolved = True
        return self._principal

    def _load_principal(self) -> Principal | None:
        if not self._session:
            return None

        user_id = self._session.get("sub")
        tenant_id = self._session.get("tenant_id")
        user = self._db.scalar(select(User).where(User.id == user_id))

        if user is None or not user.is_active:
            logger.info("Session user unavailable", user_id=user_id)
            return None
        if user.tenant_id != tenant_id:
            logger.warning(
                "Session tenant does not match user tenant",
                user_id=user_id,
                session_tenant_id=tenant_id,
            )
            return None

        bind_principal(user.id, user.tenant_id)
        return Principal(
            id=user.id,
            email=user.email,
            role=user.role,
            tenant_id=user.tenant_id,
            permissions=tuple(user.permissions) if user.permissions is not None else None,
            location_ids=frozenset(user.location_ids or ()),
        )

    # =========================================================================
    # Guards
    # =========================================================================

    def require_auth(self) -> GuardResult:
        principal = self.get_auth_user()
        if principal is None:
            audit_authz_event("DENIED_UNAUTHENTICATED")
            return GuardResult(authorized=False, error=UnauthenticatedError())
        return GuardResult(authorized=True, principal=principal)

    def require_permission(self, permission: PermissionKey | str) -> GuardResult:
        auth = self.require_auth()
        if not auth.authorized:
            return auth

        principal = auth.principal
        if not can(principal, permission):
            return self._deny_permission(principal, permission)
        return auth

    def require_resource_access(
        self,
        permission: PermissionKey | str,
        resource: Resource,
    ) -> GuardResult:
        """Tenant isolation is checked before the permission."""
        auth = self.require_auth()
        if not auth.authorized:
            return auth

        principal = auth.principal
        if not can_access_resource(principal, resource):
            audit_authz_event(
                "DENIED_TENANT",
                user_id=principal.id,
                tenant_id=principal.tenant_id,
                role=principal.role,
                permission=str(permission),
                resource_tenant_id=resource.tenant_id,
            )
            return GuardResult(
                authorized=False,
                principal=principal,
                error=ResourceNotFoundError(user_id=principal.id),
            )

        if not can(principal, permission):
            return self._deny_permission(principal, permission)
        return auth

    def require_user_management(self, target_role: str | None) -> GuardResult:
        auth = self.require_auth()
        if not auth.authorized:
            return auth

        principal = auth.principal
        if not can_manage_user(principal, target_role):
            audit_authz_event(
                "DENIED_HIERARCHY",
                user_id=principal.id,
                tenant_id=principal.tenant_id,
                role=principal.role,
                reason="manage",
                target_role=target_role,
            )
            return GuardResult(
                authorized=False,
                principal=principal,
                error=RoleHierarchyError(target_role=target_role),
            )
        return auth

    def require_role_assignment(self, target_role: str | None) -> GuardResult:
        auth = self.require_auth()
        if not auth.authorized:
            return auth

        principal = auth.principal
        if not can_assign_role(principal, target_role):
            audit_authz_event(
                "DENIED_HIERARCHY",
                user_id=principal.id,
                tenant_id=principal.tenant_id,
                role=principal.role,
                reason="assign",
                target_role=target_role,
            )
            return GuardResult(
                authorized=False,
                principal=principal,
                error=RoleAssignmentError(target_role=target_role),
            )
        return auth

    def _deny_permission(self, principal: Principal, permission: PermissionKey | str) -> GuardResult:
        key = str(permission)
        audit_authz_event(
            "DENIED_PERMISSION",
            user_id=principal.id,
            tenant_id=principal.tenant_id,
            role=principal.role,
            permission=key,
        )
        return GuardResult(
            authorized=False,
            principal=principal,
            error=PermissionDeniedError(key),
        )
