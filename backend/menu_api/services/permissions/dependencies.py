"""
FastAPI dependencies adapting the guard layer to routes.

Usage:
    @router.patch("/menus/{menu_id}")
    def update_menu(
        menu_id: int,
        principal: Principal = Depends(RequirePermission(PermissionKey.MENU_UPDATE)),
    ):
        ...

    @router.patch("/staff/{user_id}/role")
    def change_role(guard: AuthorizationGuard = Depends(get_guard)):
        principal = guard.require_permission(PermissionKey.STAFF_UPDATE).principal_or_raise()
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.security.auth import SessionClaims, current_session

from .catalog import PermissionKey
from .guards import AuthorizationGuard
from .policy import Principal


def get_guard(
    db: Session = Depends(get_db),
    session: SessionClaims | None = Depends(current_session),
) -> AuthorizationGuard:
    """One guard per request; FastAPI caches it across dependencies of the same request."""
    return AuthorizationGuard(db, session)


def current_principal(guard: AuthorizationGuard = Depends(get_guard)) -> Principal:
    """Authenticated principal or 401."""
    return guard.require_auth().principal_or_raise()


class RequirePermission:
    """Dependency that resolves the principal and demands a permission key."""

    def __init__(self, permission: PermissionKey):
        self.permission = permission

    def __call__(self, guard: AuthorizationGuard = Depends(get_guard)) -> Principal:
        return guard.require_permission(self.permission).principal_or_raise()
