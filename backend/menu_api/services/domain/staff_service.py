"""
Staff Service - role changes and per-user permission overrides.

Every method takes the request's AuthorizationGuard so that the hierarchy
and tenant checks run against the caller's freshly loaded principal.

Usage:
    from menu_api.services.domain import StaffService

    service = StaffService(db)
    user = service.change_role(guard, user_id=12, new_role="foh_staff")
    user = service.set_permission_overrides(guard, user_id=12, keys=["menu.read"])
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from menu_api.models import User
from menu_api.repositories import TenantRepository
from menu_api.services.audit import log_change
from menu_api.services.base_service import DomainService
from menu_api.services.permissions.catalog import PermissionKey, get_role, parse_permission_keys
from menu_api.services.permissions.policy import Principal, can_modify_self
from shared.config.constants import AuditAction
from shared.config.logging import get_logger, mask_email
from shared.utils.exceptions import ForbiddenError, ResourceNotFoundError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from menu_api.services.permissions.guards import AuthorizationGuard

logger = get_logger(__name__)


class StaffService(DomainService):
    """
    Business rules:
    - Staff management needs ``staff.update`` and a role strictly above the
      target's current role
    - A role can only be granted if it is strictly below the caller's own
    - Owners cannot demote themselves
    - Overrides replace role defaults; None restores the defaults, an empty
      list revokes everything
    - Callers cannot grant permission keys they do not hold themselves
    """

    def __init__(self, db: "Session"):
        super().__init__(db)
        self._users = TenantRepository(User, db)

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_staff(self, tenant_id: int) -> list[User]:
        return list(self._users.find_all(tenant_id, User.email))

    # =========================================================================
    # Command Methods
    # =========================================================================

    def change_role(
        self,
        guard: "AuthorizationGuard",
        user_id: int,
        new_role: str,
    ) -> User:
        """
        Assign a new role to a staff member.

        Raises:
            UnauthenticatedError, PermissionDeniedError: From the guard.
            ResourceNotFoundError: Target user missing or in another tenant.
            ForbiddenError: Owner self-demotion.
            RoleHierarchyError / RoleAssignmentError: Hierarchy violations.
            ValidationError: Unknown role.
        """
        principal, target = self._load_target(guard, user_id)

        if get_role(new_role) is None:
            raise ValidationError(f"Unknown role '{new_role}'", field="role")

        if target.id == principal.id:
            decision = can_modify_self(principal, new_role)
            if not decision.allowed:
                raise ForbiddenError(decision.reason, user_id=principal.id)

        guard.require_user_management(target.role).principal_or_raise()
        guard.require_role_assignment(new_role).principal_or_raise()

        old_role = target.role
        with self._atomic("change staff role", user_id=user_id):
            target.role = new_role
            target.set_updated_by(principal.id, principal.email)
            self._db.flush()
            log_change(
                self._db,
                tenant_id=principal.tenant_id,
                actor=principal,
                entity_type="user",
                entity_id=target.id,
                action=AuditAction.UPDATE,
                old_values={"role": old_role},
                new_values={"role": new_role},
            )

        self._db.refresh(target)
        logger.info(
            "Staff role changed",
            user_id=user_id,
            email=mask_email(target.email),
            old_role=old_role,
            new_role=new_role,
        )
        return target

    def set_permission_overrides(
        self,
        guard: "AuthorizationGuard",
        user_id: int,
        keys: list[str] | None,
    ) -> User:
        """
        Replace a staff member's permission override.

        Takes effect on the target's next request.
        """
        principal, target = self._load_target(guard, user_id)
        guard.require_user_management(target.role).principal_or_raise()

        override = None if keys is None else parse_permission_keys(keys)
        if override and not principal.is_superuser:
            not_held = sorted(set(override) - principal.effective_permissions)
            if not_held:
                raise ForbiddenError(
                    f"Cannot grant permissions you do not hold: {', '.join(not_held)}",
                    user_id=principal.id,
                )

        old_override = target.permissions
        with self._atomic("set staff permissions", user_id=user_id):
            target.permissions = override
            target.set_updated_by(principal.id, principal.email)
            self._db.flush()
            log_change(
                self._db,
                tenant_id=principal.tenant_id,
                actor=principal,
                entity_type="user",
                entity_id=target.id,
                action=AuditAction.UPDATE,
                old_values={"permissions": old_override},
                new_values={"permissions": override},
            )

        self._db.refresh(target)
        logger.info(
            "Staff permission override changed",
            user_id=user_id,
            cleared=override is None,
            count=len(override) if override is not None else None,
        )
        return target

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load_target(self, guard: "AuthorizationGuard", user_id: int) -> tuple[Principal, User]:
        principal = guard.require_permission(PermissionKey.STAFF_UPDATE).principal_or_raise()
        target = self._db.scalar(select(User).where(User.id == user_id))
        if target is None:
            raise ResourceNotFoundError(entity="User", entity_id=user_id)
        guard.require_resource_access(PermissionKey.STAFF_UPDATE, target).principal_or_raise()
        return principal, target
