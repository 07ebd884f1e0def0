"""
Shared dependencies and helpers for admin routers.
"""

from typing import TypeVar

from sqlalchemy.orm import Session

from menu_api.repositories import TenantRepository
from menu_api.services.permissions import (
    AuthorizationGuard,
    PermissionKey,
    Principal,
    can_access_location,
)
from shared.utils.exceptions import ForbiddenError, ResourceNotFoundError

ModelT = TypeVar("ModelT")


def load_guarded(
    db: Session,
    guard: AuthorizationGuard,
    model: type[ModelT],
    entity_id: int,
    permission: PermissionKey,
    entity_name: str,
) -> tuple[Principal, ModelT]:
    """
    Load a row and check the caller may act on it.

    Authentication is checked before the lookup so anonymous callers get 401
    rather than 404. A row in another tenant yields the same 404 as a missing
    one.
    """
    guard.require_auth().principal_or_raise()
    row = TenantRepository(model, db).get(entity_id)
    if row is None:
        raise ResourceNotFoundError(entity=entity_name, entity_id=entity_id)
    principal = guard.require_resource_access(permission, row).principal_or_raise()
    return principal, row


def require_location_scope(principal: Principal, location_id: int) -> None:
    """Reject staff whose location scope excludes ``location_id``."""
    if not can_access_location(principal, location_id):
        raise ForbiddenError(
            "Access denied: location outside your scope",
            user_id=principal.id,
            location_id=location_id,
        )
