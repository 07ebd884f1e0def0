"""
Staff management endpoints - thin router over StaffService.

The service runs the hierarchy checks itself through the request's guard,
so these handlers only pass the guard along.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from menu_api.routers.admin_schemas import PermissionsUpdate, RoleUpdate, StaffOutput
from menu_api.services.domain import StaffService
from menu_api.services.permissions import (
    AuthorizationGuard,
    PermissionKey,
    Principal,
    RequirePermission,
    get_guard,
)
from shared.infrastructure.db import get_db

router = APIRouter(tags=["admin-staff"])


@router.get("/staff", response_model=list[StaffOutput])
def list_staff(
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(PermissionKey.STAFF_READ)),
) -> list[StaffOutput]:
    return [StaffOutput.model_validate(u) for u in StaffService(db).list_staff(principal.tenant_id)]


@router.patch("/staff/{user_id}/role", response_model=StaffOutput)
def change_role(
    user_id: int,
    body: RoleUpdate,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> StaffOutput:
    """The caller must outrank both the target's current role and the new one."""
    user = StaffService(db).change_role(guard, user_id, body.role)
    return StaffOutput.model_validate(user)


@router.put("/staff/{user_id}/permissions", response_model=StaffOutput)
def set_permissions(
    user_id: int,
    body: PermissionsUpdate,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> StaffOutput:
    """Replace the target's permission override; ``null`` restores role defaults."""
    user = StaffService(db).set_permission_overrides(guard, user_id, body.keys)
    return StaffOutput.model_validate(user)
