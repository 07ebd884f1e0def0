"""
Session introspection for the admin UI.
"""

from fastapi import APIRouter, Depends

from menu_api.routers.admin_schemas import MeOutput
from menu_api.services.permissions import Principal, can, current_principal
from menu_api.services.permissions.catalog import PermissionKey

router = APIRouter(tags=["admin-auth"])


@router.get("/auth/me", response_model=MeOutput)
def me(principal: Principal = Depends(current_principal)) -> MeOutput:
    """Current principal and every key it is allowed, in catalog order."""
    return MeOutput(
        id=principal.id,
        email=principal.email,
        role=principal.role,
        tenant_id=principal.tenant_id,
        permissions=[key.value for key in PermissionKey if can(principal, key)],
        has_override=principal.permissions is not None,
        location_ids=sorted(principal.location_ids),
        is_superuser=principal.is_superuser,
    )
