"""
Admin API router - combines all admin sub-routers.

- auth: Current principal and its effective permissions
- menus: Menu CRUD and lifecycle (draft, published, archived)
- menu_lines: Section/item line tree per menu
- items: Item visibility cascade and pricing
- publications: Menu activation per location
- staff: Role changes and permission overrides

All routes are prefixed with /api/admin
"""

from fastapi import APIRouter

from shared.utils.schemas import ErrorResponse

from .auth import router as auth_router
from .menus import router as menus_router
from .menu_lines import router as menu_lines_router
from .items import router as items_router
from .publications import router as publications_router
from .staff import router as staff_router


router = APIRouter(
    prefix="/api/admin",
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)

router.include_router(auth_router)
router.include_router(menus_router)
router.include_router(menu_lines_router)
router.include_router(items_router)
router.include_router(publications_router)
router.include_router(staff_router)
