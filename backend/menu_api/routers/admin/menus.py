"""
Menu endpoints - thin router over MenuService.

Lifecycle transitions are separate POST actions so each can carry its own
permission: publish/unpublish need ``menu.publish``, archive needs
``menu.delete``.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from menu_api.models import Menu
from menu_api.routers.admin._base import load_guarded
from menu_api.routers.admin_schemas import MenuCreate, MenuOutput
from menu_api.services.domain import MenuService
from menu_api.services.permissions import (
    AuthorizationGuard,
    PermissionKey,
    Principal,
    RequirePermission,
    get_guard,
)
from shared.infrastructure.db import get_db
from shared.utils.schemas import MenuStatusLiteral

router = APIRouter(tags=["admin-menus"])


@router.get("/menus", response_model=list[MenuOutput])
def list_menus(
    brand_id: int | None = None,
    status_filter: MenuStatusLiteral | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(PermissionKey.MENU_READ)),
) -> list[MenuOutput]:
    menus = MenuService(db).list_menus(principal.tenant_id, brand_id=brand_id, status=status_filter)
    return [MenuOutput.model_validate(m) for m in menus]


@router.post("/menus", response_model=MenuOutput, status_code=status.HTTP_201_CREATED)
def create_menu(
    body: MenuCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(PermissionKey.MENU_CREATE)),
) -> MenuOutput:
    menu = MenuService(db).create_menu(
        principal.tenant_id,
        brand_id=body.brand_id,
        code=body.code,
        translations=[t.model_dump() for t in body.translations],
        actor=principal,
    )
    return MenuOutput.model_validate(menu)


@router.get("/menus/{menu_id}", response_model=MenuOutput)
def get_menu(
    menu_id: int,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> MenuOutput:
    _, menu = load_guarded(db, guard, Menu, menu_id, PermissionKey.MENU_READ, "Menu")
    return MenuOutput.model_validate(menu)


@router.post("/menus/{menu_id}/publish", response_model=MenuOutput)
def publish_menu(
    menu_id: int,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> MenuOutput:
    principal, _ = load_guarded(db, guard, Menu, menu_id, PermissionKey.MENU_PUBLISH, "Menu")
    menu = MenuService(db).publish(principal.tenant_id, menu_id, actor=principal)
    return MenuOutput.model_validate(menu)


@router.post("/menus/{menu_id}/unpublish", response_model=MenuOutput)
def unpublish_menu(
    menu_id: int,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> MenuOutput:
    principal, _ = load_guarded(db, guard, Menu, menu_id, PermissionKey.MENU_PUBLISH, "Menu")
    menu = MenuService(db).unpublish(principal.tenant_id, menu_id, actor=principal)
    return MenuOutput.model_validate(menu)


@router.post("/menus/{menu_id}/archive", response_model=MenuOutput)
def archive_menu(
    menu_id: int,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> MenuOutput:
    principal, _ = load_guarded(db, guard, Menu, menu_id, PermissionKey.MENU_DELETE, "Menu")
    menu = MenuService(db).archive(principal.tenant_id, menu_id, actor=principal)
    return MenuOutput.model_validate(menu)
