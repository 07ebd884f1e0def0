"""
Menu line tree endpoints - thin router over MenuLineService.

Every route resolves the menu through the guard first, so a line id is
only ever looked up inside a menu the caller may see.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from menu_api.models import Menu
from menu_api.routers.admin._base import load_guarded
from menu_api.routers.admin_schemas import (
    LineCreate,
    LineDeleteOutput,
    LineNodeOutput,
    LineUpdate,
    MenuLineOutput,
    ReorderRequest,
)
from menu_api.services.domain import MenuLineService
from menu_api.services.permissions import AuthorizationGuard, PermissionKey, get_guard
from shared.infrastructure.db import get_db

router = APIRouter(tags=["admin-menu-lines"])


@router.get("/menus/{menu_id}/lines", response_model=list[LineNodeOutput])
def list_lines(
    menu_id: int,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> list[LineNodeOutput]:
    """Top-level lines with their nested, ordered children."""
    principal, _ = load_guarded(db, guard, Menu, menu_id, PermissionKey.MENU_READ, "Menu")
    tree = MenuLineService(db).list_tree(principal.tenant_id, menu_id)
    return [LineNodeOutput.from_node(node) for node in tree]


@router.post(
    "/menus/{menu_id}/lines",
    response_model=MenuLineOutput,
    status_code=status.HTTP_201_CREATED,
)
def add_line(
    menu_id: int,
    body: LineCreate,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> MenuLineOutput:
    principal, _ = load_guarded(db, guard, Menu, menu_id, PermissionKey.MENU_UPDATE, "Menu")
    line = MenuLineService(db).add_line(
        principal.tenant_id,
        menu_id,
        **body.model_dump(),
        actor=principal,
    )
    return MenuLineOutput.model_validate(line)


# Declared before /{line_id} so "reorder" is not parsed as a line id.
@router.patch("/menus/{menu_id}/lines/reorder", response_model=list[MenuLineOutput])
def reorder_lines(
    menu_id: int,
    body: ReorderRequest,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> list[MenuLineOutput]:
    principal, _ = load_guarded(db, guard, Menu, menu_id, PermissionKey.MENU_UPDATE, "Menu")
    lines = MenuLineService(db).reorder_lines(
        principal.tenant_id,
        menu_id,
        [entry.model_dump(exclude_unset=True) for entry in body.lines],
        actor=principal,
    )
    return [MenuLineOutput.model_validate(line) for line in lines]


@router.patch("/menus/{menu_id}/lines/{line_id}", response_model=MenuLineOutput)
def update_line(
    menu_id: int,
    line_id: int,
    body: LineUpdate,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> MenuLineOutput:
    principal, _ = load_guarded(db, guard, Menu, menu_id, PermissionKey.MENU_UPDATE, "Menu")
    line = MenuLineService(db).update_line(
        principal.tenant_id,
        menu_id,
        line_id,
        body.model_dump(exclude_unset=True),
        actor=principal,
    )
    return MenuLineOutput.model_validate(line)


@router.delete("/menus/{menu_id}/lines/{line_id}", response_model=LineDeleteOutput)
def delete_line(
    menu_id: int,
    line_id: int,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> LineDeleteOutput:
    """Children are promoted to the deleted line's parent."""
    principal, _ = load_guarded(db, guard, Menu, menu_id, PermissionKey.MENU_UPDATE, "Menu")
    result = MenuLineService(db).delete_line(principal.tenant_id, menu_id, line_id, actor=principal)
    return LineDeleteOutput(
        line_id=result.line_id,
        reparented_ids=result.reparented_ids,
        new_parent_id=result.new_parent_id,
    )


@router.patch("/menus/{menu_id}/lines/{line_id}/toggle", response_model=MenuLineOutput)
def toggle_line(
    menu_id: int,
    line_id: int,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> MenuLineOutput:
    """Item lines toggle the item's visibility everywhere it is placed."""
    principal, _ = load_guarded(db, guard, Menu, menu_id, PermissionKey.MENU_UPDATE, "Menu")
    line = MenuLineService(db).toggle_line(principal.tenant_id, menu_id, line_id, actor=principal)
    return MenuLineOutput.model_validate(line)
