"""
Item endpoints: visibility cascade and pricing.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from menu_api.models import Item
from menu_api.routers.admin._base import load_guarded
from menu_api.routers.admin_schemas import (
    ItemPriceOutput,
    ItemVisibilityOutput,
    PriceUpdate,
    VisibilityUpdate,
)
from menu_api.services.domain import ItemService
from menu_api.services.permissions import AuthorizationGuard, PermissionKey, get_guard
from shared.infrastructure.db import get_db

router = APIRouter(tags=["admin-items"])


@router.patch("/items/{item_id}/visibility", response_model=ItemVisibilityOutput)
def set_visibility(
    item_id: int,
    body: VisibilityUpdate,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> ItemVisibilityOutput:
    """
    Show or hide an item. Every menu line placing this item, in every menu
    of the tenant, follows in the same transaction.
    """
    principal, _ = load_guarded(db, guard, Item, item_id, PermissionKey.ITEM_UPDATE, "Item")
    change = ItemService(db).set_item_visibility(
        principal.tenant_id, item_id, body.is_visible, actor=principal
    )
    return ItemVisibilityOutput(
        item_id=change.item_id,
        is_visible=change.is_visible,
        lines_updated=change.lines_updated,
    )


@router.put("/items/{item_id}/price", response_model=ItemPriceOutput)
def set_price(
    item_id: int,
    body: PriceUpdate,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> ItemPriceOutput:
    principal, _ = load_guarded(db, guard, Item, item_id, PermissionKey.ITEM_UPDATE, "Item")
    price = ItemService(db).set_price(
        principal.tenant_id,
        item_id,
        body.currency,
        body.amount_minor,
        actor=principal,
    )
    return ItemPriceOutput.model_validate(price)
