"""
Item Service - item visibility and pricing.

Usage:
    from menu_api.services.domain import ItemService

    service = ItemService(db)
    change = service.set_item_visibility(tenant_id, item_id, False, actor=principal)
    price = service.set_price(tenant_id, item_id, "EUR", 1250, actor=principal)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from sqlalchemy import select, update

from menu_api.models import Item, ItemPrice, MenuLine
from menu_api.repositories import TenantRepository
from menu_api.services.audit import log_change
from menu_api.services.base_service import DomainService
from shared.config.constants import AuditAction, LineType
from shared.config.logging import get_logger
from shared.utils.exceptions import NotFoundError
from shared.utils.validators import validate_amount_minor, validate_currency_code

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from menu_api.services.permissions.policy import Principal

logger = get_logger(__name__)


@dataclass(frozen=True)
class VisibilityChange:
    item_id: int
    is_visible: bool
    lines_updated: int


class ItemService(DomainService):
    """
    Business rules:
    - An item's ``is_visible`` and the ``is_enabled`` flag of every item line
      referencing it (across all menus of the tenant) change together or not
      at all
    - Prices are integer minor units with an explicit three-letter currency
    """

    def __init__(self, db: "Session"):
        super().__init__(db)
        self._items = TenantRepository(Item, db)

    def get_item(self, tenant_id: int, item_id: int) -> Item:
        item = self._items.find_by_id(item_id, tenant_id)
        if item is None:
            raise NotFoundError("Item", item_id, tenant_id=tenant_id)
        return item

    # =========================================================================
    # Visibility
    # =========================================================================

    def set_item_visibility(
        self,
        tenant_id: int,
        item_id: int,
        is_visible: bool,
        *,
        actor: Optional["Principal"] = None,
    ) -> VisibilityChange:
        """
        Set an item's visibility and cascade it to every line of the item.

        Raises:
            NotFoundError: Item missing or in another tenant.
            TransactionError: The cascade failed; nothing was changed.
        """
        item = self.get_item(tenant_id, item_id)
        previous = item.is_visible

        with self._atomic("update item visibility", item_id=item_id, tenant_id=tenant_id):
            item.is_visible = is_visible
            if actor is not None:
                item.set_updated_by(actor.id, actor.email)

            result = self._db.execute(
                update(MenuLine)
                .where(
                    MenuLine.tenant_id == tenant_id,
                    MenuLine.item_id == item_id,
                    MenuLine.line_type == LineType.ITEM,
                )
                .values(is_enabled=is_visible)
                .execution_options(synchronize_session="evaluate")
            )
            self._db.flush()

            log_change(
                self._db,
                tenant_id=tenant_id,
                actor=actor,
                entity_type="item",
                entity_id=item_id,
                action=AuditAction.UPDATE,
                old_values={"is_visible": previous},
                new_values={"is_visible": is_visible, "lines_updated": result.rowcount},
            )

        logger.info(
            "Item visibility changed",
            item_id=item_id,
            tenant_id=tenant_id,
            is_visible=is_visible,
            lines_updated=result.rowcount,
        )
        return VisibilityChange(item_id=item_id, is_visible=is_visible, lines_updated=result.rowcount)

    # =========================================================================
    # Pricing
    # =========================================================================

    def set_price(
        self,
        tenant_id: int,
        item_id: int,
        currency: str,
        amount_minor: int,
        *,
        actor: Optional["Principal"] = None,
    ) -> ItemPrice:
        """
        Create or replace the item's base price in one currency.

        Raises:
            ValidationError: Bad currency code or amount (checked before any write).
            NotFoundError: Item missing or in another tenant.
        """
        currency = validate_currency_code(currency)
        amount_minor = validate_amount_minor(amount_minor)
        item = self.get_item(tenant_id, item_id)

        with self._atomic("set item price", item_id=item_id, tenant_id=tenant_id):
            price = self._db.scalar(
                select(ItemPrice).where(
                    ItemPrice.item_id == item.id,
                    ItemPrice.currency == currency,
                )
            )
            old_amount = price.amount_minor if price else None
            if price is None:
                price = ItemPrice(item_id=item.id, currency=currency, amount_minor=amount_minor)
                if actor is not None:
                    price.set_created_by(actor.id, actor.email)
                self._db.add(price)
            else:
                price.amount_minor = amount_minor
                if actor is not None:
                    price.set_updated_by(actor.id, actor.email)

            log_change(
                self._db,
                tenant_id=tenant_id,
                actor=actor,
                entity_type="item_price",
                entity_id=item.id,
                action=AuditAction.CREATE if old_amount is None else AuditAction.UPDATE,
                old_values={"currency": currency, "amount_minor": old_amount} if old_amount is not None else None,
                new_values={"currency": currency, "amount_minor": amount_minor},
            )

        self._db.refresh(price)
        return price
