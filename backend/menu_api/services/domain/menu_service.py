"""
Menu Service - menu authoring and status lifecycle.

Usage:
    from menu_api.services.domain import MenuService

    service = MenuService(db)
    menu = service.create_menu(tenant_id, brand_id=1, code="lunch", actor=principal)
    service.publish(tenant_id, menu.id, actor=principal)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from menu_api.models import Brand, Menu, MenuPublication, MenuTranslation
from menu_api.repositories import TenantRepository
from menu_api.services.audit import log_change, serialize_model
from menu_api.services.base_service import DomainService
from shared.config.constants import MENU_TRANSITIONS, AuditAction, MenuStatus
from shared.config.logging import get_logger
from shared.utils.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from shared.utils.validators import validate_locale

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from menu_api.services.permissions.policy import Principal

logger = get_logger(__name__)

_TRANSITION_ACTIONS = {
    MenuStatus.PUBLISHED: AuditAction.PUBLISH,
    MenuStatus.DRAFT: AuditAction.UNPUBLISH,
    MenuStatus.ARCHIVED: AuditAction.ARCHIVE,
}


class MenuService(DomainService):
    """
    Business rules:
    - Menus are created in draft, with a code unique within the brand
    - draft -> published, published -> draft, any live status -> archived
    - Archived is terminal; archiving retires every publication of the menu
    - published_at records the first publication and is never reset
    """

    def __init__(self, db: "Session"):
        super().__init__(db)
        self._menus = TenantRepository(Menu, db)
        self._brands = TenantRepository(Brand, db)

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_menus(
        self,
        tenant_id: int,
        *,
        brand_id: int | None = None,
        status: str | None = None,
    ) -> list[Menu]:
        query = (
            select(Menu)
            .where(Menu.tenant_id == tenant_id, Menu.is_active.is_(True))
            .options(selectinload(Menu.translations))
            .order_by(Menu.brand_id, Menu.code)
        )
        if brand_id is not None:
            query = query.where(Menu.brand_id == brand_id)
        if status is not None:
            if status not in MenuStatus.ALL:
                raise ValidationError(f"Invalid menu status '{status}'", field="status")
            query = query.where(Menu.status == status)
        return list(self._db.scalars(query).all())

    def get_menu(self, tenant_id: int, menu_id: int) -> Menu:
        menu = self._menus.find_by_id(menu_id, tenant_id)
        if menu is None:
            raise NotFoundError("Menu", menu_id, tenant_id=tenant_id)
        return menu

    # =========================================================================
    # Command Methods
    # =========================================================================

    def create_menu(
        self,
        tenant_id: int,
        *,
        brand_id: int,
        code: str,
        translations: list[dict[str, Any]] | None = None,
        actor: Optional["Principal"] = None,
    ) -> Menu:
        """
        Create a draft menu.

        Raises:
            ValidationError: Blank code, bad locale, or brand outside the tenant.
            ConflictError: Code already used by another menu of the brand.
        """
        code = (code or "").strip()
        if not code:
            raise ValidationError("Menu code is required", field="code")
        if self._brands.find_by_id(brand_id, tenant_id) is None:
            raise ValidationError("Brand not found", field="brand_id", brand_id=brand_id)
        translations = translations or []
        locales = [validate_locale(t["locale"]) for t in translations]
        if len(locales) != len(set(locales)):
            raise ValidationError("Duplicate translation locale", field="translations")

        existing = self._db.scalar(
            select(Menu.id).where(Menu.brand_id == brand_id, Menu.code == code)
        )
        if existing is not None:
            raise ConflictError(f"Menu code '{code}' already exists for this brand", brand_id=brand_id)

        with self._atomic("create menu", tenant_id=tenant_id, brand_id=brand_id):
            menu = Menu(
                tenant_id=tenant_id,
                brand_id=brand_id,
                code=code,
                status=MenuStatus.DRAFT,
            )
            menu.translations = [
                MenuTranslation(
                    locale=t["locale"],
                    name=t["name"],
                    description=t.get("description"),
                )
                for t in translations
            ]
            if actor is not None:
                menu.set_created_by(actor.id, actor.email)
            self._db.add(menu)
            self._db.flush()

            log_change(
                self._db,
                tenant_id=tenant_id,
                actor=actor,
                entity_type="menu",
                entity_id=menu.id,
                action=AuditAction.CREATE,
                new_values=serialize_model(menu),
            )

        self._db.refresh(menu)
        logger.info("Menu created", menu_id=menu.id, tenant_id=tenant_id, code=code)
        return menu

    def transition(
        self,
        tenant_id: int,
        menu_id: int,
        to_status: str,
        *,
        actor: Optional["Principal"] = None,
    ) -> Menu:
        """
        Move a menu to another status.

        Raises:
            InvalidTransitionError: The move is not allowed from the current status.
        """
        menu = self.get_menu(tenant_id, menu_id)
        from_status = menu.status
        if to_status not in MENU_TRANSITIONS.get(from_status, []):
            raise InvalidTransitionError("menu", from_status, to_status, menu_id=menu_id)

        with self._atomic(f"{_TRANSITION_ACTIONS[to_status].lower()} menu", menu_id=menu_id):
            menu.status = to_status
            if to_status == MenuStatus.PUBLISHED and menu.published_at is None:
                menu.published_at = datetime.now(timezone.utc)
            if to_status == MenuStatus.ARCHIVED:
                self._db.execute(
                    update(MenuPublication)
                    .where(
                        MenuPublication.menu_id == menu.id,
                        MenuPublication.is_current.is_(True),
                    )
                    .values(is_current=False, deactivated_at=datetime.now(timezone.utc))
                    .execution_options(synchronize_session="fetch")
                )
            if actor is not None:
                menu.set_updated_by(actor.id, actor.email)
            self._db.flush()

            log_change(
                self._db,
                tenant_id=tenant_id,
                actor=actor,
                entity_type="menu",
                entity_id=menu.id,
                action=_TRANSITION_ACTIONS[to_status],
                old_values={"status": from_status},
                new_values={"status": to_status},
            )

        self._db.refresh(menu)
        logger.info("Menu status changed", menu_id=menu_id, from_status=from_status, to_status=to_status)
        return menu

    def publish(self, tenant_id: int, menu_id: int, *, actor: Optional["Principal"] = None) -> Menu:
        return self.transition(tenant_id, menu_id, MenuStatus.PUBLISHED, actor=actor)

    def unpublish(self, tenant_id: int, menu_id: int, *, actor: Optional["Principal"] = None) -> Menu:
        return self.transition(tenant_id, menu_id, MenuStatus.DRAFT, actor=actor)

    def archive(self, tenant_id: int, menu_id: int, *, actor: Optional["Principal"] = None) -> Menu:
        return self.transition(tenant_id, menu_id, MenuStatus.ARCHIVED, actor=actor)
