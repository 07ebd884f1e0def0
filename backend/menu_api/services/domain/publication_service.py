"""
Publication Service - which menus are live at which locations.

States per (location, menu): no record, current, not current. Activation
creates the record or flips it back to current; it never touches other
menus' publications, so several menus (lunch, bar) can be current at one
location at once. Deactivation is always explicit.

Usage:
    from menu_api.services.domain import PublicationService

    service = PublicationService(db)
    publication = service.activate(tenant_id, location_id, menu_id, actor=principal)
    result = service.activate_many(tenant_id, location_id, [1, 2, 3], actor=principal)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from menu_api.models import Location, Menu, MenuPublication
from menu_api.repositories import TenantRepository
from menu_api.services.audit import log_change
from menu_api.services.base_service import DomainService
from menu_api.services.domain.menu_line_service import LineNode, MenuLineService
from shared.config.constants import AuditAction, Limits, MenuStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import transaction
from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    TransactionError,
    ValidationError,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from menu_api.services.permissions.policy import Principal

logger = get_logger(__name__)


@dataclass(frozen=True)
class ActivationOutcome:
    menu_id: int
    ok: bool
    publication_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class BatchActivationResult:
    location_id: int
    outcomes: list[ActivationOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[int]:
        return [o.menu_id for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[int]:
        return [o.menu_id for o in self.outcomes if not o.ok]


@dataclass
class PublishedMenu:
    """A live menu with the lines guests see."""

    menu: Menu
    lines: list[LineNode] = field(default_factory=list)


class PublicationService(DomainService):
    """
    Business rules:
    - Location and menu must belong to the caller's tenant and the same brand
    - Only published menus can be activated
    - One record per (location, menu); activation is idempotent
    - Only published menus appear among a location's current menus
    """

    def __init__(self, db: "Session"):
        super().__init__(db)
        self._publications = TenantRepository(MenuPublication, db)
        self._locations = TenantRepository(Location, db)
        self._menus = TenantRepository(Menu, db)

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_publications(
        self,
        tenant_id: int,
        location_id: int | None = None,
    ) -> list[MenuPublication]:
        query = select(MenuPublication).where(MenuPublication.tenant_id == tenant_id)
        if location_id is not None:
            query = query.where(MenuPublication.location_id == location_id)
        query = query.order_by(MenuPublication.location_id, MenuPublication.id)
        return list(self._db.scalars(query).all())

    def current_menus(self, tenant_id: int, location_id: int) -> list[Menu]:
        """
        Menus live at a location: a current publication of a menu that is
        still published. Unpublishing or archiving takes a menu off the air
        without touching its publication row.
        """
        query = (
            select(Menu)
            .join(MenuPublication, MenuPublication.menu_id == Menu.id)
            .where(
                MenuPublication.tenant_id == tenant_id,
                MenuPublication.location_id == location_id,
                MenuPublication.is_current.is_(True),
                Menu.status == MenuStatus.PUBLISHED,
                Menu.is_active.is_(True),
            )
            .order_by(Menu.code)
        )
        return list(self._db.scalars(query).all())

    def published_menu(self, tenant_id: int, location_id: int) -> list[PublishedMenu]:
        """
        What a location serves right now: each live menu with only its
        enabled lines.

        Raises:
            NotFoundError: Location missing or in another tenant.
        """
        if self._locations.find_by_id(location_id, tenant_id) is None:
            raise NotFoundError("Location", location_id, tenant_id=tenant_id)

        lines = MenuLineService(self._db)
        return [
            PublishedMenu(menu=menu, lines=lines.published_tree(tenant_id, menu.id))
            for menu in self.current_menus(tenant_id, location_id)
        ]

    def get_publication(self, tenant_id: int, publication_id: int) -> MenuPublication:
        publication = self._publications.find_by_id(publication_id, tenant_id)
        if publication is None:
            raise NotFoundError("Publication", publication_id, tenant_id=tenant_id)
        return publication

    # =========================================================================
    # Command Methods
    # =========================================================================

    def activate(
        self,
        tenant_id: int,
        location_id: int,
        menu_id: int,
        *,
        actor: Optional["Principal"] = None,
    ) -> MenuPublication:
        """
        Make a menu current at a location.

        Upserts on (location_id, menu_id). When a concurrent call inserts the
        same pair first, the unique constraint rejects this insert; the
        transaction is rolled back and the winner's row is flipped instead.

        Raises:
            NotFoundError: Location or menu missing or in another tenant.
            ValidationError: Menu not published, or from another brand.
            TransactionError: Persistence failure; nothing was changed.
        """
        self._validate_activation(tenant_id, location_id, menu_id)

        try:
            with transaction(self._db):
                publication = self._find(location_id, menu_id)
                created = publication is None
                if created:
                    publication = MenuPublication(
                        tenant_id=tenant_id,
                        location_id=location_id,
                        menu_id=menu_id,
                    )
                    if actor is not None:
                        publication.set_created_by(actor.id, actor.email)
                    self._db.add(publication)
                self._mark_current(publication, actor)
                self._db.flush()
                self._log(tenant_id, actor, publication, AuditAction.ACTIVATE, created=created)
        except IntegrityError:
            logger.info(
                "Publication insert lost a race, flipping existing row",
                location_id=location_id,
                menu_id=menu_id,
            )
            publication = self._flip_existing(tenant_id, location_id, menu_id, actor)
        except SQLAlchemyError as e:
            logger.error("Publication activation failed", exc_info=True, menu_id=menu_id)
            raise TransactionError("activate publication", menu_id=menu_id, location_id=location_id) from e

        self._db.refresh(publication)
        logger.info(
            "Publication activated",
            publication_id=publication.id,
            location_id=location_id,
            menu_id=menu_id,
        )
        return publication

    def activate_many(
        self,
        tenant_id: int,
        location_id: int,
        menu_ids: list[int],
        *,
        actor: Optional["Principal"] = None,
    ) -> BatchActivationResult:
        """
        Activate several menus at one location, in order.

        Each activation is its own transaction; a failure is recorded in the
        result and the batch continues.
        """
        if len(menu_ids) > Limits.MAX_BATCH_ACTIVATIONS:
            raise ValidationError(
                f"Cannot activate more than {Limits.MAX_BATCH_ACTIVATIONS} menus at once",
                field="menu_ids",
            )

        result = BatchActivationResult(location_id=location_id)
        for menu_id in menu_ids:
            try:
                publication = self.activate(tenant_id, location_id, menu_id, actor=actor)
            except AppException as e:
                result.outcomes.append(ActivationOutcome(menu_id=menu_id, ok=False, error=e.detail))
            else:
                result.outcomes.append(
                    ActivationOutcome(menu_id=menu_id, ok=True, publication_id=publication.id)
                )

        logger.info(
            "Batch activation finished",
            location_id=location_id,
            succeeded=len(result.succeeded),
            failed=len(result.failed),
        )
        return result

    def deactivate(
        self,
        tenant_id: int,
        publication_id: int,
        *,
        actor: Optional["Principal"] = None,
    ) -> MenuPublication:
        """Mark a publication not current. Idempotent."""
        publication = self.get_publication(tenant_id, publication_id)

        with self._atomic("deactivate publication", publication_id=publication_id):
            if publication.is_current:
                publication.is_current = False
                publication.deactivated_at = datetime.now(timezone.utc)
                if actor is not None:
                    publication.set_updated_by(actor.id, actor.email)
                self._db.flush()
                self._log(tenant_id, actor, publication, AuditAction.DEACTIVATE)

        self._db.refresh(publication)
        return publication

    def delete(
        self,
        tenant_id: int,
        publication_id: int,
        *,
        actor: Optional["Principal"] = None,
    ) -> None:
        publication = self.get_publication(tenant_id, publication_id)

        with self._atomic("delete publication", publication_id=publication_id):
            self._log(tenant_id, actor, publication, AuditAction.DELETE)
            self._db.delete(publication)

        logger.info("Publication deleted", publication_id=publication_id, tenant_id=tenant_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validate_activation(self, tenant_id: int, location_id: int, menu_id: int) -> None:
        location = self._locations.find_by_id(location_id, tenant_id)
        if location is None:
            raise NotFoundError("Location", location_id, tenant_id=tenant_id)
        menu = self._menus.find_by_id(menu_id, tenant_id)
        if menu is None:
            raise NotFoundError("Menu", menu_id, tenant_id=tenant_id)
        if menu.status != MenuStatus.PUBLISHED:
            raise ValidationError(
                "Menu must be published before it can be activated",
                menu_id=menu_id,
                status=menu.status,
            )
        if menu.brand_id != location.brand_id:
            raise ValidationError(
                "Menu and location belong to different brands",
                menu_id=menu_id,
                location_id=location_id,
            )

    def _find(self, location_id: int, menu_id: int) -> MenuPublication | None:
        return self._db.scalar(
            select(MenuPublication).where(
                MenuPublication.location_id == location_id,
                MenuPublication.menu_id == menu_id,
            )
        )

    def _flip_existing(
        self,
        tenant_id: int,
        location_id: int,
        menu_id: int,
        actor: Optional["Principal"],
    ) -> MenuPublication:
        with self._atomic("activate publication", location_id=location_id, menu_id=menu_id):
            publication = self._find(location_id, menu_id)
            if publication is None:
                raise TransactionError("activate publication", location_id=location_id, menu_id=menu_id)
            self._mark_current(publication, actor)
            self._db.flush()
            self._log(tenant_id, actor, publication, AuditAction.ACTIVATE, created=False)
        return publication

    def _mark_current(self, publication: MenuPublication, actor: Optional["Principal"]) -> None:
        publication.is_current = True
        publication.activated_at = datetime.now(timezone.utc)
        publication.deactivated_at = None
        if actor is not None:
            publication.set_updated_by(actor.id, actor.email)

    def _log(
        self,
        tenant_id: int,
        actor: Optional["Principal"],
        publication: MenuPublication,
        action: str,
        **extra,
    ) -> None:
        log_change(
            self._db,
            tenant_id=tenant_id,
            actor=actor,
            entity_type="menu_publication",
            entity_id=publication.id,
            action=action,
            new_values={
                "location_id": publication.location_id,
                "menu_id": publication.menu_id,
                "is_current": publication.is_current,
                **extra,
            },
        )
