"""
Menu Line Service - the ordered section/item tree of a menu.

Section lines sit at the top or under another section line; item lines
always hang under a section line of the same menu. Sibling order is
``display_order`` with ties broken by creation order.

Usage:
    from menu_api.services.domain import MenuLineService

    service = MenuLineService(db)
    tree = service.list_tree(tenant_id, menu_id)
    line = service.add_line(tenant_id, menu_id, line_type="item", item_id=7, parent_line_id=3)
    service.delete_line(tenant_id, menu_id, line.id, actor=principal)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Sequence

from menu_api.models import Item, Menu, MenuLine, Section
from menu_api.repositories import MenuLineRepository, TenantRepository
from menu_api.services.audit import log_change, serialize_model
from menu_api.services.base_service import DomainService
from menu_api.services.domain.item_service import ItemService
from shared.config.constants import AuditAction, Limits, LineType, MenuStatus
from shared.config.logging import get_logger
from shared.utils.exceptions import NotFoundError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from menu_api.services.permissions.policy import Principal

logger = get_logger(__name__)

UPDATABLE_FIELDS = frozenset({"parent_line_id", "display_order", "is_enabled"})


@dataclass
class LineNode:
    """A line with its ordered children."""

    line: MenuLine
    children: list["LineNode"] = field(default_factory=list)


@dataclass(frozen=True)
class DeletedLine:
    line_id: int
    reparented_ids: list[int]
    new_parent_id: Optional[int]


class MenuLineService(DomainService):
    """
    Business rules:
    - Any line may hang under a section line of the same menu; item lines
      must. A line is never its own ancestor
    - Structural validation happens before any write
    - Deleting a line promotes its children to its own parent, then compacts
      that sibling level to 0..n-1 preserving relative order
    - Archived menus are read-only
    """

    def __init__(self, db: "Session"):
        super().__init__(db)
        self._lines = MenuLineRepository(db)
        self._menus = TenantRepository(Menu, db)
        self._sections = TenantRepository(Section, db)
        self._items = TenantRepository(Item, db)

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_tree(self, tenant_id: int, menu_id: int) -> list[LineNode]:
        """Top-level lines, each with its nested children, all in sibling order."""
        self._get_menu(tenant_id, menu_id)
        lines = self._lines.find_by_menu(tenant_id, menu_id)
        return self._build_tree(lines, menu_id)

    def published_tree(self, tenant_id: int, menu_id: int) -> list[LineNode]:
        """
        The tree as guests see it.

        Disabled lines and lines of hidden items are left out, and so is
        everything under a disabled section line.
        """
        self._get_menu(tenant_id, menu_id)
        lines = [
            line
            for line in self._lines.find_by_menu(tenant_id, menu_id)
            if line.is_enabled and (line.item is None or line.item.is_visible)
        ]
        return self._build_tree(lines, menu_id, warn_orphans=False)

    def get_line(self, tenant_id: int, menu_id: int, line_id: int) -> MenuLine:
        line = self._lines.find_by_id(line_id, tenant_id)
        if line is None or line.menu_id != menu_id:
            raise NotFoundError("Line", line_id, menu_id=menu_id)
        return line

    # =========================================================================
    # Command Methods
    # =========================================================================

    def add_line(
        self,
        tenant_id: int,
        menu_id: int,
        *,
        line_type: str,
        section_id: int | None = None,
        item_id: int | None = None,
        parent_line_id: int | None = None,
        display_order: int | None = None,
        is_enabled: bool | None = None,
        actor: Optional["Principal"] = None,
    ) -> MenuLine:
        """
        Place a section or an item into a menu.

        Display order defaults to after the last sibling. Item lines default
        to enabled only when the item is visible.

        Raises:
            ValidationError: Invalid type, reference, parent, or order.
            NotFoundError: Menu missing or in another tenant.
        """
        menu = self._get_editable_menu(tenant_id, menu_id)

        if line_type not in LineType.ALL:
            raise ValidationError(f"Invalid line type '{line_type}'", field="line_type")
        if display_order is not None:
            self._validate_display_order(display_order)

        if line_type == LineType.SECTION:
            if item_id is not None or section_id is None:
                raise ValidationError("Section lines require section_id and no item_id", field="section_id")
            if self._sections.find_by_id(section_id, tenant_id) is None:
                raise ValidationError("Section not found", field="section_id", section_id=section_id)
            self._validate_parent(menu.id, LineType.SECTION, parent_line_id)
            default_enabled = True
        else:
            if section_id is not None or item_id is None:
                raise ValidationError("Item lines require item_id and no section_id", field="item_id")
            item = self._items.find_by_id(item_id, tenant_id)
            if item is None:
                raise ValidationError("Item not found", field="item_id", item_id=item_id)
            self._validate_parent(menu.id, LineType.ITEM, parent_line_id)
            default_enabled = item.is_visible

        with self._atomic("add menu line", menu_id=menu_id, tenant_id=tenant_id):
            line = MenuLine(
                tenant_id=tenant_id,
                menu_id=menu.id,
                line_type=line_type,
                section_id=section_id,
                item_id=item_id,
                parent_line_id=parent_line_id,
                display_order=(
                    display_order
                    if display_order is not None
                    else self._lines.next_display_order(menu.id, parent_line_id)
                ),
                is_enabled=default_enabled if is_enabled is None else is_enabled,
            )
            if actor is not None:
                line.set_created_by(actor.id, actor.email)
            self._db.add(line)
            self._db.flush()

            log_change(
                self._db,
                tenant_id=tenant_id,
                actor=actor,
                entity_type="menu_line",
                entity_id=line.id,
                action=AuditAction.CREATE,
                new_values=serialize_model(line),
            )

        self._db.refresh(line)
        logger.info("Menu line added", line_id=line.id, menu_id=menu_id, line_type=line_type)
        return line

    def update_line(
        self,
        tenant_id: int,
        menu_id: int,
        line_id: int,
        changes: dict[str, Any],
        *,
        actor: Optional["Principal"] = None,
    ) -> MenuLine:
        """
        Apply a partial update. Only keys present in ``changes`` are touched,
        so ``{"parent_line_id": None}`` explicitly moves a line to the top.

        A parent change re-runs creation's parent validation and, without an
        explicit order, appends the line after its new siblings; the old
        sibling level is compacted.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        self._get_editable_menu(tenant_id, menu_id)
        line = self.get_line(tenant_id, menu_id, line_id)

        parent_changed = (
            "parent_line_id" in changes and changes["parent_line_id"] != line.parent_line_id
        )
        if parent_changed:
            new_parent = changes["parent_line_id"]
            if new_parent == line.id:
                raise ValidationError("A line cannot be its own parent", line_id=line.id)
            self._validate_parent(menu_id, line.line_type, new_parent)
            parent_of = {
                other.id: other.parent_line_id
                for other in self._lines.find_by_menu(tenant_id, menu_id)
            }
            self._check_no_cycle(line.id, new_parent, parent_of)
        if changes.get("display_order") is not None:
            self._validate_display_order(changes["display_order"])
        if "is_enabled" in changes and not isinstance(changes["is_enabled"], bool):
            raise ValidationError("is_enabled must be a boolean", field="is_enabled")

        old_values = serialize_model(line)
        with self._atomic("update menu line", line_id=line_id, menu_id=menu_id):
            if parent_changed:
                old_parent = line.parent_line_id
                line.parent_line_id = changes["parent_line_id"]
                if changes.get("display_order") is None:
                    line.display_order = self._lines.next_display_order(menu_id, line.parent_line_id)
                self._db.flush()
                self._compact(menu_id, old_parent)

            if changes.get("display_order") is not None:
                line.display_order = changes["display_order"]
            if "is_enabled" in changes:
                line.is_enabled = changes["is_enabled"]
            if actor is not None:
                line.set_updated_by(actor.id, actor.email)
            self._db.flush()

            log_change(
                self._db,
                tenant_id=tenant_id,
                actor=actor,
                entity_type="menu_line",
                entity_id=line.id,
                action=AuditAction.UPDATE,
                old_values=old_values,
                new_values=serialize_model(line),
            )

        self._db.refresh(line)
        return line

    def delete_line(
        self,
        tenant_id: int,
        menu_id: int,
        line_id: int,
        *,
        actor: Optional["Principal"] = None,
    ) -> DeletedLine:
        """
        Delete a line without losing its children.

        Children move to the deleted line's parent and take its slot in the
        sibling order; the whole level is then renumbered 0..n-1. Runs as one
        transaction.
        """
        self._get_editable_menu(tenant_id, menu_id)
        line = self.get_line(tenant_id, menu_id, line_id)
        new_parent_id = line.parent_line_id

        with self._atomic("delete menu line", line_id=line_id, menu_id=menu_id):
            siblings = list(self._lines.find_siblings(menu_id, new_parent_id, exclude_id=line.id))
            children = list(self._lines.find_children(line.id))

            # Children take the deleted line's position
            position = sum(
                1 for s in siblings if (s.display_order, s.id) < (line.display_order, line.id)
            )
            ordered = siblings[:position] + children + siblings[position:]

            for child in children:
                child.parent_line_id = new_parent_id
            # Re-parent before the delete so no row references the removed line
            self._db.flush()

            old_values = serialize_model(line)
            self._db.delete(line)
            self._db.flush()

            self._renumber(ordered)

            log_change(
                self._db,
                tenant_id=tenant_id,
                actor=actor,
                entity_type="menu_line",
                entity_id=line_id,
                action=AuditAction.DELETE,
                old_values=old_values,
                new_values={"reparented_ids": [c.id for c in children], "new_parent_id": new_parent_id},
            )

        logger.info(
            "Menu line deleted",
            line_id=line_id,
            menu_id=menu_id,
            reparented=len(children),
        )
        return DeletedLine(
            line_id=line_id,
            reparented_ids=[c.id for c in children],
            new_parent_id=new_parent_id,
        )

    def toggle_line(
        self,
        tenant_id: int,
        menu_id: int,
        line_id: int,
        *,
        actor: Optional["Principal"] = None,
    ) -> MenuLine:
        """
        Flip a line on or off.

        A section line toggles itself and every line beneath it in this menu;
        item lines are only switched on when their item is visible. An item
        line flips the item's global visibility, which cascades to every
        line of that item.
        """
        self._get_editable_menu(tenant_id, menu_id)
        line = self.get_line(tenant_id, menu_id, line_id)

        if line.line_type == LineType.ITEM:
            item = self._items.find_by_id(line.item_id, tenant_id)
            if item is None:
                raise NotFoundError("Item", line.item_id, line_id=line_id)
            ItemService(self._db).set_item_visibility(
                tenant_id, item.id, not item.is_visible, actor=actor
            )
            self._db.refresh(line)
            return line

        enabled = not line.is_enabled
        with self._atomic("toggle section line", line_id=line_id, menu_id=menu_id):
            line.is_enabled = enabled
            if actor is not None:
                line.set_updated_by(actor.id, actor.email)

            children = self._descendants(line.id)
            for child in children:
                if not enabled:
                    child.is_enabled = False
                elif child.item_id is not None:
                    child.is_enabled = child.item.is_visible
                else:
                    child.is_enabled = True
            self._db.flush()

            log_change(
                self._db,
                tenant_id=tenant_id,
                actor=actor,
                entity_type="menu_line",
                entity_id=line.id,
                action=AuditAction.UPDATE,
                old_values={"is_enabled": not enabled},
                new_values={"is_enabled": enabled, "children": len(children)},
            )

        self._db.refresh(line)
        return line

    def reorder_lines(
        self,
        tenant_id: int,
        menu_id: int,
        entries: list[dict[str, Any]],
        *,
        actor: Optional["Principal"] = None,
    ) -> list[MenuLine]:
        """
        Bulk update of order and, optionally, parent.

        Each entry has ``id`` and ``display_order`` and may carry
        ``parent_line_id``. Every referenced line must belong to this menu;
        parent rules are checked against the resulting tree. One transaction.
        """
        if len(entries) > Limits.MAX_REORDER_LINES:
            raise ValidationError(
                f"Cannot reorder more than {Limits.MAX_REORDER_LINES} lines at once"
            )
        ids = [entry["id"] for entry in entries]
        if len(ids) != len(set(ids)):
            raise ValidationError("Duplicate line ids in reorder request")

        self._get_editable_menu(tenant_id, menu_id)
        menu_lines = {line.id: line for line in self._lines.find_by_menu(tenant_id, menu_id)}

        for entry in entries:
            line = menu_lines.get(entry["id"])
            if line is None:
                raise ValidationError(f"Line {entry['id']} does not belong to this menu")
            self._validate_display_order(entry["display_order"])
            if "parent_line_id" in entry and entry["parent_line_id"] != line.parent_line_id:
                new_parent = entry["parent_line_id"]
                if new_parent == line.id:
                    raise ValidationError("A line cannot be its own parent", line_id=line.id)
                self._validate_parent_in(menu_lines, line.line_type, new_parent)

        # Cycles are checked against the tree as it will be after the batch
        parent_of = {line_id: line.parent_line_id for line_id, line in menu_lines.items()}
        for entry in entries:
            if "parent_line_id" in entry:
                parent_of[entry["id"]] = entry["parent_line_id"]
        for entry in entries:
            if "parent_line_id" in entry:
                self._check_no_cycle(entry["id"], entry["parent_line_id"], parent_of)

        with self._atomic("reorder menu lines", menu_id=menu_id, count=len(entries)):
            for entry in entries:
                line = menu_lines[entry["id"]]
                if "parent_line_id" in entry:
                    line.parent_line_id = entry["parent_line_id"]
                line.display_order = entry["display_order"]
                if actor is not None:
                    line.set_updated_by(actor.id, actor.email)
            self._db.flush()

            log_change(
                self._db,
                tenant_id=tenant_id,
                actor=actor,
                entity_type="menu",
                entity_id=menu_id,
                action=AuditAction.REORDER,
                new_values={"lines": entries},
            )

        return [menu_lines[i] for i in ids]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_menu(self, tenant_id: int, menu_id: int) -> Menu:
        menu = self._menus.find_by_id(menu_id, tenant_id)
        if menu is None:
            raise NotFoundError("Menu", menu_id, tenant_id=tenant_id)
        return menu

    def _get_editable_menu(self, tenant_id: int, menu_id: int) -> Menu:
        menu = self._get_menu(tenant_id, menu_id)
        if menu.status == MenuStatus.ARCHIVED:
            raise ValidationError("Archived menus cannot be edited", menu_id=menu_id)
        return menu

    def _validate_display_order(self, display_order: Any) -> None:
        if isinstance(display_order, bool) or not isinstance(display_order, int) or display_order < 0:
            raise ValidationError("display_order must be a non-negative integer", field="display_order")

    def _validate_parent(self, menu_id: int, line_type: str, parent_line_id: int | None) -> None:
        if parent_line_id is None:
            parent = None
        else:
            parent = self._lines.get(parent_line_id)
            if parent is not None and parent.menu_id != menu_id:
                parent = None
            if parent is None:
                raise ValidationError(
                    "Parent line not found in this menu",
                    field="parent_line_id",
                    parent_line_id=parent_line_id,
                )
        self._check_parent_rules(line_type, parent)

    def _validate_parent_in(
        self,
        menu_lines: dict[int, MenuLine],
        line_type: str,
        parent_line_id: int | None,
    ) -> None:
        parent = None
        if parent_line_id is not None:
            parent = menu_lines.get(parent_line_id)
            if parent is None:
                raise ValidationError(
                    "Parent line not found in this menu",
                    field="parent_line_id",
                    parent_line_id=parent_line_id,
                )
        self._check_parent_rules(line_type, parent)

    def _check_parent_rules(self, line_type: str, parent: MenuLine | None) -> None:
        if parent is None:
            if line_type == LineType.ITEM:
                raise ValidationError("Item lines require a parent section line", field="parent_line_id")
            return
        if parent.line_type != LineType.SECTION:
            raise ValidationError("Parent line must be a section line", field="parent_line_id")

    def _check_no_cycle(
        self,
        line_id: int,
        parent_line_id: int | None,
        parent_of: dict[int, int | None],
    ) -> None:
        """Walk up from the new parent; reaching the line itself means a cycle."""
        seen: set[int] = set()
        current = parent_line_id
        while current is not None and current not in seen:
            if current == line_id:
                raise ValidationError(
                    "A line cannot be moved under its own descendant",
                    field="parent_line_id",
                    line_id=line_id,
                    parent_line_id=parent_line_id,
                )
            seen.add(current)
            current = parent_of.get(current)

    def _build_tree(
        self,
        lines: Sequence[MenuLine],
        menu_id: int,
        warn_orphans: bool = True,
    ) -> list[LineNode]:
        # lines arrive in sibling order, so appending keeps each level ordered
        nodes = {line.id: LineNode(line=line) for line in lines}
        roots: list[LineNode] = []
        for line in lines:
            node = nodes[line.id]
            if line.parent_line_id is None:
                roots.append(node)
            elif line.parent_line_id in nodes:
                nodes[line.parent_line_id].children.append(node)
            elif warn_orphans:
                logger.warning("Orphaned menu line", line_id=line.id, menu_id=menu_id)
        return roots

    def _descendants(self, line_id: int) -> list[MenuLine]:
        found: list[MenuLine] = []
        pending = [line_id]
        while pending:
            for child in self._lines.find_children(pending.pop(0)):
                found.append(child)
                pending.append(child.id)
        return found

    def _compact(self, menu_id: int, parent_line_id: int | None) -> None:
        """Renumber one sibling level to 0..n-1 preserving order."""
        self._renumber(self._lines.find_siblings(menu_id, parent_line_id))

    def _renumber(self, lines) -> None:
        for index, line in enumerate(lines):
            if line.display_order != index:
                line.display_order = index
        self._db.flush()
