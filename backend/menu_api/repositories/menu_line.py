"""
Menu Line Repository - ordered access to a menu's line tree.
"""

from typing import Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from menu_api.models import MenuLine
from .base import TenantRepository


class MenuLineRepository(TenantRepository[MenuLine]):
    """
    Sibling order is ``display_order`` then ``id``; ids are assigned in
    insertion order so the tie-break is creation order.
    """

    def __init__(self, db: Session):
        super().__init__(MenuLine, db)

    def _ordered(self, query: Select) -> Select:
        return query.order_by(MenuLine.display_order, MenuLine.id)

    def find_by_menu(self, tenant_id: int, menu_id: int) -> Sequence[MenuLine]:
        """All lines of a menu in sibling order."""
        query = self._base_query(tenant_id).where(MenuLine.menu_id == menu_id)
        return self._db.scalars(self._ordered(query)).all()

    def find_siblings(
        self,
        menu_id: int,
        parent_line_id: int | None,
        exclude_id: int | None = None,
    ) -> Sequence[MenuLine]:
        """Lines sharing a parent within one menu, in sibling order."""
        query = select(MenuLine).where(MenuLine.menu_id == menu_id)
        if parent_line_id is None:
            query = query.where(MenuLine.parent_line_id.is_(None))
        else:
            query = query.where(MenuLine.parent_line_id == parent_line_id)
        if exclude_id is not None:
            query = query.where(MenuLine.id != exclude_id)
        return self._db.scalars(self._ordered(query)).all()

    def find_children(self, line_id: int) -> Sequence[MenuLine]:
        query = select(MenuLine).where(MenuLine.parent_line_id == line_id)
        return self._db.scalars(self._ordered(query)).all()

    def next_display_order(self, menu_id: int, parent_line_id: int | None) -> int:
        """One past the highest order among siblings, 0 for the first child."""
        query = select(func.max(MenuLine.display_order)).where(MenuLine.menu_id == menu_id)
        if parent_line_id is None:
            query = query.where(MenuLine.parent_line_id.is_(None))
        else:
            query = query.where(MenuLine.parent_line_id == parent_line_id)
        max_order = self._db.scalar(query)
        return 0 if max_order is None else max_order + 1

    def find_item_lines(self, tenant_id: int, item_id: int) -> Sequence[MenuLine]:
        """Every item line referencing an item, across all menus of the tenant."""
        query = self._base_query(tenant_id).where(MenuLine.item_id == item_id)
        return self._db.scalars(self._ordered(query)).all()
