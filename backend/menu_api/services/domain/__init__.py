"""
Domain Services - application layer.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from menu_api.services.domain import MenuLineService

    # In router
    service = MenuLineService(db)
    tree = service.list_tree(tenant_id, menu_id)
"""

from .item_service import ItemService, VisibilityChange
from .menu_line_service import MenuLineService, LineNode, DeletedLine
from .menu_service import MenuService
from .publication_service import (
    PublicationService,
    ActivationOutcome,
    BatchActivationResult,
    PublishedMenu,
)
from .staff_service import StaffService

__all__ = [
    "ItemService",
    "VisibilityChange",
    "MenuLineService",
    "LineNode",
    "DeletedLine",
    "MenuService",
    "PublicationService",
    "ActivationOutcome",
    "BatchActivationResult",
    "PublishedMenu",
    "StaffService",
]
