"""
Repository Pattern implementation.
Centralizes tenant-scoped data access.

Usage:
    from menu_api.repositories import TenantRepository, MenuLineRepository

    repo = TenantRepository(Menu, db)
    menu = repo.find_by_id(12, tenant_id=1)
    lines = MenuLineRepository(db).find_by_menu(tenant_id=1, menu_id=12)
"""

from .base import TenantRepository
from .menu_line import MenuLineRepository

__all__ = [
    "TenantRepository",
    "MenuLineRepository",
]
