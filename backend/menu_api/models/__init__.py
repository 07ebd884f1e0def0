"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class, TimestampMixin and AuditMixin
- tenant: Tenant, Brand, Location
- user: User
- rbac: SystemPermission, SystemRole, SystemRolePermission (catalog mirror)
- catalog: Section, Item and their translations, prices and tags
- menu: Menu, MenuTranslation, MenuLine, MenuPublication
- audit: AuditLog
"""

# Base classes
from .base import Base, AuditMixin, TimestampMixin

# Core tenant models
from .tenant import Tenant, Brand, Location

# Staff
from .user import User

# Permission catalog mirror
from .rbac import SystemPermission, SystemRole, SystemRolePermission

# Reusable catalog entities
from .catalog import (
    Section,
    SectionTranslation,
    Item,
    ItemTranslation,
    ItemPrice,
    ItemAllergen,
    ItemDietaryFlag,
)

# Menus
from .menu import Menu, MenuTranslation, MenuLine, MenuPublication

# Audit
from .audit import AuditLog

__all__ = [
    "Base",
    "AuditMixin",
    "TimestampMixin",
    "Tenant",
    "Brand",
    "Location",
    "User",
    "SystemPermission",
    "SystemRole",
    "SystemRolePermission",
    "Section",
    "SectionTranslation",
    "Item",
    "ItemTranslation",
    "ItemPrice",
    "ItemAllergen",
    "ItemDietaryFlag",
    "Menu",
    "MenuTranslation",
    "MenuLine",
    "MenuPublication",
    "AuditLog",
]
