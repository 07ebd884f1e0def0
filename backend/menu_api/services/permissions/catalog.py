"""
Permission Catalog - the closed set of permission keys and role grants.

Keys have the form ``<resource>.<action>``. The entity table below is the
single place a resource registers its actions; ``PermissionKey`` enumerates
the same keys for type-safe use in code, and ``validate_catalog()`` fails
fast at import if the two drift apart or a role references an unregistered
key.

Usage:
    from menu_api.services.permissions.catalog import PermissionKey, get_permissions_for_role

    if PermissionKey.MENU_UPDATE in get_permissions_for_role("menu_editor"):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from shared.config.constants import Roles
from shared.config.settings import settings
from shared.utils.exceptions import CatalogError, ValidationError


class PermissionKey(str, Enum):
    """Every permission key known to the system."""

    DASHBOARD_READ = "dashboard.read"

    MENU_READ = "menu.read"
    MENU_CREATE = "menu.create"
    MENU_UPDATE = "menu.update"
    MENU_DELETE = "menu.delete"
    MENU_PUBLISH = "menu.publish"

    SECTION_READ = "section.read"
    SECTION_CREATE = "section.create"
    SECTION_UPDATE = "section.update"
    SECTION_DELETE = "section.delete"

    ITEM_READ = "item.read"
    ITEM_CREATE = "item.create"
    ITEM_UPDATE = "item.update"
    ITEM_DELETE = "item.delete"

    INGREDIENT_READ = "ingredient.read"
    INGREDIENT_CREATE = "ingredient.create"
    INGREDIENT_UPDATE = "ingredient.update"
    INGREDIENT_DELETE = "ingredient.delete"

    OPTION_READ = "option.read"
    OPTION_CREATE = "option.create"
    OPTION_UPDATE = "option.update"
    OPTION_DELETE = "option.delete"

    BRAND_READ = "brand.read"
    BRAND_CREATE = "brand.create"
    BRAND_UPDATE = "brand.update"
    BRAND_DELETE = "brand.delete"

    LOCATION_READ = "location.read"
    LOCATION_CREATE = "location.create"
    LOCATION_UPDATE = "location.update"
    LOCATION_DELETE = "location.delete"

    PUBLICATION_READ = "publication.read"
    PUBLICATION_CREATE = "publication.create"
    PUBLICATION_UPDATE = "publication.update"
    PUBLICATION_DELETE = "publication.delete"

    STAFF_READ = "staff.read"
    STAFF_CREATE = "staff.create"
    STAFF_UPDATE = "staff.update"
    STAFF_DELETE = "staff.delete"

    ORDER_READ = "order.read"
    ORDER_CREATE = "order.create"
    ORDER_UPDATE = "order.update"
    ORDER_DELETE = "order.delete"

    ANALYTICS_READ = "analytics.read"
    ANALYTICS_EXPORT = "analytics.export"

    SETTINGS_READ = "settings.read"
    SETTINGS_UPDATE = "settings.update"

    ALLERGEN_READ = "allergen.read"
    DIETARY_READ = "dietary.read"

    FLOOR_LAYOUT_READ = "floor_layout.read"
    FLOOR_LAYOUT_CREATE = "floor_layout.create"
    FLOOR_LAYOUT_UPDATE = "floor_layout.update"
    FLOOR_LAYOUT_DELETE = "floor_layout.delete"
    FLOOR_LAYOUT_PUBLISH = "floor_layout.publish"

    FLOOR_TABLE_READ = "floor_table.read"
    FLOOR_TABLE_CREATE = "floor_table.create"
    FLOOR_TABLE_UPDATE = "floor_table.update"
    FLOOR_TABLE_DELETE = "floor_table.delete"
    FLOOR_TABLE_MERGE = "floor_table.merge"

    PAYMENT_READ = "payment.read"
    PAYMENT_CREATE = "payment.create"

    FEEDBACK_READ = "feedback.read"

    SESSION_READ = "session.read"
    SESSION_CLOSE = "session.close"

    CHATBOT_READ = "chatbot.read"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Entity table
# =============================================================================


@dataclass(frozen=True)
class Operation:
    action: str
    label: str
    description: str


@dataclass(frozen=True)
class EntityPermissions:
    """A resource and the actions it registers."""

    entity: str
    label: str
    category: str
    operations: tuple[Operation, ...]

    def keys(self) -> list[str]:
        return [f"{self.entity}.{op.action}" for op in self.operations]


def _crud(plural: str) -> tuple[Operation, ...]:
    return (
        Operation("read", f"View {plural}", f"Can view {plural.lower()}"),
        Operation("create", f"Create {plural}", f"Can create new {plural.lower()}"),
        Operation("update", f"Edit {plural}", f"Can modify existing {plural.lower()}"),
        Operation("delete", f"Delete {plural}", f"Can remove {plural.lower()}"),
    )


ENTITY_PERMISSIONS: tuple[EntityPermissions, ...] = (
    EntityPermissions("dashboard", "Dashboard", "Dashboard", (
        Operation("read", "View Dashboard", "Can access the admin dashboard"),
    )),
    # Menu & content management
    EntityPermissions("menu", "Menus", "Menu Management", _crud("Menus") + (
        Operation("publish", "Publish Menus", "Can publish menu changes"),
    )),
    EntityPermissions("section", "Sections", "Menu Management", _crud("Sections")),
    EntityPermissions("item", "Items", "Menu Management", _crud("Items")),
    EntityPermissions("ingredient", "Ingredients", "Menu Management", _crud("Ingredients")),
    EntityPermissions("option", "Option Groups", "Menu Management", _crud("Option Groups")),
    EntityPermissions("publication", "Publications", "Menu Management", (
        Operation("read", "View Publications", "Can view menu publications"),
        Operation("create", "Create Publications", "Can publish menus to locations"),
        Operation("update", "Manage Publications", "Can activate or deactivate publications"),
        Operation("delete", "Remove Publications", "Can delete publication records"),
    )),
    # Organization
    EntityPermissions("brand", "Brands", "Organization", _crud("Brands")),
    EntityPermissions("location", "Locations", "Organization", _crud("Locations")),
    # Staff
    EntityPermissions("staff", "Staff", "Staff Management", (
        Operation("read", "View Staff", "Can view staff list and details"),
        Operation("create", "Add Staff", "Can add new staff members"),
        Operation("update", "Manage Staff", "Can edit staff information and roles"),
        Operation("delete", "Remove Staff", "Can deactivate or remove staff"),
    )),
    # Service
    EntityPermissions("order", "Orders", "Service", _crud("Orders")),
    EntityPermissions("payment", "Payments", "Service", (
        Operation("read", "View Payments", "Can view payments"),
        Operation("create", "Record Payments", "Can record payments"),
    )),
    EntityPermissions("session", "Table Sessions", "Service", (
        Operation("read", "View Sessions", "Can view open table sessions"),
        Operation("close", "Close Sessions", "Can close table sessions"),
    )),
    EntityPermissions("feedback", "Feedback", "Service", (
        Operation("read", "View Feedback", "Can read guest feedback"),
    )),
    # Floor plan
    EntityPermissions("floor_layout", "Floor Layouts", "Floor Plan", _crud("Floor Layouts") + (
        Operation("publish", "Publish Floor Layouts", "Can make a floor layout live"),
    )),
    EntityPermissions("floor_table", "Floor Tables", "Floor Plan", _crud("Floor Tables") + (
        Operation("merge", "Merge Tables", "Can merge tables together"),
    )),
    # Reference data
    EntityPermissions("allergen", "Allergens", "Reference Data", (
        Operation("read", "View Allergens", "Can view the allergen list"),
    )),
    EntityPermissions("dietary", "Dietary Flags", "Reference Data", (
        Operation("read", "View Dietary Flags", "Can view dietary flags"),
    )),
    # Analytics & settings
    EntityPermissions("analytics", "Analytics", "Analytics & Reports", (
        Operation("read", "View Analytics", "Can access analytics dashboard"),
        Operation("export", "Export Reports", "Can export analytics data"),
    )),
    EntityPermissions("settings", "Settings", "Settings", (
        Operation("read", "View Settings", "Can view restaurant settings"),
        Operation("update", "Manage Settings", "Can modify restaurant settings"),
    )),
    EntityPermissions("chatbot", "Admin Assistant", "Assistant", (
        Operation("read", "Use Assistant", "Can use the admin chat assistant"),
    )),
)


def iter_permission_entries() -> Iterable[tuple[str, Operation, EntityPermissions]]:
    """Yield (key, operation, entity) in catalog order."""
    for entity in ENTITY_PERMISSIONS:
        for op in entity.operations:
            yield f"{entity.entity}.{op.action}", op, entity


# =============================================================================
# Role catalog
# =============================================================================


@dataclass(frozen=True)
class RoleDefinition:
    """
    A role record. ``level`` orders the hierarchy (higher = more privileged)
    and is declared explicitly rather than derived from list position.
    """

    slug: str
    name: str
    description: str
    level: int
    grants: frozenset[str] = field(default_factory=frozenset)
    is_default: bool = False


_ALL_KEYS = frozenset(key.value for key in PermissionKey)

ROLE_DEFINITIONS: tuple[RoleDefinition, ...] = (
    RoleDefinition(
        slug=Roles.OWNER,
        name="Owner",
        description="Full access to all restaurant features",
        level=100,
        grants=_ALL_KEYS,
    ),
    RoleDefinition(
        slug=Roles.MANAGER,
        name="Manager",
        description="Manage operations, staff, and menus",
        level=80,
        grants=_ALL_KEYS - {"brand.delete", "settings.update"},
    ),
    RoleDefinition(
        slug=Roles.MENU_EDITOR,
        name="Menu Editor",
        description="Create and edit menu content",
        level=50,
        is_default=True,
        grants=frozenset({
            "dashboard.read",
            "menu.read", "menu.create", "menu.update",
            "section.read", "section.create", "section.update",
            "item.read", "item.create", "item.update",
            "ingredient.read", "ingredient.create", "ingredient.update",
            "option.read", "option.create", "option.update",
            "brand.read",
            "location.read",
            "analytics.read",
            "allergen.read", "dietary.read",
        }),
    ),
    RoleDefinition(
        slug=Roles.FOH_STAFF,
        name="Front of House",
        description="View menus and manage orders",
        level=30,
        grants=frozenset({
            "dashboard.read",
            "menu.read", "section.read", "item.read",
            "location.read",
            "order.read", "order.create", "order.update",
            "allergen.read", "dietary.read",
            "floor_layout.read", "floor_table.read",
            "session.read",
            "payment.read",
        }),
    ),
    RoleDefinition(
        slug=Roles.KITCHEN_STAFF,
        name="Kitchen Staff",
        description="View menu items and ingredients",
        level=20,
        grants=frozenset({
            "dashboard.read",
            "menu.read", "section.read", "item.read",
            "ingredient.read",
            "order.read", "order.update",
            "allergen.read", "dietary.read",
        }),
    ),
)


def validate_catalog(
    roles: Iterable[RoleDefinition] = ROLE_DEFINITIONS,
    entities: Iterable[EntityPermissions] = ENTITY_PERMISSIONS,
) -> None:
    """
    Check the catalog for consistency.

    Raises:
        CatalogError: If the entity table and PermissionKey disagree, a role
            grants an unregistered key, two roles share a slug or a level,
            there is not exactly one default role, or the superuser role is
            missing.
    """
    roles = list(roles)
    registered: set[str] = set()
    for entity in entities:
        for key in entity.keys():
            if key in registered:
                raise CatalogError(f"Permission '{key}' is registered twice")
            registered.add(key)

    enum_keys = {key.value for key in PermissionKey}
    if registered != enum_keys:
        missing = sorted(enum_keys - registered)
        extra = sorted(registered - enum_keys)
        raise CatalogError(
            f"Entity table and PermissionKey differ (not in table: {missing}, not in enum: {extra})"
        )

    seen_slugs: set[str] = set()
    seen_levels: dict[int, str] = {}
    for role in roles:
        if role.slug in seen_slugs:
            raise CatalogError(f"Role '{role.slug}' is defined twice")
        seen_slugs.add(role.slug)

        if role.level in seen_levels:
            raise CatalogError(
                f"Roles '{seen_levels[role.level]}' and '{role.slug}' share level {role.level}"
            )
        seen_levels[role.level] = role.slug

        unknown = sorted(set(role.grants) - registered)
        if unknown:
            raise CatalogError(f"Role '{role.slug}' grants unregistered permissions: {unknown}")

    defaults = [role.slug for role in roles if role.is_default]
    if len(defaults) != 1:
        raise CatalogError(f"Exactly one default role is required, found {defaults}")

    if settings.superuser_role not in seen_slugs:
        raise CatalogError(f"Superuser role '{settings.superuser_role}' is not defined")


# Fail at import rather than on the first request
validate_catalog()

ROLES_BY_SLUG: dict[str, RoleDefinition] = {role.slug: role for role in ROLE_DEFINITIONS}

ROLE_PERMISSIONS: dict[str, frozenset[PermissionKey]] = {
    role.slug: frozenset(PermissionKey(key) for key in role.grants)
    for role in ROLE_DEFINITIONS
}


def get_role(role: str | None) -> RoleDefinition | None:
    """Role record by slug, or None."""
    if role is None:
        return None
    return ROLES_BY_SLUG.get(role)


def get_default_role() -> RoleDefinition:
    """The role assigned to new staff."""
    return next(role for role in ROLE_DEFINITIONS if role.is_default)


def get_permissions_for_role(role: str | None) -> frozenset[PermissionKey]:
    """
    Default grant set of a role.

    Total over any input: unknown roles yield the empty set.
    """
    if role is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(role, frozenset())


def to_permission_key(value: str | PermissionKey) -> PermissionKey | None:
    """Resolve a raw string to a registered key, or None if unregistered."""
    if isinstance(value, PermissionKey):
        return value
    try:
        return PermissionKey(value)
    except ValueError:
        return None


def parse_permission_keys(values: Iterable[str]) -> list[str]:
    """
    Validate raw permission strings (e.g. a per-user override).

    Returns:
        The keys, de-duplicated, in catalog order.

    Raises:
        ValidationError: If any value is not a registered key.
    """
    values = list(values)
    unknown = sorted({v for v in values if to_permission_key(v) is None})
    if unknown:
        raise ValidationError(
            f"Unknown permission keys: {', '.join(unknown)}",
            field="permissions",
        )
    wanted = {to_permission_key(v).value for v in values}
    return [key.value for key in PermissionKey if key.value in wanted]
