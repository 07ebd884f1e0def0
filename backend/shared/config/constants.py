"""
Centralized constants for the backend application.

Usage:
    from shared.config.constants import Roles, MenuStatus, LineType

    if menu.status == MenuStatus.PUBLISHED:
        ...
"""

from typing import Final


# =============================================================================
# Staff Roles
# =============================================================================


class Roles:
    """
    Staff role slugs.

    Levels and default grants live in menu_api.services.permissions.catalog;
    this class only names the slugs.
    """

    OWNER: Final[str] = "owner"
    MANAGER: Final[str] = "manager"
    MENU_EDITOR: Final[str] = "menu_editor"
    FOH_STAFF: Final[str] = "foh_staff"
    KITCHEN_STAFF: Final[str] = "kitchen_staff"

    ALL: Final[list[str]] = [OWNER, MANAGER, MENU_EDITOR, FOH_STAFF, KITCHEN_STAFF]


# =============================================================================
# Entity Status Constants
# =============================================================================


class MenuStatus:
    """Menu lifecycle status."""

    DRAFT: Final[str] = "draft"
    PUBLISHED: Final[str] = "published"
    ARCHIVED: Final[str] = "archived"

    ALL: Final[list[str]] = [DRAFT, PUBLISHED, ARCHIVED]


class LineType:
    """Kind of node a MenuLine places into a menu."""

    SECTION: Final[str] = "section"
    ITEM: Final[str] = "item"

    ALL: Final[list[str]] = [SECTION, ITEM]


class AuditAction:
    """Actions recorded in the audit log."""

    CREATE: Final[str] = "CREATE"
    UPDATE: Final[str] = "UPDATE"
    DELETE: Final[str] = "DELETE"
    REORDER: Final[str] = "REORDER"
    PUBLISH: Final[str] = "PUBLISH"
    UNPUBLISH: Final[str] = "UNPUBLISH"
    ARCHIVE: Final[str] = "ARCHIVE"
    ACTIVATE: Final[str] = "ACTIVATE"
    DEACTIVATE: Final[str] = "DEACTIVATE"


# =============================================================================
# Status Transitions
# =============================================================================

# Valid menu status transitions (from -> [allowed to states]).
# Archive is reachable from every live state and is terminal.
MENU_TRANSITIONS: Final[dict[str, list[str]]] = {
    MenuStatus.DRAFT: [MenuStatus.PUBLISHED, MenuStatus.ARCHIVED],
    MenuStatus.PUBLISHED: [MenuStatus.DRAFT, MenuStatus.ARCHIVED],
    MenuStatus.ARCHIVED: [],
}


# =============================================================================
# Limits
# =============================================================================


class Limits:
    """Input and batch limits."""

    MAX_BATCH_ACTIVATIONS: Final[int] = 50
    MAX_REORDER_LINES: Final[int] = 500
    CURRENCY_CODE_LENGTH: Final[int] = 3
