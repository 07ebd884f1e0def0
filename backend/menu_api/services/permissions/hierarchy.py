"""
Role Hierarchy - total order over roles by their explicit level.
"""

from __future__ import annotations

from .catalog import ROLE_DEFINITIONS, RoleDefinition, get_role

# Below every known role
UNKNOWN_ROLE_LEVEL = -1


def get_role_level(role: str | None) -> int:
    """Level of a role; unknown roles sit below all known ones. Never raises."""
    definition = get_role(role)
    if definition is None:
        return UNKNOWN_ROLE_LEVEL
    return definition.level


def is_role_higher_than(role_a: str | None, role_b: str | None) -> bool:
    """Strict comparison: equal levels are not higher."""
    return get_role_level(role_a) > get_role_level(role_b)


def assignable_roles(role: str | None) -> list[RoleDefinition]:
    """Roles strictly below ``role``, highest first."""
    level = get_role_level(role)
    return sorted(
        (r for r in ROLE_DEFINITIONS if r.level < level),
        key=lambda r: r.level,
        reverse=True,
    )
