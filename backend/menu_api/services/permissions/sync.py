"""
Permission catalog sync.

Mirrors the in-code catalog into the system_permission / system_role /
system_role_permission tables for admin screens. Rows whose key is no
longer in the catalog are reported as orphans and kept.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from menu_api.models import SystemPermission, SystemRole, SystemRolePermission
from shared.config.logging import get_logger
from shared.infrastructure.db import transaction

from .catalog import ROLE_DEFINITIONS, iter_permission_entries

logger = get_logger(__name__)


@dataclass
class SyncReport:
    permissions_created: int = 0
    permissions_updated: int = 0
    roles_created: int = 0
    roles_updated: int = 0
    orphaned_keys: list[str] = field(default_factory=list)
    role_grants: dict[str, int] = field(default_factory=dict)


def sync_permission_catalog(db: Session) -> SyncReport:
    """
    Upsert permissions and roles from the catalog, then rebuild each role's
    grant links. Runs as one transaction.
    """
    report = SyncReport()

    with transaction(db):
        existing = {p.key: p for p in db.scalars(select(SystemPermission)).all()}
        catalog_keys: set[str] = set()

        for sort_order, (key, op, entity) in enumerate(iter_permission_entries(), start=1):
            catalog_keys.add(key)
            permission = existing.get(key)
            if permission is None:
                permission = SystemPermission(key=key, is_active=True)
                db.add(permission)
                existing[key] = permission
                report.permissions_created += 1
                logger.info("Permission created", key=key)
            else:
                report.permissions_updated += 1
            permission.label = op.label
            permission.description = op.description
            permission.category = entity.category
            permission.sort_order = sort_order

        report.orphaned_keys = sorted(set(existing) - catalog_keys)
        if report.orphaned_keys:
            logger.warning("Orphaned permissions kept", keys=report.orphaned_keys)

        db.flush()

        roles = {r.slug: r for r in db.scalars(select(SystemRole)).all()}
        for definition in ROLE_DEFINITIONS:
            role = roles.get(definition.slug)
            if role is None:
                role = SystemRole(slug=definition.slug, is_active=True)
                db.add(role)
                report.roles_created += 1
            else:
                report.roles_updated += 1
            role.name = definition.name
            role.description = definition.description
            role.level = definition.level
            role.is_default = definition.is_default
            db.flush()

            db.execute(delete(SystemRolePermission).where(SystemRolePermission.role_id == role.id))
            granted = sorted(definition.grants & catalog_keys)
            for key in granted:
                db.add(SystemRolePermission(role_id=role.id, permission_id=existing[key].id))
            report.role_grants[definition.slug] = len(granted)

    logger.info(
        "Permission sync complete",
        created=report.permissions_created,
        updated=report.permissions_updated,
        orphaned=len(report.orphaned_keys),
    )
    return report
