"""
Tests for mirroring the permission catalog into the database.
"""

from sqlalchemy import func, select

from menu_api.models import SystemPermission, SystemRole, SystemRolePermission
from menu_api.services.permissions import PermissionKey
from menu_api.services.permissions.sync import sync_permission_catalog
from menu_api.services.permissions.catalog import ROLE_DEFINITIONS


def _count(db_session, model):
    return db_session.scalar(select(func.count(model.id)))


def test_first_sync_creates_everything(db_session):
    report = sync_permission_catalog(db_session)

    assert report.permissions_created == len(PermissionKey)
    assert report.permissions_updated == 0
    assert report.roles_created == len(ROLE_DEFINITIONS)
    assert report.orphaned_keys == []
    assert _count(db_session, SystemPermission) == len(PermissionKey)
    assert report.role_grants["owner"] == len(PermissionKey)


def test_sync_is_idempotent(db_session):
    sync_permission_catalog(db_session)
    grants_before = _count(db_session, SystemRolePermission)

    report = sync_permission_catalog(db_session)

    assert report.permissions_created == 0
    assert report.permissions_updated == len(PermissionKey)
    assert report.roles_created == 0
    assert report.roles_updated == len(ROLE_DEFINITIONS)
    assert _count(db_session, SystemPermission) == len(PermissionKey)
    assert _count(db_session, SystemRolePermission) == grants_before


def test_role_rows_mirror_definitions(db_session):
    sync_permission_catalog(db_session)
    roles = {r.slug: r for r in db_session.scalars(select(SystemRole)).all()}
    for definition in ROLE_DEFINITIONS:
        assert roles[definition.slug].level == definition.level
        assert roles[definition.slug].is_default == definition.is_default


def test_orphaned_key_is_reported_and_kept(db_session):
    db_session.add(
        SystemPermission(key="legacy.export", label="Export", category="Legacy", is_active=True)
    )
    db_session.commit()

    report = sync_permission_catalog(db_session)

    assert report.orphaned_keys == ["legacy.export"]
    assert db_session.scalar(
        select(SystemPermission).where(SystemPermission.key == "legacy.export")
    ) is not None
