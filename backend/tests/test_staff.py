"""
Tests for staff role changes and permission overrides.
"""

import pytest

from menu_api.models import User
from menu_api.services.domain import StaffService
from shared.utils.exceptions import (
    ForbiddenError,
    PermissionDeniedError,
    ResourceNotFoundError,
    RoleAssignmentError,
    RoleHierarchyError,
    ValidationError,
)


@pytest.fixture
def service(db_session):
    return StaffService(db_session)


class TestChangeRole:
    def test_manager_demotes_editor(self, service, users, guard_for):
        editor = users["menu_editor"]
        updated = service.change_role(guard_for(users["manager"]), editor.id, "foh_staff")
        assert updated.role == "foh_staff"

    def test_manager_cannot_touch_peer(self, service, make_user, users, guard_for):
        peer = make_user("peer@acme.test", "manager")
        with pytest.raises(RoleHierarchyError):
            service.change_role(guard_for(users["manager"]), peer.id, "foh_staff")

    def test_manager_cannot_grant_own_role(self, service, users, guard_for):
        with pytest.raises(RoleAssignmentError):
            service.change_role(guard_for(users["manager"]), users["foh_staff"].id, "manager")

    def test_owner_promotes_to_manager(self, service, users, guard_for):
        updated = service.change_role(guard_for(users["owner"]), users["foh_staff"].id, "manager")
        assert updated.role == "manager"

    def test_owner_cannot_demote_self(self, db_session, service, users, guard_for):
        owner = users["owner"]
        with pytest.raises(ForbiddenError, match="Owners cannot demote themselves"):
            service.change_role(guard_for(owner), owner.id, "manager")
        db_session.expire_all()
        assert db_session.get(User, owner.id).role == "owner"

    def test_editor_lacks_staff_update(self, service, users, guard_for):
        with pytest.raises(PermissionDeniedError, match="staff.update"):
            service.change_role(guard_for(users["menu_editor"]), users["foh_staff"].id, "kitchen_staff")

    def test_unknown_role(self, service, users, guard_for):
        with pytest.raises(ValidationError, match="Unknown role 'sommelier'"):
            service.change_role(guard_for(users["owner"]), users["foh_staff"].id, "sommelier")

    def test_other_tenant_user_is_not_found(self, service, users, guard_for, other_tenant):
        with pytest.raises(ResourceNotFoundError):
            service.change_role(guard_for(users["owner"]), other_tenant["owner"].id, "foh_staff")

    def test_missing_user_looks_like_other_tenant(self, service, users, guard_for):
        with pytest.raises(ResourceNotFoundError, match="Access denied: Resource not found"):
            service.change_role(guard_for(users["owner"]), 424242, "foh_staff")

    def test_new_role_applies_to_next_guard(self, service, users, guard_for):
        editor = users["menu_editor"]
        service.change_role(guard_for(users["manager"]), editor.id, "kitchen_staff")
        assert guard_for(editor).get_auth_user().role == "kitchen_staff"


class TestPermissionOverrides:
    def test_set_override(self, service, users, guard_for, principal_for):
        foh = users["foh_staff"]
        updated = service.set_permission_overrides(
            guard_for(users["manager"]), foh.id, ["menu.update", "menu.read", "menu.read"]
        )
        assert updated.permissions == ["menu.read", "menu.update"]

        principal = principal_for(foh)
        assert principal.effective_permissions == frozenset({"menu.read", "menu.update"})

    def test_clear_override_restores_defaults(self, service, make_user, users, guard_for, principal_for):
        foh = make_user("custom@acme.test", "foh_staff", permissions=["menu.read"])
        service.set_permission_overrides(guard_for(users["manager"]), foh.id, None)
        principal = principal_for(foh)
        assert principal.permissions is None
        assert "order.create" in principal.effective_permissions

    def test_empty_override_revokes_everything(self, service, users, guard_for, principal_for):
        foh = users["foh_staff"]
        service.set_permission_overrides(guard_for(users["manager"]), foh.id, [])
        assert principal_for(foh).effective_permissions == frozenset()

    def test_unknown_key_rejected(self, service, users, guard_for):
        with pytest.raises(ValidationError, match="menu.fly"):
            service.set_permission_overrides(
                guard_for(users["manager"]), users["foh_staff"].id, ["menu.fly"]
            )

    def test_cannot_grant_key_not_held(self, service, users, guard_for):
        with pytest.raises(ForbiddenError, match="settings.update"):
            service.set_permission_overrides(
                guard_for(users["manager"]), users["foh_staff"].id, ["settings.update"]
            )

    def test_owner_grants_anything(self, service, users, guard_for):
        updated = service.set_permission_overrides(
            guard_for(users["owner"]), users["manager"].id, ["settings.update"]
        )
        assert updated.permissions == ["settings.update"]

    def test_hierarchy_still_applies(self, service, make_user, users, guard_for):
        peer = make_user("peer@acme.test", "manager")
        with pytest.raises(RoleHierarchyError):
            service.set_permission_overrides(guard_for(users["manager"]), peer.id, [])
