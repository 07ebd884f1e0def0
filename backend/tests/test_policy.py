"""
Tests for the pure policy engine and role hierarchy.
"""

from hypothesis import given, settings, strategies as st

from menu_api.services.permissions import (
    Principal,
    ResourceRef,
    assignable_roles,
    can,
    can_access_and_do,
    can_access_location,
    can_access_resource,
    can_assign_role,
    can_manage_user,
    can_modify_self,
    can_with_reason,
    get_role_level,
    is_role_higher_than,
)
from menu_api.services.permissions.catalog import PermissionKey

ROLE_SLUGS = ["owner", "manager", "menu_editor", "foh_staff", "kitchen_staff"]

roles = st.sampled_from(ROLE_SLUGS)
any_role = st.one_of(roles, st.text(max_size=12), st.none())
keys = st.sampled_from([key.value for key in PermissionKey])


def make_principal(role: str = "menu_editor", **kwargs) -> Principal:
    defaults = {"id": 1, "email": "someone@acme.test", "tenant_id": 1}
    defaults.update(kwargs)
    return Principal(role=role, **defaults)


class TestCan:
    """Permission checks over role defaults and overrides."""

    def test_role_defaults_apply_without_override(self):
        editor = make_principal("menu_editor")
        assert can(editor, PermissionKey.MENU_UPDATE)
        assert can(editor, "menu.update")
        assert not can(editor, PermissionKey.MENU_DELETE)

    def test_override_replaces_role_defaults(self):
        editor = make_principal("menu_editor", permissions=("menu.read", "menu.delete"))
        assert can(editor, "menu.delete")
        assert not can(editor, "menu.update")

    def test_empty_override_revokes_everything(self):
        editor = make_principal("menu_editor", permissions=())
        assert not any(can(editor, key) for key in PermissionKey)

    def test_unregistered_key_is_denied_even_for_owner(self):
        owner = make_principal("owner")
        assert not can(owner, "menu.fly")
        assert not can(make_principal("menu_editor"), "menu.fly")

    def test_owner_bypasses_an_empty_override(self):
        owner = make_principal("owner", permissions=())
        assert can(owner, PermissionKey.SETTINGS_UPDATE)
        assert owner.is_superuser

    def test_unknown_role_is_denied(self):
        ghost = make_principal("sommelier")
        assert not any(can(ghost, key) for key in PermissionKey)

    def test_can_with_reason_explains_denial(self):
        decision = can_with_reason(make_principal("foh_staff"), "menu.update")
        assert not decision.allowed
        assert "foh_staff" in decision.reason

        decision = can_with_reason(make_principal("owner"), "menu.fly")
        assert "not registered" in decision.reason

    @given(role=roles, key=keys)
    @settings(max_examples=100)
    def test_can_matches_effective_permissions(self, role, key):
        """Property: outside the superuser role, can() is plain set membership."""
        principal = make_principal(role)
        if principal.is_superuser:
            assert can(principal, key)
        else:
            assert can(principal, key) == (key in principal.effective_permissions)

    @given(override=st.lists(keys, unique=True), key=keys)
    @settings(max_examples=100)
    def test_override_is_exact(self, override, key):
        """Property: with an override set, exactly its keys are allowed."""
        principal = make_principal("kitchen_staff", permissions=tuple(override))
        assert can(principal, key) == (key in override)


class TestTenantIsolation:
    """Resource access is decided by tenant before permissions."""

    def test_same_tenant(self):
        assert can_access_resource(make_principal(tenant_id=7), ResourceRef(tenant_id=7))

    def test_other_tenant_denied_even_for_owner(self):
        owner = make_principal("owner", tenant_id=7)
        assert not can_access_resource(owner, ResourceRef(tenant_id=8))

    def test_can_access_and_do_checks_tenant_first(self):
        owner = make_principal("owner", tenant_id=1)
        decision = can_access_and_do(owner, ResourceRef(tenant_id=2), "menu.read")
        assert not decision.allowed
        assert "different tenant" in decision.reason

    def test_can_access_and_do_then_permission(self):
        foh = make_principal("foh_staff", tenant_id=1)
        assert can_access_and_do(foh, ResourceRef(tenant_id=1), "menu.read").allowed
        assert not can_access_and_do(foh, ResourceRef(tenant_id=1), "menu.update").allowed


class TestHierarchy:
    """Strict role ordering for staff management."""

    def test_levels_are_ordered(self):
        levels = [get_role_level(slug) for slug in ROLE_SLUGS]
        assert levels == sorted(levels, reverse=True)
        assert get_role_level("sommelier") < get_role_level("kitchen_staff")
        assert get_role_level(None) < get_role_level("kitchen_staff")

    def test_manager_manages_lower_roles_only(self):
        manager = make_principal("manager")
        assert can_manage_user(manager, "menu_editor")
        assert not can_manage_user(manager, "manager")
        assert not can_manage_user(manager, "owner")

    def test_assign_is_strictly_below(self):
        manager = make_principal("manager")
        assert can_assign_role(manager, "foh_staff")
        assert not can_assign_role(manager, "manager")

    def test_assignable_roles(self):
        assert [r.slug for r in assignable_roles("menu_editor")] == ["foh_staff", "kitchen_staff"]
        assert assignable_roles("kitchen_staff") == []

    @given(a=any_role, b=any_role)
    def test_strictness(self, a, b):
        """Property: no role outranks itself and the order is antisymmetric."""
        assert not is_role_higher_than(a, a)
        assert not (is_role_higher_than(a, b) and is_role_higher_than(b, a))

    @given(a=roles, b=roles, c=roles)
    def test_transitivity(self, a, b, c):
        if is_role_higher_than(a, b) and is_role_higher_than(b, c):
            assert is_role_higher_than(a, c)

    @given(role=roles, target=any_role)
    def test_manage_and_assign_agree_with_hierarchy(self, role, target):
        principal = make_principal(role)
        expected = is_role_higher_than(role, target)
        assert can_manage_user(principal, target) == expected
        assert can_assign_role(principal, target) == expected


class TestSelfModification:
    def test_owner_cannot_demote_self(self):
        decision = can_modify_self(make_principal("owner"), "manager")
        assert not decision.allowed
        assert decision.reason == "Owners cannot demote themselves"

    def test_owner_keeping_role_is_allowed(self):
        assert can_modify_self(make_principal("owner"), "owner").allowed

    def test_non_owner_self_change_is_not_blocked_here(self):
        assert can_modify_self(make_principal("manager"), "foh_staff").allowed


class TestLocationScope:
    def test_manager_sees_every_location(self):
        manager = make_principal("manager", location_ids=frozenset({1}))
        assert can_access_location(manager, 99)

    def test_scoped_staff_restricted(self):
        foh = make_principal("foh_staff", location_ids=frozenset({1, 2}))
        assert can_access_location(foh, 2)
        assert not can_access_location(foh, 3)

    def test_empty_scope_is_unrestricted(self):
        assert can_access_location(make_principal("foh_staff"), 3)
