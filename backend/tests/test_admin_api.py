"""
End-to-end tests for the admin HTTP API.

Every error body has the shape {"error": "<message>"}.
"""

import logging
from contextlib import contextmanager

import pytest

from menu_api.services.domain import MenuLineService
from shared.infrastructure.correlation import CorrelationIdFilter, bind_principal, caller_var


@pytest.fixture
def editor_headers(users, headers_for):
    return headers_for(users["menu_editor"])


@pytest.fixture
def manager_headers(users, headers_for):
    return headers_for(users["manager"])


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_detailed_health(self, client, db_session, monkeypatch):
        @contextmanager
        def test_db_context():
            yield db_session

        monkeypatch.setattr("menu_api.main.get_db_context", test_db_context)
        response = client.get("/api/health/detailed")
        assert response.status_code == 200
        assert response.json()["dependencies"]["database"]["status"] == "healthy"


class TestAuthentication:
    def test_missing_token(self, client, seed_menu):
        response = client.get(f"/api/admin/menus/{seed_menu.id}")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_garbage_token(self, client, seed_menu):
        response = client.get(
            f"/api/admin/menus/{seed_menu.id}",
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401

    def test_me_lists_allowed_keys(self, client, users, editor_headers):
        response = client.get("/api/admin/auth/me", headers=editor_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["role"] == "menu_editor"
        assert "menu.update" in body["permissions"]
        assert "menu.delete" not in body["permissions"]
        assert body["has_override"] is False
        assert body["is_superuser"] is False

    def test_me_for_deactivated_user(self, client, db_session, users, editor_headers):
        users["menu_editor"].is_active = False
        db_session.commit()
        response = client.get("/api/admin/auth/me", headers=editor_headers)
        assert response.status_code == 401


class TestMenus:
    def test_editor_creates_menu(self, client, seed_brand, editor_headers):
        response = client.post(
            "/api/admin/menus",
            json={
                "brand_id": seed_brand.id,
                "code": "brunch",
                "translations": [{"locale": "en", "name": "Brunch"}],
            },
            headers=editor_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "draft"
        assert body["translations"][0]["name"] == "Brunch"

    def test_editor_cannot_archive(self, client, seed_menu, editor_headers):
        response = client.post(f"/api/admin/menus/{seed_menu.id}/archive", headers=editor_headers)
        assert response.status_code == 403
        assert response.json() == {"error": "Insufficient permissions: requires 'menu.delete'"}

    def test_manager_publishes_and_archives(self, client, seed_menu, manager_headers):
        response = client.post(f"/api/admin/menus/{seed_menu.id}/publish", headers=manager_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "published"

        response = client.post(f"/api/admin/menus/{seed_menu.id}/archive", headers=manager_headers)
        assert response.json()["status"] == "archived"

        response = client.post(f"/api/admin/menus/{seed_menu.id}/publish", headers=manager_headers)
        assert response.status_code == 400
        assert "Invalid transition" in response.json()["error"]

    def test_other_tenant_menu_is_not_found(self, client, other_tenant, manager_headers):
        response = client.get(
            f"/api/admin/menus/{other_tenant['menu'].id}", headers=manager_headers
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Access denied: Resource not found"}

    def test_missing_menu_matches_other_tenant(self, client, other_tenant, manager_headers):
        """A missing id and another tenant's id must not be told apart."""
        foreign = client.get(f"/api/admin/menus/{other_tenant['menu'].id}", headers=manager_headers)
        missing = client.get("/api/admin/menus/424242", headers=manager_headers)
        assert missing.status_code == foreign.status_code == 404
        assert missing.json() == foreign.json() == {"error": "Access denied: Resource not found"}

    def test_missing_location_matches_other_tenant(self, client, other_tenant, manager_headers):
        foreign = client.get(
            f"/api/admin/locations/{other_tenant['location'].id}/menus", headers=manager_headers
        )
        missing = client.get("/api/admin/locations/424242/menus", headers=manager_headers)
        assert missing.status_code == foreign.status_code == 404
        assert missing.json() == foreign.json()

    def test_list_filtered_by_status(self, client, seed_menu, make_menu, editor_headers):
        make_menu("bar", status="published")
        response = client.get("/api/admin/menus?status=published", headers=editor_headers)
        assert [m["code"] for m in response.json()] == ["bar"]

    def test_body_validation_error_shape(self, client, editor_headers):
        response = client.post("/api/admin/menus", json={"code": "x"}, headers=editor_headers)
        assert response.status_code == 400
        assert "brand_id" in response.json()["error"]


class TestMenuLines:
    def test_editor_builds_and_reads_tree(
        self, client, seed_menu, seed_sections, seed_items, editor_headers
    ):
        base = f"/api/admin/menus/{seed_menu.id}/lines"
        section = client.post(
            base,
            json={"line_type": "section", "section_id": seed_sections[0].id},
            headers=editor_headers,
        )
        assert section.status_code == 201
        item = client.post(
            base,
            json={
                "line_type": "item",
                "item_id": seed_items[0].id,
                "parent_line_id": section.json()["id"],
            },
            headers=editor_headers,
        )
        assert item.status_code == 201

        tree = client.get(base, headers=editor_headers).json()
        assert len(tree) == 1
        assert [child["item_id"] for child in tree[0]["children"]] == [seed_items[0].id]

    def test_editor_toggles_line(
        self, client, db_session, seed_tenant, seed_menu, seed_sections, editor_headers
    ):
        line = MenuLineService(db_session).add_line(
            seed_tenant.id, seed_menu.id, line_type="section", section_id=seed_sections[0].id
        )
        response = client.patch(
            f"/api/admin/menus/{seed_menu.id}/lines/{line.id}/toggle", headers=editor_headers
        )
        assert response.status_code == 200
        assert response.json()["is_enabled"] is False

    def test_kitchen_cannot_edit_lines(self, client, users, headers_for, seed_menu, seed_sections):
        response = client.post(
            f"/api/admin/menus/{seed_menu.id}/lines",
            json={"line_type": "section", "section_id": seed_sections[0].id},
            headers=headers_for(users["kitchen_staff"]),
        )
        assert response.status_code == 403
        assert "menu.update" in response.json()["error"]

    def test_item_line_needs_item(self, client, seed_menu, editor_headers):
        response = client.post(
            f"/api/admin/menus/{seed_menu.id}/lines",
            json={"line_type": "item"},
            headers=editor_headers,
        )
        assert response.status_code == 400


class TestItems:
    def test_visibility_and_price(self, client, seed_items, editor_headers):
        soup = seed_items[0]
        response = client.patch(
            f"/api/admin/items/{soup.id}/visibility",
            json={"is_visible": False},
            headers=editor_headers,
        )
        assert response.status_code == 200
        assert response.json() == {"item_id": soup.id, "is_visible": False, "lines_updated": 0}

        response = client.put(
            f"/api/admin/items/{soup.id}/price",
            json={"currency": "usd", "amount_minor": 795},
            headers=editor_headers,
        )
        assert response.status_code == 200
        assert response.json()["currency"] == "USD"

    def test_foh_cannot_hide_items(self, client, users, headers_for, seed_items):
        response = client.patch(
            f"/api/admin/items/{seed_items[0].id}/visibility",
            json={"is_visible": False},
            headers=headers_for(users["foh_staff"]),
        )
        assert response.status_code == 403


class TestPublications:
    def test_activate_list_and_deactivate(
        self, client, seed_location, make_menu, manager_headers
    ):
        menu = make_menu("dinner", status="published")
        response = client.post(
            "/api/admin/publications",
            json={"location_id": seed_location.id, "menu_id": menu.id},
            headers=manager_headers,
        )
        assert response.status_code == 201
        publication_id = response.json()["id"]

        current = client.get(
            f"/api/admin/locations/{seed_location.id}/menus", headers=manager_headers
        ).json()
        assert [m["code"] for m in current] == ["dinner"]

        response = client.patch(
            f"/api/admin/publications/{publication_id}",
            json={"is_current": False},
            headers=manager_headers,
        )
        assert response.json()["is_current"] is False

        response = client.delete(
            f"/api/admin/publications/{publication_id}", headers=manager_headers
        )
        assert response.status_code == 204

    def test_published_view_hides_disabled_lines(
        self, client, db_session, seed_tenant, seed_location, seed_sections, seed_items,
        make_menu, manager_headers,
    ):
        menu = make_menu("dinner", status="published")
        lines = MenuLineService(db_session)
        section = lines.add_line(
            seed_tenant.id, menu.id, line_type="section", section_id=seed_sections[0].id
        )
        soup = lines.add_line(
            seed_tenant.id, menu.id, line_type="item", item_id=seed_items[0].id, parent_line_id=section.id
        )
        salad = lines.add_line(
            seed_tenant.id, menu.id, line_type="item", item_id=seed_items[1].id, parent_line_id=section.id
        )
        lines.update_line(seed_tenant.id, menu.id, salad.id, {"is_enabled": False})
        client.post(
            "/api/admin/publications",
            json={"location_id": seed_location.id, "menu_id": menu.id},
            headers=manager_headers,
        )

        response = client.get(
            f"/api/admin/locations/{seed_location.id}/published", headers=manager_headers
        )
        assert response.status_code == 200
        [served] = response.json()
        assert served["code"] == "dinner"
        assert [child["id"] for child in served["lines"][0]["children"]] == [soup.id]

    def test_batch_reports_each_menu(
        self, client, seed_location, seed_menu, make_menu, manager_headers
    ):
        live = make_menu("dinner", status="published")
        response = client.post(
            "/api/admin/publications/batch",
            json={"location_id": seed_location.id, "menu_ids": [live.id, seed_menu.id]},
            headers=manager_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["succeeded"] == [live.id]
        assert body["failed"] == [seed_menu.id]

    def test_editor_cannot_activate(self, client, seed_location, seed_menu, editor_headers):
        response = client.post(
            "/api/admin/publications",
            json={"location_id": seed_location.id, "menu_id": seed_menu.id},
            headers=editor_headers,
        )
        assert response.status_code == 403

    def test_location_scope_enforced(
        self, client, make_user, headers_for, seed_location, second_location
    ):
        scoped = make_user(
            "scoped-manager@acme.test",
            "foh_staff",
            permissions=["publication.read"],
            location_ids=[second_location.id],
        )
        response = client.get(
            f"/api/admin/publications?location_id={seed_location.id}",
            headers=headers_for(scoped),
        )
        assert response.status_code == 403
        assert response.json() == {"error": "Access denied: location outside your scope"}


class TestStaff:
    def test_override_applies_on_next_request(
        self, client, users, headers_for, manager_headers, seed_menu
    ):
        foh = users["foh_staff"]
        foh_headers = headers_for(foh)
        assert client.get(f"/api/admin/menus/{seed_menu.id}", headers=foh_headers).status_code == 200

        response = client.put(
            f"/api/admin/staff/{foh.id}/permissions",
            json={"keys": []},
            headers=manager_headers,
        )
        assert response.status_code == 200
        assert response.json()["permissions"] == []

        response = client.get(f"/api/admin/menus/{seed_menu.id}", headers=foh_headers)
        assert response.status_code == 403

    def test_role_change_hierarchy(self, client, users, manager_headers):
        response = client.patch(
            f"/api/admin/staff/{users['owner'].id}/role",
            json={"role": "foh_staff"},
            headers=manager_headers,
        )
        assert response.status_code == 403
        assert response.json() == {"error": "Cannot manage users with equal or higher role"}

    def test_list_staff(self, client, users, manager_headers, other_tenant):
        response = client.get("/api/admin/staff", headers=manager_headers)
        emails = [u["email"] for u in response.json()]
        assert "owner@rival.test" not in emails
        assert len(emails) == 5


class TestCorrelation:
    def test_request_id_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_request_id_generated(self, client):
        assert client.get("/api/health").headers["X-Request-ID"]

    def test_filter_carries_bound_caller(self):
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", (), None)
        token = caller_var.set({})
        try:
            bind_principal(user_id=5, tenant_id=2)
            CorrelationIdFilter().filter(record)
        finally:
            caller_var.reset(token)
        assert (record.tenant_id, record.user_id) == (2, 5)

    def test_bind_outside_request_is_ignored(self):
        bind_principal(user_id=5, tenant_id=2)
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", (), None)
        CorrelationIdFilter().filter(record)
        assert record.tenant_id is None
        assert record.request_id == "-"
