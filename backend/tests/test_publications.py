"""
Tests for menu activation at locations.
"""

import pytest
from sqlalchemy import func, select

from menu_api.models import MenuPublication
from menu_api.services.domain import MenuLineService, MenuService, PublicationService
from shared.utils.exceptions import NotFoundError, ValidationError


@pytest.fixture
def service(db_session):
    return PublicationService(db_session)


@pytest.fixture
def live_menus(make_menu):
    return make_menu("lunch-live", status="published"), make_menu("bar", status="published")


def _publication_count(db_session, location_id):
    return db_session.scalar(
        select(func.count(MenuPublication.id)).where(MenuPublication.location_id == location_id)
    )


class TestActivate:
    def test_creates_current_publication(self, service, seed_tenant, seed_location, live_menus):
        lunch, _ = live_menus
        publication = service.activate(seed_tenant.id, seed_location.id, lunch.id)
        assert publication.is_current is True
        assert publication.activated_at is not None
        assert publication.tenant_id == seed_tenant.id

    def test_idempotent(self, db_session, service, seed_tenant, seed_location, live_menus):
        lunch, _ = live_menus
        first = service.activate(seed_tenant.id, seed_location.id, lunch.id)
        second = service.activate(seed_tenant.id, seed_location.id, lunch.id)
        assert second.id == first.id
        assert _publication_count(db_session, seed_location.id) == 1

    def test_reactivates_after_deactivate(self, db_session, service, seed_tenant, seed_location, live_menus):
        lunch, _ = live_menus
        publication = service.activate(seed_tenant.id, seed_location.id, lunch.id)
        service.deactivate(seed_tenant.id, publication.id)

        again = service.activate(seed_tenant.id, seed_location.id, lunch.id)
        assert again.id == publication.id
        assert again.is_current is True
        assert again.deactivated_at is None
        assert _publication_count(db_session, seed_location.id) == 1

    def test_several_menus_current_at_once(self, service, seed_tenant, seed_location, live_menus):
        lunch, bar = live_menus
        service.activate(seed_tenant.id, seed_location.id, lunch.id)
        service.activate(seed_tenant.id, seed_location.id, bar.id)
        current = service.current_menus(seed_tenant.id, seed_location.id)
        assert [m.code for m in current] == ["bar", "lunch-live"]

    def test_lost_insert_race_flips_existing(
        self, db_session, service, seed_tenant, seed_location, live_menus, monkeypatch
    ):
        """A concurrent insert of the same pair wins; the loser flips that row."""
        lunch, _ = live_menus
        winner = service.activate(seed_tenant.id, seed_location.id, lunch.id)
        service.deactivate(seed_tenant.id, winner.id)

        real_find = PublicationService._find
        calls = []

        def stale_find(self, location_id, menu_id):
            calls.append(menu_id)
            if len(calls) == 1:
                return None
            return real_find(self, location_id, menu_id)

        monkeypatch.setattr(PublicationService, "_find", stale_find)

        publication = service.activate(seed_tenant.id, seed_location.id, lunch.id)
        assert len(calls) == 2
        assert publication.id == winner.id
        assert publication.is_current is True
        assert _publication_count(db_session, seed_location.id) == 1

    def test_draft_menu_rejected(self, service, seed_tenant, seed_location, seed_menu):
        with pytest.raises(ValidationError, match="must be published"):
            service.activate(seed_tenant.id, seed_location.id, seed_menu.id)

    def test_brand_mismatch_rejected(
        self, db_session, service, seed_tenant, seed_location, live_menus
    ):
        from menu_api.models import Brand, Location

        other_brand = Brand(tenant_id=seed_tenant.id, name="Cafe", slug="cafe")
        db_session.add(other_brand)
        db_session.flush()
        cafe = Location(tenant_id=seed_tenant.id, brand_id=other_brand.id, name="Cafe", slug="cafe")
        db_session.add(cafe)
        db_session.commit()

        with pytest.raises(ValidationError, match="different brands"):
            service.activate(seed_tenant.id, cafe.id, live_menus[0].id)

    def test_other_tenant_location(self, service, seed_tenant, live_menus, other_tenant):
        with pytest.raises(NotFoundError, match="Location not found"):
            service.activate(seed_tenant.id, other_tenant["location"].id, live_menus[0].id)


class TestActivateMany:
    def test_partial_failure_continues(
        self, service, seed_tenant, seed_location, seed_menu, live_menus
    ):
        lunch, bar = live_menus
        result = service.activate_many(
            seed_tenant.id, seed_location.id, [lunch.id, seed_menu.id, bar.id, 9999]
        )

        assert result.succeeded == [lunch.id, bar.id]
        assert result.failed == [seed_menu.id, 9999]
        draft_outcome = result.outcomes[1]
        assert draft_outcome.publication_id is None
        assert "must be published" in draft_outcome.error
        assert [m.id for m in service.current_menus(seed_tenant.id, seed_location.id)] == [
            bar.id,
            lunch.id,
        ]

    def test_batch_size_limit(self, service, seed_tenant, seed_location):
        with pytest.raises(ValidationError, match="Cannot activate more than"):
            service.activate_many(seed_tenant.id, seed_location.id, list(range(1, 500)))


class TestDeactivateAndDelete:
    def test_deactivate_idempotent(self, service, seed_tenant, seed_location, live_menus):
        publication = service.activate(seed_tenant.id, seed_location.id, live_menus[0].id)
        first = service.deactivate(seed_tenant.id, publication.id)
        stamp = first.deactivated_at
        second = service.deactivate(seed_tenant.id, publication.id)
        assert second.is_current is False
        assert second.deactivated_at == stamp
        assert service.current_menus(seed_tenant.id, seed_location.id) == []

    def test_delete(self, db_session, service, seed_tenant, seed_location, live_menus):
        publication = service.activate(seed_tenant.id, seed_location.id, live_menus[0].id)
        service.delete(seed_tenant.id, publication.id)
        assert _publication_count(db_session, seed_location.id) == 0
        with pytest.raises(NotFoundError):
            service.get_publication(seed_tenant.id, publication.id)

    def test_scoped_by_location(
        self, service, seed_tenant, seed_location, second_location, live_menus
    ):
        lunch, bar = live_menus
        service.activate(seed_tenant.id, seed_location.id, lunch.id)
        service.activate(seed_tenant.id, second_location.id, bar.id)

        assert [m.code for m in service.current_menus(seed_tenant.id, second_location.id)] == ["bar"]
        assert len(service.list_publications(seed_tenant.id)) == 2
        assert len(service.list_publications(seed_tenant.id, location_id=seed_location.id)) == 1


class TestLiveMenus:
    def test_unpublished_menu_is_not_live(self, db_session, service, seed_tenant, seed_location, live_menus):
        lunch, bar = live_menus
        service.activate(seed_tenant.id, seed_location.id, lunch.id)
        service.activate(seed_tenant.id, seed_location.id, bar.id)

        MenuService(db_session).unpublish(seed_tenant.id, lunch.id)

        assert [m.code for m in service.current_menus(seed_tenant.id, seed_location.id)] == ["bar"]

    def test_republished_menu_is_live_again(self, db_session, service, seed_tenant, seed_location, live_menus):
        lunch, _ = live_menus
        service.activate(seed_tenant.id, seed_location.id, lunch.id)
        menus = MenuService(db_session)
        menus.unpublish(seed_tenant.id, lunch.id)
        menus.publish(seed_tenant.id, lunch.id)

        assert [m.id for m in service.current_menus(seed_tenant.id, seed_location.id)] == [lunch.id]


class TestPublishedMenu:
    @pytest.fixture
    def lunch_lines(self, db_session, seed_tenant, seed_sections, seed_items, live_menus):
        lunch, _ = live_menus
        lines = MenuLineService(db_session)
        starters = lines.add_line(
            seed_tenant.id, lunch.id, line_type="section", section_id=seed_sections[0].id
        )
        soup = lines.add_line(
            seed_tenant.id, lunch.id, line_type="item", item_id=seed_items[0].id, parent_line_id=starters.id
        )
        salad = lines.add_line(
            seed_tenant.id, lunch.id, line_type="item", item_id=seed_items[1].id, parent_line_id=starters.id
        )
        steak = lines.add_line(
            seed_tenant.id, lunch.id, line_type="item", item_id=seed_items[2].id, parent_line_id=starters.id
        )
        return {"starters": starters, "soup": soup, "salad": salad, "steak": steak}

    def test_only_enabled_lines_of_live_menus(
        self, db_session, service, seed_tenant, seed_location, seed_items, live_menus, lunch_lines
    ):
        lunch, bar = live_menus
        service.activate(seed_tenant.id, seed_location.id, lunch.id)
        lines = MenuLineService(db_session)
        lines.update_line(seed_tenant.id, lunch.id, lunch_lines["salad"].id, {"is_enabled": False})
        seed_items[2].is_visible = False
        db_session.commit()

        published = service.published_menu(seed_tenant.id, seed_location.id)

        assert [p.menu.id for p in published] == [lunch.id]
        [section] = published[0].lines
        assert section.line.id == lunch_lines["starters"].id
        assert [child.line.id for child in section.children] == [lunch_lines["soup"].id]

    def test_deactivated_menu_not_served(
        self, service, seed_tenant, seed_location, live_menus, lunch_lines
    ):
        publication = service.activate(seed_tenant.id, seed_location.id, live_menus[0].id)
        service.deactivate(seed_tenant.id, publication.id)
        assert service.published_menu(seed_tenant.id, seed_location.id) == []

    def test_location_in_other_tenant(self, service, seed_tenant, other_tenant):
        with pytest.raises(NotFoundError):
            service.published_menu(seed_tenant.id, other_tenant["location"].id)
