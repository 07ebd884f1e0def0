"""
Pytest configuration and fixtures for backend tests.

Two tenants are seeded: the main one ("acme") with a brand, two locations,
a draft menu, sections, items and one user per role, and a second one
("rival") with its own owner, menu and location for isolation tests.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from menu_api.main import app
from menu_api.models import (
    Base,
    Brand,
    Item,
    Location,
    Menu,
    Section,
    Tenant,
    User,
)
from menu_api.services.permissions import AuthorizationGuard
from shared.infrastructure.db import get_db
from shared.security.auth import sign_session_token


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Tenant hierarchy
# =============================================================================


@pytest.fixture
def seed_tenant(db_session):
    tenant = Tenant(name="Acme Bistro", slug="acme")
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def seed_brand(db_session, seed_tenant):
    brand = Brand(tenant_id=seed_tenant.id, name="Acme", slug="acme")
    db_session.add(brand)
    db_session.commit()
    db_session.refresh(brand)
    return brand


@pytest.fixture
def seed_location(db_session, seed_tenant, seed_brand):
    location = Location(
        tenant_id=seed_tenant.id,
        brand_id=seed_brand.id,
        name="Downtown",
        slug="downtown",
    )
    db_session.add(location)
    db_session.commit()
    db_session.refresh(location)
    return location


@pytest.fixture
def second_location(db_session, seed_tenant, seed_brand):
    location = Location(
        tenant_id=seed_tenant.id,
        brand_id=seed_brand.id,
        name="Harbour",
        slug="harbour",
    )
    db_session.add(location)
    db_session.commit()
    db_session.refresh(location)
    return location


@pytest.fixture
def seed_menu(db_session, seed_tenant, seed_brand):
    """A draft menu."""
    menu = Menu(tenant_id=seed_tenant.id, brand_id=seed_brand.id, code="lunch")
    db_session.add(menu)
    db_session.commit()
    db_session.refresh(menu)
    return menu


@pytest.fixture
def make_menu(db_session, seed_tenant, seed_brand):
    """Factory for extra menus in the main tenant."""
    def _make(code: str, status: str = "draft") -> Menu:
        menu = Menu(tenant_id=seed_tenant.id, brand_id=seed_brand.id, code=code, status=status)
        db_session.add(menu)
        db_session.commit()
        db_session.refresh(menu)
        return menu
    return _make


@pytest.fixture
def seed_sections(db_session, seed_tenant):
    sections = [
        Section(tenant_id=seed_tenant.id, code="starters"),
        Section(tenant_id=seed_tenant.id, code="mains"),
    ]
    db_session.add_all(sections)
    db_session.commit()
    for section in sections:
        db_session.refresh(section)
    return sections


@pytest.fixture
def seed_items(db_session, seed_tenant, seed_sections):
    starters, mains = seed_sections
    items = [
        Item(tenant_id=seed_tenant.id, section_id=starters.id, sku="SOUP"),
        Item(tenant_id=seed_tenant.id, section_id=starters.id, sku="SALAD"),
        Item(tenant_id=seed_tenant.id, section_id=mains.id, sku="STEAK"),
    ]
    db_session.add_all(items)
    db_session.commit()
    for item in items:
        db_session.refresh(item)
    return items


# =============================================================================
# Staff
# =============================================================================


def _add_user(db_session, tenant_id: int, email: str, role: str, **extra) -> User:
    user = User(
        tenant_id=tenant_id,
        email=email,
        first_name=role.replace("_", " ").title(),
        last_name="Test",
        role=role,
        **extra,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def users(db_session, seed_tenant):
    """One active user per role in the main tenant, keyed by role slug."""
    return {
        role: _add_user(db_session, seed_tenant.id, f"{role}@acme.test", role)
        for role in ("owner", "manager", "menu_editor", "foh_staff", "kitchen_staff")
    }


@pytest.fixture
def make_user(db_session, seed_tenant):
    """Factory for extra users in the main tenant."""
    def _make(email: str, role: str, **extra) -> User:
        return _add_user(db_session, seed_tenant.id, email, role, **extra)
    return _make


@pytest.fixture
def other_tenant(db_session):
    """A second tenant with its own owner, brand, location and menu."""
    tenant = Tenant(name="Rival Diner", slug="rival")
    db_session.add(tenant)
    db_session.flush()
    brand = Brand(tenant_id=tenant.id, name="Rival", slug="rival")
    db_session.add(brand)
    db_session.flush()
    location = Location(tenant_id=tenant.id, brand_id=brand.id, name="Uptown", slug="uptown")
    menu = Menu(tenant_id=tenant.id, brand_id=brand.id, code="dinner")
    item = Item(tenant_id=tenant.id, sku="BURGER")
    db_session.add_all([location, menu, item])
    db_session.commit()
    owner = _add_user(db_session, tenant.id, "owner@rival.test", "owner")
    return {
        "tenant": tenant,
        "brand": brand,
        "location": location,
        "menu": menu,
        "item": item,
        "owner": owner,
    }


# =============================================================================
# Sessions
# =============================================================================


@pytest.fixture
def headers_for():
    """Bearer header carrying a freshly signed session for ``user``."""
    def _headers(user: User) -> dict[str, str]:
        token = sign_session_token(user.id, user.tenant_id, user.email)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def guard_for(db_session):
    """Build the per-request guard a route would get for ``user``."""
    def _guard(user: User) -> AuthorizationGuard:
        return AuthorizationGuard(db_session, {"sub": user.id, "tenant_id": user.tenant_id})
    return _guard


@pytest.fixture
def principal_for(guard_for):
    """Resolve the principal a route would see for ``user``."""
    def _principal(user: User):
        return guard_for(user).get_auth_user()
    return _principal
