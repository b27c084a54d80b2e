"""Pytest configuration.

Required settings are set before the application is imported. Every test
gets its own file-backed SQLite database so import worker threads can
open their own connections.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./unused-test-bootstrap.db")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.database import Base, build_engine, build_session_factory, get_db, get_session_factory
from app.models.clients import Client
from app.models.products import Product
from app.models.users import User, UserRole
from app.services import clients as client_service


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def api(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(username: str, role: UserRole = UserRole.USER) -> User:
        user = User(username=username, role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def owner(make_user):
    return make_user("vendedora1")


@pytest.fixture
def other_user(make_user):
    return make_user("vendedor2")


@pytest.fixture
def admin(make_user):
    return make_user("admin", role=UserRole.ADMIN)


@pytest.fixture
def make_product(db):
    def _make(name: str, net_price: str, total_price: str) -> Product:
        product = Product(
            name=name,
            net_price=Decimal(net_price),
            total_price=Decimal(total_price),
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_client(db):
    def _make(user: User, legal_name: str, email: str, **fields) -> Client:
        return client_service.create(
            db,
            user.id,
            {"legal_name": legal_name, "email": email, **fields},
        )

    return _make
