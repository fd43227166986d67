"""
Pytest fixtures for AntLogistics backend tests.

Provides test database setup, service fixtures, operator factories and
authenticated test clients.
"""

import pytest

from antlogistics import create_app
from antlogistics.config import TestConfig
from antlogistics.extensions import db
from antlogistics.services.commodity_service import CommodityService
from antlogistics.services.operator_service import OperatorService
from antlogistics.services.session_service import SessionService, SessionSettings
from antlogistics.services.stock_service import StockService
from antlogistics.services.warehouse_service import WarehouseService

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture
def warehouse_service(db_session):
    return WarehouseService(db_session)


@pytest.fixture
def commodity_service(db_session):
    return CommodityService(db_session)


@pytest.fixture
def stock_service(db_session):
    return StockService(db_session)


@pytest.fixture
def operator_service(app, db_session):
    return OperatorService(db_session, bcrypt_rounds=app.config["BCRYPT_ROUNDS"])


@pytest.fixture
def session_settings(app):
    return SessionSettings.from_config(app.config)


@pytest.fixture
def session_service(db_session, session_settings):
    return SessionService(db_session, session_settings)


@pytest.fixture
def make_operator(operator_service):
    """Factory: make_operator("clerk", role="admin", idle_timeout_minutes=10)."""
    def _make(username="clerk", password=PASSWORD, role="operator", **kwargs):
        kwargs.setdefault("full_name", f"{username.title()} Operator")
        return operator_service.create_operator(
            username=username, password=password, role=role, **kwargs
        )
    return _make


@pytest.fixture
def warehouse(warehouse_service):
    return warehouse_service.create_warehouse(
        name="Central Distribution",
        code="CDC-001",
        address_line="1 Dock Road",
        city="Gdansk",
        country_code="pl",
        capacity=50000,
    )


@pytest.fixture
def commodity(commodity_service):
    return commodity_service.create_commodity(sku="WIDGET-1", name="Widget", unit_of_measure="pcs")


def _login(client, username, password=PASSWORD):
    return client.post("/api/v1/auth/login", json={"username": username, "password": password})


@pytest.fixture
def login():
    return _login


@pytest.fixture
def admin_client(client, make_operator):
    """Test client holding an admin session cookie."""
    make_operator("admin", role="admin")
    resp = _login(client, "admin")
    assert resp.status_code == 200
    return client


@pytest.fixture
def operator_client(client, make_operator):
    """Test client holding a non-admin session cookie."""
    make_operator("clerk")
    resp = _login(client, "clerk")
    assert resp.status_code == 200
    return client
