"""
Pytest fixtures for ordertrack backend tests.

Provides test database setup, two independent owners, and test client.
"""

import pytest

from ordertrack import create_app
from ordertrack.extensions import db
from ordertrack.schemas import OrderCreateRequest
from ordertrack.services import order_service
from ordertrack.services.auth_service import create_user
from ordertrack.services.order_kinds import PURCHASE, SUPPLY
from ordertrack.services.session_service import create_session


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ALLOW_CANCEL_AFTER_FULFILLMENT': False,
    })

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


@pytest.fixture(scope='function')
def user_a(db_session):
    """First owner."""
    return create_user("owner_a@example.com", PASSWORD)


@pytest.fixture(scope='function')
def user_b(db_session):
    """Second, unrelated owner."""
    return create_user("owner_b@example.com", PASSWORD)


@pytest.fixture(scope='function')
def headers_a(user_a):
    _, token = create_session(user_a.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def headers_b(user_b):
    _, token = create_session(user_b.id)
    return auth_headers(token)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def _create_order(user_id: int, lines, kind=PURCHASE, **header):
    """
    Create an order through the service layer.

    lines: iterable of (item_name, quantity, unit_price_cents)
    """
    payload = {
        kind.counterparty_field: header.pop("counterparty", "Acme Hardware"),
        "items": [
            {"item_name": name, "quantity": qty, "unit_price_cents": price}
            for name, qty, price in lines
        ],
    }
    payload.update(header)
    req = OrderCreateRequest.from_payload(payload, kind.counterparty_field)
    return order_service.create_order(kind, user_id, req)


@pytest.fixture(scope='function')
def make_order(db_session):
    """Factory fixture: make_order(user_id, [(name, qty, price_cents), ...], **header)."""
    return _create_order


@pytest.fixture(scope='function')
def make_supply_order(db_session):
    def _make(user_id: int, lines, **header):
        return _create_order(user_id, lines, kind=SUPPLY, **header)
    return _make
