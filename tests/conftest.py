import os

# Must be set before anything imports shipsheet.infrastructure.db
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from shipsheet.main import app
from shipsheet.infrastructure.db import engine, SessionLocal
from shipsheet.domain.models import Base, Order, Profile, utcnow
from tests.helpers import ADMIN_ID, VENDOR_ID, OTHER_VENDOR_ID, auth_headers

@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(engine)
    with SessionLocal() as db:
        db.add_all([
            Profile(id=ADMIN_ID, email="admin@example.com", role="admin", is_active=True),
            Profile(id=VENDOR_ID, email="v1@example.com", role="vendor", vendor_name="Acme", is_active=True),
            Profile(id=OTHER_VENDOR_ID, email="v2@example.com", role="vendor", is_active=True),
        ])
        db.commit()
    yield
    Base.metadata.drop_all(engine)

@pytest.fixture
def client():
    return TestClient(app)

@pytest.fixture
def admin_headers():
    return auth_headers(ADMIN_ID)

@pytest.fixture
def vendor_headers():
    return auth_headers(VENDOR_ID)

@pytest.fixture
def other_vendor_headers():
    return auth_headers(OTHER_VENDOR_ID)

@pytest.fixture
def make_order():
    """Insert an order row directly, bypassing the API."""
    def _make(**fields):
        fields.setdefault("status", "pre_shipment")
        fields.setdefault("created_by", ADMIN_ID)
        fields.setdefault("updated_at", utcnow())
        with SessionLocal() as db:
            order = Order(**fields)
            db.add(order)
            db.commit()
            return order.id
    return _make
