import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from commerce.auth import create_access_token
from commerce.domain.models import Base
from commerce.infrastructure.cache import get_summary_cache
from commerce.infrastructure.db import SessionLocal, engine
from commerce.main import app


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(engine)
    get_summary_cache().local_cache.clear()
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    # Lifespan (alembic) is skipped; tables come from the database fixture
    return TestClient(app)


def auth_headers(user_id: str, role: str = "customer", **claims) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, role=role, **claims)}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def customer():
    return auth_headers("cust-1", name="Asha", email="asha@example.com")


@pytest.fixture
def other_customer():
    return auth_headers("cust-2")


@pytest.fixture
def supplier():
    return auth_headers("supp-1", role="supplier")


@pytest.fixture
def admin():
    return auth_headers("admin-1", role="admin")


@pytest.fixture
def make_product(client, supplier):
    def _make(base_price="100.00", variants=None, headers=None, **fields):
        payload = {"title": fields.pop("title", "Cotton Kurta"), "base_price": base_price, **fields}
        if variants is not None:
            payload["variants"] = variants
        resp = client.post("/products/", json=payload, headers=headers or supplier)
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make
