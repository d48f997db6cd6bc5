import os
import tempfile

# The app builds its engine at import time, so the database must be chosen first
_DB_DIR = tempfile.mkdtemp(prefix="qr-menu-tests-")
DB_PATH = os.path.join(_DB_DIR, "test.db")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{DB_PATH}"
os.environ["BOOTSTRAP_ADMIN_USERNAME"] = "admin"
os.environ["FRONTEND_URL"] = "https://menu.example.com"
os.environ["DEBUG"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text

from app.core.config import get_settings

get_settings.cache_clear()

from app.main import app  # noqa: E402

ADMIN_HEADERS = {"X-Auth-Request-User": "admin"}

_sync_engine = create_engine(f"sqlite:///{DB_PATH}")


def headers_for(username: str) -> dict:
    return {"X-Auth-Request-User": username}


def db_execute(sql: str, params: dict | None = None) -> list:
    """Run SQL straight against the test database, bypassing the app."""
    with _sync_engine.begin() as conn:
        result = conn.execute(text(sql), params or {})
        return result.mappings().all() if result.returns_rows else []


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture(autouse=True)
def _clean_tables(client):
    """Every test starts with only the bootstrap admin in the database."""
    yield
    with _sync_engine.begin() as conn:
        for table in ("feedback", "menu_items", "categories", "restaurants"):
            conn.execute(text(f"DELETE FROM {table}"))
        conn.execute(text("DELETE FROM users WHERE username <> 'admin'"))


@pytest.fixture
def restaurant(client):
    r = client.post(
        "/api/admin/restaurants",
        json={"name": "Spice Garden", "slug": "spice-garden", "description": "North Indian"},
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 200, r.text
    return {"id": r.json()["restaurant_id"], "slug": "spice-garden"}


@pytest.fixture
def category(client, restaurant):
    r = client.post(
        "/api/categories/",
        json={"restaurant_id": restaurant["id"], "name": "Starters", "color": "#ff0000"},
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 200, r.text
    return r.json()["category"]


@pytest.fixture
def make_user(client):
    def _make(username: str, role: str) -> dict:
        r = client.post(
            "/api/users/",
            json={"username": username, "role": role, "full_name": username.title()},
            headers=ADMIN_HEADERS,
        )
        assert r.status_code == 200, r.text
        return {"id": r.json()["user_id"], "username": username, "role": role}

    return _make


def add_item(client, restaurant_id, name, category="Starters", price=100, **extra):
    payload = {"restaurant_id": restaurant_id, "category": category, "name": name, "price": price}
    payload.update(extra)
    r = client.post("/api/menu/add", json=payload, headers=ADMIN_HEADERS)
    assert r.status_code == 200, r.text
    return r.json()
