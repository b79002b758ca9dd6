import itertools

import pytest
from fastapi.testclient import TestClient

from school_directory_api.app.core.config import settings
from school_directory_api.app.core.db import init_db
from school_directory_api.app.core.security import create_access_token, hash_password
from school_directory_api.app.core.store import COURSES, REVIEWS, SCHOOLS, USERS, Store
from school_directory_api.app.main import app


PASSWORD = "secret123"

# Hashing with the production iteration count makes every test slow;
# one shared hash is enough for fixtures.
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Fresh SQLite file per test, geocoding off, uploads into tmp."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "test.db"))
    monkeypatch.setattr(settings, "geocoder_provider", "none")
    monkeypatch.setattr(settings, "file_upload_path", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "default_page_limit", 25)
    init_db()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def store():
    return Store()


@pytest.fixture
def make_user(store):
    counter = itertools.count(1)

    def _make(role="user", **values):
        n = next(counter)
        data = {
            "name": f"User {n}",
            "email": f"user{n}@example.com",
            "role": role,
            "password": _PASSWORD_HASH,
        }
        data.update(values)
        return store.insert(USERS, data)

    return _make


@pytest.fixture
def make_school(store, make_user):
    counter = itertools.count(1)

    def _make(owner=None, **values):
        n = next(counter)
        owner = owner or make_user("publisher")
        data = {
            "name": f"School {n}",
            "description": f"Description {n}",
            "address": f"{n} Main St",
            "user_id": owner["id"],
        }
        data.update(values)
        return store.insert(SCHOOLS, data)

    return _make


@pytest.fixture
def make_course(store):
    counter = itertools.count(1)

    def _make(school, tuition, **values):
        n = next(counter)
        data = {
            "title": f"Course {n}",
            "description": "Course description",
            "weeks": "8",
            "tuition": tuition,
            "scholarship_available": False,
            "school_id": school["id"],
            "user_id": school["user_id"],
        }
        data.update(values)
        return store.insert(COURSES, data)

    return _make


@pytest.fixture
def make_review(store):
    def _make(school, user, rating, **values):
        data = {
            "title": "Review",
            "text": "Review text",
            "rating": rating,
            "school_id": school["id"],
            "user_id": user["id"],
        }
        data.update(values)
        return store.insert(REVIEWS, data)

    return _make


@pytest.fixture
def auth():
    def _headers(user):
        token = create_access_token({"sub": str(user["id"])})
        return {"Authorization": f"Bearer {token}"}

    return _headers
