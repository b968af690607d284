"""
Test configuration and fixtures for the TG Feedbacks API tests.
Every test gets a fresh application backed by an in-memory SQLite database.
"""

from types import SimpleNamespace

import pytest

from app import create_app
from models.database import db

DEFAULT_PASSWORD = "secret123"


@pytest.fixture
def app():
    """Application built with TestingConfig"""
    app = create_app("testing")
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register(client):
    """Register a user through the API and return its id, role and auth headers"""

    def _register(name, email, password=DEFAULT_PASSWORD):
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.get_json()
        data = response.get_json()["data"]
        return SimpleNamespace(
            id=data["user"]["id"],
            name=data["user"]["name"],
            email=data["user"]["email"],
            role=data["user"]["role"],
            token=data["token"],
            headers={"Authorization": f"Bearer {data['token']}"},
        )

    return _register


@pytest.fixture
def alice(register):
    return register("Alice", "alice@example.com")


@pytest.fixture
def bob(register):
    return register("Bob", "bob@example.com")


@pytest.fixture
def admin(app, register):
    return register("Admin", app.config["ADMIN_EMAIL"])


@pytest.fixture
def create_comment(client):
    """POST a comment as ``user`` and return the created comment payload"""

    def _create(user, **overrides):
        payload = {
            "title": "Export fails",
            "description": "CSV export returns 500",
            "recordId": "rec-42",
        }
        payload.update(overrides)
        response = client.post("/api/comments", json=payload, headers=user.headers)
        assert response.status_code == 201, response.get_json()
        return response.get_json()["data"]

    return _create


@pytest.fixture
def add_sub_comment(client):
    """POST a reply as ``user`` and return the id of the new sub-comment"""

    def _add(user, comment_id, content="Reproduced on Firefox too"):
        response = client.post(
            f"/api/comments/{comment_id}/subcomments",
            json={"content": content},
            headers=user.headers,
        )
        assert response.status_code == 201, response.get_json()
        return response.get_json()["data"]["subComments"][-1]["id"]

    return _add
