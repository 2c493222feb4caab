import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from fakes import FakeDatabase
from tenantblog.db import get_db
from tenantblog.main import app
from tenantblog.models.user import Identity
from tenantblog.utils import create_access_token


@pytest.fixture
def db():
    return FakeDatabase()


def _user(name, is_admin=False):
    return {
        "_id": ObjectId(),
        "name": name,
        "email": f"{name.lower()}@example.com",
        "password": "not-a-real-hash",
        "is_admin": is_admin,
    }


@pytest.fixture
def author_doc():
    return _user("Ada")


@pytest.fixture
def other_doc():
    return _user("Bob")


@pytest.fixture
def admin_doc():
    return _user("Root", is_admin=True)


@pytest.fixture
def author(author_doc):
    return Identity(id=str(author_doc["_id"]), name=author_doc["name"], email=author_doc["email"])


@pytest.fixture
def other(other_doc):
    return Identity(id=str(other_doc["_id"]), name=other_doc["name"], email=other_doc["email"])


@pytest.fixture
def admin(admin_doc):
    return Identity(id=str(admin_doc["_id"]), name=admin_doc["name"], email=admin_doc["email"], is_admin=True)


@pytest.fixture
def client(db, author_doc, other_doc, admin_doc):
    db.users.documents.extend([author_doc, other_doc, admin_doc])

    async def override_get_db():
        return db

    app.dependency_overrides[get_db] = override_get_db
    # no context manager: the lifespan would try to reach a real MongoDB
    yield TestClient(app)
    app.dependency_overrides.clear()


def bearer(user_doc):
    token = create_access_token(user_doc["email"], str(user_doc["_id"]))
    return {"Authorization": f"Bearer {token}"}
