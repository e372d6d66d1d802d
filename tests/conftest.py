"""
Pytest Configuration and Fixtures

Tests run against an in-memory MongoDB (mongomock) patched into the
repository layer, with the AI provider disabled unless a test installs a
stub client.
"""

import os
import tempfile

# Settings are read once at import time
os.environ.setdefault("LOGS_PATH", tempfile.mkdtemp(prefix="tadbeer-logs-"))
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["ENVIRONMENT"] = "test"
os.environ["AI_API_KEY"] = ""

import mongomock
import pytest
from fastapi.testclient import TestClient

from tadbeer.domain.enums import UserRole, UserStatus
from tadbeer.domain.models import ActorContext
from tadbeer.repositories import mongo_client
from tadbeer.repositories.user_repo import UserRepository
from tadbeer.services.user_service import UserService
from tadbeer.utils.jwt import create_access_token


@pytest.fixture(autouse=True)
def mongo_db(monkeypatch):
    """Fresh in-memory database for every test"""
    db = mongomock.MongoClient()["tadbeer_test"]
    monkeypatch.setattr(mongo_client, "_database", db)
    mongo_client.create_indexes()
    yield db


@pytest.fixture
def client():
    from tadbeer.main import app
    return TestClient(app)


@pytest.fixture
def make_user():
    """Factory persisting a user; user_id can be forced for readable scenarios"""
    counter = {"n": 0}

    def _make(role=UserRole.USER, name=None, email=None, user_id=None,
              department_id=None, department=None, password="password123"):
        counter["n"] += 1
        n = counter["n"]
        user = UserService().build_user(
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            password=password,
            role=role,
            status=UserStatus.AVAILABLE,
            department_id=department_id,
            department=department,
        )
        if user_id:
            user = user.model_copy(update={"user_id": user_id})
        return UserRepository().create_user(user)

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.user_id, user.role)}"}
    return _headers


@pytest.fixture
def actor_of():
    def _actor(user):
        return ActorContext(user_id=user.user_id, role=user.role)
    return _actor
