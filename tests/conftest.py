"""Shared fixtures for application-level tests."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from src.app import create_app
from src.config import settings


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_token():
    """Issue a signed JWT the way the identity service would."""

    def _make(role: str = "customer", sub: str | None = None, expires_in: int = 3600) -> str:
        claims = {
            "sub": sub or str(uuid.uuid4()),
            "role": role,
            "email": f"{role}@test.com",
            "exp": datetime.now(UTC) + timedelta(seconds=expires_in),
        }
        return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    return _make
