"""Shared pytest fixtures."""

from __future__ import annotations

import os

# Settings are read when the database module is imported, so the environment
# has to be prepared before any ``goalmates`` import.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "30")

import pytest

from goalmates.domain.entities import User
from goalmates.infrastructure import database
from goalmates.infrastructure.repositories import UserRepository


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_database():
    """Give every test an empty schema."""

    database.initialize_database()
    yield
    database.Base.metadata.drop_all(bind=database.engine)


@pytest.fixture
def db_session():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session):
    """Return a factory persisting users with unique usernames and emails."""

    counter = {"value": 0}

    def factory(**overrides) -> User:
        counter["value"] += 1
        index = counter["value"]
        values = {
            "id": None,
            "username": f"player{index}",
            "email": f"player{index}@example.com",
        }
        values.update(overrides)
        return UserRepository(db_session).create(User(**values))

    return factory
