"""Pytest fixtures for Todo API testing."""

import os

# Set env vars before importing anything from app
os.environ["OTEL_SDK_DISABLED"] = "true"
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SERVER_ADDR", "127.0.0.1:8080")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401  registers the tables on Base.metadata
from app.database import Base, get_db


# In-memory SQLite for tests
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from app.main import app

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(db):
    from app.models import User

    user = User(name="alice", password="secret")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def todo(db):
    from app.models import Task

    todo = Task(title="Buy milk", completed=False, description="2 litres")
    db.add(todo)
    db.commit()
    db.refresh(todo)
    return todo


@pytest.fixture
def broken_db():
    """Drop the tables so every statement fails."""
    Base.metadata.drop_all(bind=engine)
