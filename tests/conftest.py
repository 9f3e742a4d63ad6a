"""Pytest fixtures for testing"""

import os

# Point settings at SQLite before the application modules read them
os.environ.setdefault("DATABASE_URL", "sqlite:///./reel_ledger_test.db")
os.environ.pop("EXPENSE_WEBHOOK_URL", None)

import pytest
from datetime import datetime, timezone
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from reel_ledger.api.main import create_app
from reel_ledger.domain.ledger import add_category, new_budget
from reel_ledger.domain.models import Budget, CategoryDraft
from reel_ledger.infrastructure.database.models import Base
from reel_ledger.infrastructure.database.session import build_engine, get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./reel_ledger_test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def empty_budget() -> Budget:
    """$1000 budget with no categories"""
    return new_budget(1000, "USD", budget_id="film-001", now=FIXED_NOW)


@pytest.fixture
def camera_budget(empty_budget: Budget) -> Budget:
    """Budget holding a single Camera category with a 200 allocation"""
    result = add_category(
        empty_budget,
        CategoryDraft(name="Camera", allocation_cents=200),
        new_id="Camera",
        now=FIXED_NOW,
    )
    return result.budget
