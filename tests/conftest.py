"""
Shared fixtures: an in-memory database per test, an API client wired to it,
and bearer tokens signed the way the hosted auth provider signs them.
"""
import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "honesty_store_test.log"))
os.environ["AUTH_JWT_SECRET"] = "test-secret"
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from honesty_store.config import settings
from honesty_store.database import Base, get_db
from honesty_store.main import app
from honesty_store.stock.products.models import Product

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Fresh schema for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(sub="admin-1", role="admin", **claims) -> str:
    payload = {
        "sub": sub,
        "aud": settings.AUTH_JWT_AUDIENCE,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    if role is not None:
        payload[settings.ROLE_CLAIM] = role
    payload.update(claims)
    return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def student_headers():
    return {"Authorization": f"Bearer {make_token(sub='student-7', role='student')}"}


@pytest.fixture
def make_product(db_session):
    def _make(
        name="Chips",
        category="Snacks",
        unit_price="10.00",
        opening_stock=50,
        is_archived=False,
    ):
        product = Product(
            name=name,
            category=category,
            unit_price=Decimal(unit_price),
            opening_stock=opening_stock,
            is_archived=is_archived,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make
