"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("FRONTEND_BASE_URL", "http://localhost:3000")
os.environ.setdefault("SECRET_KEY", "secret-key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test")
os.environ.setdefault("IDENTITY_JWT_ALGORITHMS", '["HS256"]')

# Ensure the app package is importable when tests run from the repo root.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.append(str(BACKEND_ROOT))

from app.db.base import Base  # noqa: E402
from app.models.catalog.breakdown_model import Breakdown  # noqa: E402
from app.models.catalog.course_model import Course  # noqa: E402
from app.models.catalog.instructor_model import Instructor  # noqa: E402
from app.models.commerce.purchase_model import Purchase  # noqa: E402
from app.models.commerce.subscription_model import Subscription  # noqa: E402
from app.models.progress.breakdown_watch_model import BreakdownWatch  # noqa: E402
from app.models.progress.enrollment_model import Enrollment  # noqa: E402
from app.models.user.user_model import User  # noqa: E402


TABLES = [
    User.__table__,
    Instructor.__table__,
    Course.__table__,
    Breakdown.__table__,
    Purchase.__table__,
    Subscription.__table__,
    Enrollment.__table__,
    BreakdownWatch.__table__,
]


@pytest.fixture()
def engine():
    # A single shared connection keeps the in-memory database alive across sessions.
    engine = create_engine(
        "sqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=TABLES)
        engine.dispose()


@pytest.fixture()
def db_session(engine) -> Session:
    SessionLocal = sessionmaker(bind=engine, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
