import os

# In-memory settings before importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite://")

from collections.abc import Callable, Generator
from datetime import datetime
from itertools import count
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from jobmarket.database import get_db
from jobmarket.main import app
from jobmarket.models import Base, Job
from jobmarket.services import dynamic_options, exchange_rate_service


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """API client bound to the test database."""

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def isolated_caches(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Empty module caches and no real exchange-rate requests."""

    def offline(*args: Any, **kwargs: Any) -> None:
        raise httpx.ConnectError("network disabled in tests")

    monkeypatch.setattr(exchange_rate_service.httpx, "get", offline)
    exchange_rate_service.clear_cache()
    dynamic_options.clear_cache()
    yield
    exchange_rate_service.clear_cache()
    dynamic_options.clear_cache()


@pytest.fixture
def make_job(db_session: Session) -> Callable[..., Job]:
    """Factory for committed Job rows with sensible defaults."""
    ids = count(1)

    def _make_job(**fields: Any) -> Job:
        n = next(ids)
        fields.setdefault("external_id", f"ext-{n}")
        fields.setdefault("title", f"Job {n}")
        fields.setdefault("first_seen_date", datetime(2025, 1, 1))
        fields.setdefault("last_updated", fields["first_seen_date"])
        job = Job(**fields)
        db_session.add(job)
        db_session.commit()
        db_session.refresh(job)
        return job

    return _make_job
