"""
Shared fixtures: portal settings, scripted HTTP double, in-memory ledger DB.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import PortalSettings
from db.session import ensure_schema
from tests.fakes import BASE_URL, RoutedHTTP


@pytest.fixture()
def portal_settings() -> PortalSettings:
    return PortalSettings(
        base_url=BASE_URL,
        email="bot@example.com",
        password="s3cret",
        user_agent="pytest-agent",
        timeout_seconds=5.0,
        max_empty_attempts=2,
        claim_workers=4,
    )


@pytest.fixture()
def http() -> RoutedHTTP:
    return RoutedHTTP()


@pytest.fixture()
def session_factory() -> Iterator[sessionmaker[Session]]:
    """In-memory SQLite ledger database with the schema created."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    ensure_schema(engine)
    factory = sessionmaker(bind=engine, class_=Session, expire_on_commit=False)
    yield factory
    engine.dispose()
