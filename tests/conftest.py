"""
Pytest fixtures for the licita engine test suite.

Provides:
- Structured logging configured for the whole session, plus log capture
- A deterministic clock
- An in-memory store implementing every processo port, and the services
  wired over it
- A SQLite in-memory session for the SQLAlchemy adapter tests
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from licita_kernel.db.base import Base
from licita_kernel.domain.clock import DeterministicClock
from licita_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from licita_modules._orm_registry import import_all_orm_models
from tests.fakes import InMemoryProcessoStore, build_services

# Test actor ID for all database writes
TEST_ACTOR_ID = uuid4()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture licita_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, services):
            services.lifecycle.confirm_payment(...)
            logs = captured_logs()
            assert any(r["message"] == "payment_confirmed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("licita_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock():
    """Clock fixed at 2024-06-15 12:00 UTC."""
    return DeterministicClock(datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def empresa_id():
    return uuid4()


@pytest.fixture
def store(empresa_id):
    return InMemoryProcessoStore(empresa_id)


@pytest.fixture
def services(store, clock):
    """Services wired over the in-memory store with default config."""
    return build_services(store, clock=clock)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh SQLite in-memory database with every table created."""
    import_all_orm_models()
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(db_engine):
    """Session on the in-memory database; rolled back and closed afterwards."""
    factory = sessionmaker(bind=db_engine, expire_on_commit=False)
    session = factory()
    yield session
    session.rollback()
    session.close()
