"""
Module: licita_kernel.db.engine
Responsibility: The process-wide SQLAlchemy engine, its session factory and
    the ``session_scope()`` transaction boundary used by scripts and callers
    of the processo services.
Architecture position: Kernel > DB.  Imports only db/base.py, plus the
    module ORM registry inside ``create_tables``.

Invariants enforced:
    - PostgreSQL (psycopg) in production: pooled connections with pre-ping,
      READ COMMITTED.  ``sqlite`` URLs get one shared connection so an
      in-memory database survives across sessions.
    - ``session_scope()`` commits only when its block completes; any
      exception rolls back everything the block flushed.  Payment
      confirmation relies on this to stay all-or-nothing.

Failure modes:
    - RuntimeError from ``get_engine``/``get_session`` before
      ``init_engine_from_url``.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from licita_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _engine_options(
    database_url: str,
    pool_size: int,
    max_overflow: int,
    pool_pre_ping: bool,
    pool_recycle: int,
) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": pool_pre_ping,
        "pool_recycle": pool_recycle,
        "isolation_level": "READ COMMITTED",
    }


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
    pool_pre_ping: bool = True,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the engine for ``database_url``, replacing any previous one.

    Pool arguments apply to server databases only.

    Example URLs: ``postgresql+psycopg://licita:secret@db/licita``,
    ``sqlite:///licita.db``, ``sqlite:///:memory:``.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    _engine = create_engine(
        database_url,
        echo=echo,
        **_engine_options(database_url, pool_size, max_overflow, pool_pre_ping, pool_recycle),
    )
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info("engine_initialized", extra={"dialect": _engine.dialect.name, "echo": echo})
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """A new session from the current factory.  The caller closes it."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    One transaction: commit on success, roll back and re-raise on error.

    Usage:
        with session_scope() as session:
            services = build_processo_services(session, actor_id)
            services.lifecycle.confirm_payment(empresa_id, processo_id)
    """
    session = get_session()
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every table of the registered ORM models."""
    from licita_kernel.db.base import Base
    from licita_modules._orm_registry import import_all_orm_models

    import_all_orm_models()
    Base.metadata.create_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory.  For tests."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
