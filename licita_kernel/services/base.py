"""
BaseService -- abstract base for session-backed write services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every persistence-backed writer.  Concrete services receive a
    SQLAlchemy ``Session`` that they use via ``session.flush()`` --
    never ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or rollback themselves.  The caller (``session_scope``
    or a test harness) owns commit/rollback.

Failure modes:
    - If a subclass calls ``session.commit()`` the all-or-nothing guarantee
      of payment confirmation is broken.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for session-backed writers.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session
