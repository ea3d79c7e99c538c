"""
Module: licita_kernel.db.base
Responsibility: Declarative bases for the licita ORM models.  Fixes the
    column type used for each Python annotation and adds the audit columns
    every persisted row carries.
Architecture position: Kernel > DB.  Imported by every ``orm.py``; imports
    nothing from the rest of the project.

Invariants enforced:
    - Primary keys are uuid4 values stored as 36-character strings, so the
      same schema runs on PostgreSQL and SQLite.
    - ``Decimal`` columns are Numeric(18, 4).  Money is already rounded to
      two places before it is written; quantities may be fractional.
      Float columns are never used.
    - ``TrackedBase`` rows record who created and last changed them.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """Declarative base: uuid4 primary key plus the annotation-to-column map."""

    type_annotation_map: ClassVar[dict] = {
        PyUUID: UUIDString(),
        Decimal: Numeric(18, 4, asdecimal=True),
        datetime: DateTime(timezone=True),
        date: Date,
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base with audit columns.

    ``created_at``/``updated_at`` are filled by the database;
    ``created_by_id`` is mandatory and ``updated_by_id`` is set by the
    repositories on every update.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[PyUUID] = mapped_column(nullable=False)
    updated_by_id: Mapped[PyUUID | None] = mapped_column(nullable=True)


# Re-export for ``Mapped[UUID]`` annotations in module ORM files
UUID = PyUUID
