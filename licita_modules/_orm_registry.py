"""
Module ORM Registry (``licita_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created.

Usage
-----
``licita_kernel.db.engine.create_tables()``, scripts and test fixtures call
``import_all_orm_models()`` before ``Base.metadata.create_all``.
"""


def import_all_orm_models() -> None:
    """Import every ``licita_modules.*.orm`` module (idempotent)."""
    import licita_modules.processo.orm  # noqa: F401
