"""
Licita Kernel - shared infrastructure for the bid lifecycle engine.

Provides:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Injectable clock and workflow value objects
- SQLAlchemy declarative base, engine and transaction scope
"""

__version__ = "0.1.0"
