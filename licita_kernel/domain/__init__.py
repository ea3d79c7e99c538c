"""
Pure domain layer.

Value objects and helpers with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.
"""

from licita_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from licita_kernel.domain.values import ZERO, quantize
from licita_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Guard",
    "Transition",
    "Workflow",
    "ZERO",
    "quantize",
]
