"""
Canonical workflow types (``licita_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for workflow state machines.  Guard, Transition and
Workflow are defined once and used by every module that owns a lifecycle.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* An ``(action, from_state)`` pair resolves to at most one transition.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the owning service does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``to_state == from_state`` marks an action that is legal in a state
    without moving the document (e.g. recording a payment).
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    ``terminal_states`` are states with no outgoing status-changing
    transitions other than archival.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                f"is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action} "
                    f"{t.from_state}->{t.to_state} references an unknown state"
                )
        seen: set[tuple[str, str]] = set()
        for t in self.transitions:
            key = (t.action, t.from_state)
            if key in seen:
                raise ValueError(
                    f"Workflow {self.name}: action {t.action!r} is declared "
                    f"twice from {t.from_state!r}"
                )
            seen.add(key)

    def transition_for(self, action: str, from_state: str) -> Transition | None:
        """Return the transition for ``action`` out of ``from_state``, if legal."""
        for t in self.transitions:
            if t.action == action and t.from_state == from_state:
                return t
        return None

    def sources_for(self, action: str) -> tuple[str, ...]:
        """States from which ``action`` may fire."""
        return tuple(t.from_state for t in self.transitions if t.action == action)

    def targets_from(self, from_state: str) -> tuple[str, ...]:
        """Distinct states reachable in one step from ``from_state``."""
        targets: list[str] = []
        for t in self.transitions:
            if t.from_state == from_state and t.to_state != from_state:
                if t.to_state not in targets:
                    targets.append(t.to_state)
        return tuple(targets)
