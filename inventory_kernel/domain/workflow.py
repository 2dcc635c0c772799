"""
Canonical workflow types (``inventory_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for document state machines, plus the
``TransitionPolicy`` that decides what happens when a requested status
change is not one of the workflow's declared transitions.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* A policy only ever *classifies* a transition; the service decides
  whether to warn or raise based on ``enforce``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Transition:
    """A declared state transition in a workflow.

    ``moves_stock=True`` marks transitions that post ledger entries.
    """
    from_state: str
    to_state: str
    action: str
    moves_stock: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    Guarantees: ``initial_state`` is a member of ``states``.
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
                "is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action!r} references "
                    f"unknown state ({t.from_state} -> {t.to_state})"
                )

    def successors(self, state: str) -> frozenset[str]:
        return frozenset(
            t.to_state for t in self.transitions if t.from_state == state
        )


@dataclass(frozen=True)
class TransitionPolicy:
    """
    Allowed-successor table for a workflow and whether it is enforced.

    ``allowed`` maps a status value to the status values it may move to.
    A status absent from the table may move anywhere.  With
    ``enforce=False`` an out-of-table transition is reported by
    ``is_allowed`` but still carried out by the caller.
    """
    allowed: dict[str, frozenset[str]] = field(default_factory=dict)
    enforce: bool = False

    @classmethod
    def from_workflow(cls, workflow: Workflow, enforce: bool = False) -> TransitionPolicy:
        return cls(
            allowed={s: workflow.successors(s) for s in workflow.states},
            enforce=enforce,
        )

    @classmethod
    def permissive(cls) -> TransitionPolicy:
        """Every transition is in-policy."""
        return cls(allowed={}, enforce=False)

    def is_allowed(self, from_state: str, to_state: str) -> bool:
        if from_state == to_state:
            return True
        successors = self.allowed.get(from_state)
        if successors is None:
            return True
        return to_state in successors
