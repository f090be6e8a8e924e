"""
Supervisor selection for automatic assignment. The engine computes per-supervisor
load and hands the candidates to an AssignmentPolicy; swapping the policy changes
who gets picked without touching the transaction logic.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Sequence
from uuid import UUID


@dataclass(frozen=True)
class SupervisorLoad:
    supervisor_id: UUID
    name: str
    email: str
    is_active: bool
    created_at: datetime
    load: int


class AssignmentPolicy(Protocol):
    def choose(self, candidates: Sequence[SupervisorLoad]) -> Optional[SupervisorLoad]:
        ...


class LeastLoadedPolicy:
    """Fewest current assignments wins; ties go to the earliest-registered supervisor."""

    def choose(self, candidates: Sequence[SupervisorLoad]) -> Optional[SupervisorLoad]:
        if not candidates:
            return None
        return min(candidates, key=lambda c: (c.load, c.created_at, str(c.supervisor_id)))
