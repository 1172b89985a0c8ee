"""Mutable agent state, owned by one agent controller."""

from __future__ import annotations

from dataclasses import dataclass, field

from mc_autonomy.learning import SkillStore
from mc_autonomy.models import ExecutionState
from mc_autonomy.performance import PerformanceTracker
from mc_autonomy.world import ExploredMemory


@dataclass(slots=True)
class AgentContext:
    """Everything an agent remembers between ticks.

    Only the action executor mutates ``execution``; other readers use it for
    status reporting.
    """

    username: str
    skills: SkillStore
    execution: ExecutionState = field(default_factory=ExecutionState)
    tracker: PerformanceTracker = field(default_factory=PerformanceTracker)
    explored: ExploredMemory = field(default_factory=ExploredMemory)

    @classmethod
    def create(cls, username: str, *, skills_dir: str = ".", history_size: int = 20) -> AgentContext:
        return cls(
            username=username,
            skills=SkillStore(username, skills_dir),
            tracker=PerformanceTracker(max_records=history_size),
        )
