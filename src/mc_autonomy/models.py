from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class Vec3:
    x: float
    y: float
    z: float

    def offset(self, dx: float, dy: float, dz: float) -> Vec3:
        return Vec3(self.x + dx, self.y + dy, self.z + dz)

    def distance_to(self, other: Vec3) -> float:
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2)


class ActionKind(str, Enum):
    """Actions the agent knows how to carry out."""

    SEEK_SAFETY = "seek_safety"
    HUNT_ANIMAL = "hunt_animal"
    FLEE_DANGER = "flee_danger"
    COLLECT_WOOD = "collect_wood"
    CRAFT_TOOLS = "craft_tools"
    MINE_STONE = "mine_stone"
    EXPLORE = "explore"


@dataclass(frozen=True, slots=True)
class ResourceRef:
    position: Vec3
    distance: float
    type_name: str


@dataclass(frozen=True, slots=True)
class EntityRef:
    """Nearby entity as sensed; ``handle`` lets actions re-acquire the live entity."""

    position: Vec3
    distance: float
    type_name: str
    handle: Any = field(default=None, compare=False)


def _frozen(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, slots=True)
class WorldSnapshot:
    """Everything the decision engine may look at for one tick."""

    health: float
    food: float
    is_day: bool
    position: Vec3
    inventory_counts: Mapping[str, int] = field(default_factory=dict)
    nearby_resource: Mapping[str, ResourceRef | None] = field(default_factory=dict)
    nearby_entity: Mapping[str, EntityRef | None] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "inventory_counts", _frozen(self.inventory_counts))
        object.__setattr__(self, "nearby_resource", _frozen(self.nearby_resource))
        object.__setattr__(self, "nearby_entity", _frozen(self.nearby_entity))

    @property
    def wood_count(self) -> int:
        return self.inventory_counts.get("wood", 0)

    @property
    def tool_count(self) -> int:
        return self.inventory_counts.get("tools", 0)

    def resource(self, kind: str) -> ResourceRef | None:
        return self.nearby_resource.get(kind)

    def entity(self, kind: str) -> EntityRef | None:
        return self.nearby_entity.get(kind)


@dataclass(frozen=True, slots=True)
class Decision:
    action: ActionKind
    reason: str
    target: ResourceRef | EntityRef | None = None


@dataclass(frozen=True, slots=True)
class ActionResult:
    success: bool
    details: str


@dataclass(slots=True)
class ExecutionRecord:
    action: ActionKind
    success: bool
    duration_ms: float
    details: str
    timestamp_ms: int = field(default_factory=lambda: int(time.time() * 1000))


@dataclass(slots=True)
class SkillRecord:
    attempts: int = 0
    successes: int = 0

    @property
    def success_rate(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.successes / self.attempts


@dataclass(slots=True)
class ExecutionState:
    """Single-flight gate for action execution. Only the executor mutates it."""

    is_executing: bool = False
    current_action: ActionKind | None = None
    action_started_at: float | None = None

    def begin(self, action: ActionKind) -> None:
        self.is_executing = True
        self.current_action = action
        self.action_started_at = time.monotonic()

    def clear(self) -> None:
        self.is_executing = False
        self.current_action = None


def context_key(action: ActionKind, snapshot: WorldSnapshot) -> str:
    """Coarse bucket used for skill statistics."""
    return f"{action.value}_{snapshot.wood_count}_{snapshot.tool_count}"
