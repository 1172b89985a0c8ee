"""Priority-ladder decision making over world snapshots."""

from __future__ import annotations

from typing import Protocol

from mc_autonomy.models import ActionKind, Decision, WorldSnapshot

CRITICAL_HEALTH = 8
HUNGRY_FOOD = 6
WOOD_TARGET = 8
WOOD_FOR_TOOLS = 4


class DecisionEngine(Protocol):
    """Maps a world snapshot to exactly one decision."""

    def decide(self, snapshot: WorldSnapshot) -> Decision:
        """Return the decision for the current state."""


class PriorityDecisionEngine:
    """Survival first, then progression, then exploration.

    Rules are checked in order and the first match wins. Hunting while hungry is
    ranked above fleeing from a threat, so a hungry agent next to both an animal and
    a zombie goes for the animal.
    """

    def decide(self, snapshot: WorldSnapshot) -> Decision:
        animal = snapshot.entity("animal")
        threat = snapshot.entity("threat")
        wood = snapshot.resource("wood")
        stone = snapshot.resource("stone")
        wood_count = snapshot.wood_count
        tool_count = snapshot.tool_count

        if snapshot.health < CRITICAL_HEALTH:
            return Decision(ActionKind.SEEK_SAFETY, f"Critical health: {snapshot.health}/20")

        if snapshot.food < HUNGRY_FOOD and animal is not None:
            return Decision(
                ActionKind.HUNT_ANIMAL,
                f"Hungry ({snapshot.food}/20) - {animal.type_name} nearby",
                target=animal,
            )

        if threat is not None:
            return Decision(
                ActionKind.FLEE_DANGER,
                f"{threat.type_name} at {threat.distance:.1f}m",
                target=threat,
            )

        if wood_count < WOOD_TARGET and wood is not None:
            return Decision(
                ActionKind.COLLECT_WOOD,
                f"Need wood ({wood_count}) - {wood.type_name} available",
                target=wood,
            )

        if wood_count >= WOOD_FOR_TOOLS and tool_count == 0:
            return Decision(ActionKind.CRAFT_TOOLS, f"Have {wood_count} wood - making tools")

        if tool_count > 0 and stone is not None:
            return Decision(ActionKind.MINE_STONE, f"Have tools - mining {stone.type_name}", target=stone)

        return Decision(ActionKind.EXPLORE, "Looking for opportunities")
