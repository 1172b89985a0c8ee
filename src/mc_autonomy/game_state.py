"""Builds per-tick world snapshots from a live world view."""

from __future__ import annotations

import logging
import math

from mc_autonomy.adapters.game_interface import (
    ANIMALS,
    FOOD_ITEMS,
    STONE_BLOCKS,
    THREATS,
    TOOL_ITEMS,
    WOOD_ITEMS,
    WOOD_LOGS,
    WorldView,
    count_items,
)
from mc_autonomy.models import EntityRef, ResourceRef, Vec3, WorldSnapshot

DAY_LENGTH_TICKS = 12_000
SCAN_STEP = 2
SCAN_VERTICAL = 2

logger = logging.getLogger("mc_autonomy.game_state")


class SnapshotBuilder:
    """Reads vitals, inventory and surroundings into an immutable ``WorldSnapshot``."""

    def __init__(self, *, block_radius: int = 20, entity_radius: float = 15.0) -> None:
        self._block_radius = block_radius
        self._entity_radius = entity_radius

    def build(self, world: WorldView) -> WorldSnapshot | None:
        position = world.position
        if position is None:
            return None

        return WorldSnapshot(
            health=world.health,
            food=world.food,
            is_day=world.time_of_day < DAY_LENGTH_TICKS,
            position=position,
            inventory_counts={
                "wood": self._count(world, WOOD_ITEMS),
                "tools": self._count(world, TOOL_ITEMS),
                "food": self._count(world, FOOD_ITEMS),
                "stone": self._count(world, STONE_BLOCKS),
            },
            nearby_resource={
                "wood": self.find_nearest_block(world, position, WOOD_LOGS),
                "stone": self.find_nearest_block(world, position, STONE_BLOCKS),
            },
            nearby_entity={
                "animal": self.find_nearest_entity(world, position, ANIMALS),
                "threat": self.find_nearest_entity(world, position, THREATS),
            },
        )

    def find_nearest_block(self, world: WorldView, origin: Vec3, names: tuple[str, ...]) -> ResourceRef | None:
        """Scan a cube around ``origin``; ties keep the first cell in scan order."""
        radius = self._block_radius
        nearest: ResourceRef | None = None
        nearest_distance = float(radius)

        for dx in range(-radius, radius + 1, SCAN_STEP):
            for dz in range(-radius, radius + 1, SCAN_STEP):
                for dy in range(-SCAN_VERTICAL, SCAN_VERTICAL + 1):
                    try:
                        check = origin.offset(dx, dy, dz)
                        block = world.block_at(check)
                    except Exception:  # noqa: BLE001 - unloaded chunks count as empty cells.
                        continue
                    if block is None or block.name not in names:
                        continue
                    distance = math.sqrt(dx * dx + dy * dy + dz * dz)
                    if distance < nearest_distance:
                        nearest = ResourceRef(position=check, distance=distance, type_name=block.name)
                        nearest_distance = distance

        return nearest

    def find_nearest_entity(self, world: WorldView, origin: Vec3, names: tuple[str, ...]) -> EntityRef | None:
        try:
            roster = world.entities()
        except Exception:  # noqa: BLE001
            logger.debug("entity_roster_unavailable", exc_info=True)
            return None

        nearest: EntityRef | None = None
        nearest_distance = self._entity_radius
        for entity in roster:
            if not entity.name or entity.position is None or entity.name not in names:
                continue
            distance = origin.distance_to(entity.position)
            if distance < nearest_distance:
                nearest = EntityRef(
                    position=entity.position,
                    distance=distance,
                    type_name=entity.name,
                    handle=entity.handle,
                )
                nearest_distance = distance
        return nearest

    @staticmethod
    def _count(world: WorldView, names: tuple[str, ...]) -> int:
        try:
            return count_items(world, names)
        except Exception:  # noqa: BLE001
            logger.debug("inventory_unavailable", exc_info=True)
            return 0
