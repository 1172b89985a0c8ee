"""Boundary between the agent core and a running game client."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from mc_autonomy.models import Vec3

WOOD_LOGS = ("oak_log", "birch_log", "spruce_log")
WOOD_ITEMS = (*WOOD_LOGS, "oak_planks")
TOOL_ITEMS = ("wooden_pickaxe", "stone_pickaxe", "wooden_axe")
FOOD_ITEMS = ("beef", "porkchop", "chicken", "bread", "cooked_beef")
STONE_BLOCKS = ("stone", "cobblestone")
ANIMALS = ("cow", "pig", "chicken", "sheep")
THREATS = ("zombie", "skeleton", "creeper")


@dataclass(slots=True)
class ItemStack:
    name: str
    count: int


@dataclass(slots=True)
class BlockInfo:
    name: str
    position: Vec3
    handle: Any = field(default=None, compare=False)


@dataclass(slots=True)
class EntityInfo:
    name: str | None
    position: Vec3 | None
    handle: Any = field(default=None, compare=False)


class WorldView(Protocol):
    """Read-only view of what the agent can currently perceive."""

    @property
    def health(self) -> float: ...

    @property
    def food(self) -> float: ...

    @property
    def time_of_day(self) -> int: ...

    @property
    def position(self) -> Vec3 | None:
        """Agent position, or ``None`` while not spawned."""

    def inventory_slots(self) -> list[ItemStack]: ...

    def block_at(self, position: Vec3) -> BlockInfo | None: ...

    def entities(self) -> list[EntityInfo]: ...


class Actuator(Protocol):
    """Commands the agent can issue. Failures surface as exceptions."""

    def set_goal(self, position: Vec3, tolerance: float) -> None: ...

    def cancel_goal(self) -> None: ...

    def on_goal_reached(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a one-shot goal-reached callback and return its unsubscribe function."""

    async def break_block(self, block: BlockInfo) -> None: ...

    async def craft(self, item_name: str, count: int) -> None: ...

    def attack(self, handle: Any) -> None: ...


class ChatChannel(Protocol):
    def say(self, message: str) -> None: ...


class BotConnection(Protocol):
    """One live connection to a server, from login until disconnect."""

    username: str
    world: WorldView
    actuator: Actuator
    chat: ChatChannel
    spawned: asyncio.Event
    ended: asyncio.Event

    def on_chat(self, callback: Callable[[str, str], None]) -> None: ...

    def close(self) -> None: ...


class Connector(Protocol):
    def connect(self) -> BotConnection: ...


class BackendUnavailableError(RuntimeError):
    """Raised by connectors whose game client backend cannot be loaded at all."""


def count_items(world: WorldView, names: tuple[str, ...]) -> int:
    """Total stack count across inventory slots whose item is in ``names``."""
    return sum(stack.count for stack in world.inventory_slots() if stack and stack.name in names)
