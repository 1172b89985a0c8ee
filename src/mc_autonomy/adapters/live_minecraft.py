"""Live Minecraft adapters backed by mineflayer.

The Node ``mineflayer`` and ``mineflayer-pathfinder`` packages are driven through the
``javascript`` bridge (JSPyBridge). The bridge is imported lazily so the agent core and
its tests run where Node is not available.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
import threading
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Callable

from mc_autonomy.adapters.game_interface import BackendUnavailableError, BlockInfo, EntityInfo, ItemStack
from mc_autonomy.models import Vec3

logger = logging.getLogger("mc_autonomy.adapters.live_minecraft")

CRAFTING_TABLE_REACH = 4


class MineflayerUnavailableError(BackendUnavailableError):
    """Raised when the JS bridge or the mineflayer packages cannot be loaded."""


def _resolve_bridge() -> ModuleType:
    try:
        module = importlib.import_module("javascript")
    except Exception as exc:  # noqa: BLE001
        raise MineflayerUnavailableError(
            "Unable to import the javascript bridge. Install it with: pip install 'mc-autonomy[live]'"
        ) from exc

    if not callable(getattr(module, "require", None)) or not callable(getattr(module, "On", None)):
        raise MineflayerUnavailableError("Imported javascript bridge but found no require/On API.")
    return module


def _to_vec3(raw: Any) -> Vec3 | None:
    if raw is None:
        return None
    return Vec3(float(raw.x), float(raw.y), float(raw.z))


class MineflayerWorld:
    """WorldView over a mineflayer bot proxy."""

    def __init__(self, bot: Any, bridge: ModuleType) -> None:
        self._bot = bot
        self._bridge = bridge
        self._vec3 = bridge.require("vec3")

    @property
    def health(self) -> float:
        return float(self._bot.health or 0)

    @property
    def food(self) -> float:
        return float(self._bot.food or 0)

    @property
    def time_of_day(self) -> int:
        return int(self._bot.time.timeOfDay)

    @property
    def position(self) -> Vec3 | None:
        entity = self._bot.entity
        if entity is None:
            return None
        return _to_vec3(entity.position)

    def inventory_slots(self) -> list[ItemStack]:
        stacks: list[ItemStack] = []
        for slot in self._bot.inventory.slots:
            if slot is None:
                continue
            stacks.append(ItemStack(name=str(slot.name), count=int(slot.count)))
        return stacks

    def block_at(self, position: Vec3) -> BlockInfo | None:
        block = self._bot.blockAt(self._vec3(position.x, position.y, position.z))
        if block is None:
            return None
        return BlockInfo(name=str(block.name), position=position, handle=block)

    def entities(self) -> list[EntityInfo]:
        roster: list[EntityInfo] = []
        for entity in self._bridge.globalThis.Object.values(self._bot.entities):
            if entity is None:
                continue
            name = entity.name
            roster.append(
                EntityInfo(
                    name=str(name) if name is not None else None,
                    position=_to_vec3(entity.position),
                    handle=entity,
                )
            )
        return roster


class MineflayerActuator:
    """Actuator over mineflayer + pathfinder.

    ``goal_reached`` is subscribed once; pending one-shot callbacks are drained on each
    signal. Callbacks fire on the bridge thread.
    """

    def __init__(self, bot: Any, bridge: ModuleType, goals: Any) -> None:
        self._bot = bot
        self._bridge = bridge
        self._goals = goals
        self._lock = threading.Lock()
        self._waiters: list[Callable[[], None]] = []

        @bridge.On(bot, "goal_reached")
        def _on_goal_reached(*_args: Any) -> None:
            with self._lock:
                pending, self._waiters = self._waiters, []
            for callback in pending:
                callback()

    def set_goal(self, position: Vec3, tolerance: float) -> None:
        goal = self._goals.GoalNear(position.x, position.y, position.z, tolerance)
        self._bot.pathfinder.setGoal(goal)

    def cancel_goal(self) -> None:
        self._bot.pathfinder.setGoal(None)

    def on_goal_reached(self, callback: Callable[[], None]) -> Callable[[], None]:
        with self._lock:
            self._waiters.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._waiters:
                    self._waiters.remove(callback)

        return _unsubscribe

    async def break_block(self, block: BlockInfo) -> None:
        await asyncio.to_thread(self._bot.dig, block.handle)

    async def craft(self, item_name: str, count: int) -> None:
        await asyncio.to_thread(self._craft_sync, item_name, count)

    def _craft_sync(self, item_name: str, count: int) -> None:
        item = self._bot.registry.itemsByName[item_name]
        if item is None:
            raise RuntimeError(f"Unknown item: {item_name}")
        table = self._nearby_crafting_table()
        recipes = self._bot.recipesFor(item.id, None, 1, table)
        if recipes is None or len(recipes) == 0:
            where = "at the crafting table" if table is not None else "without a crafting table in reach"
            raise RuntimeError(f"No recipe available for {item_name} {where}")
        self._bot.craft(recipes[0], count, table)

    def _nearby_crafting_table(self) -> Any:
        """Crafting table block within reach, or ``None``; 3x3 recipes need one."""
        block_type = self._bot.registry.blocksByName["crafting_table"]
        if block_type is None:
            return None
        return self._bot.findBlock({"matching": block_type.id, "maxDistance": CRAFTING_TABLE_REACH})

    def attack(self, handle: Any) -> None:
        self._bot.attack(handle)


class MineflayerChat:
    def __init__(self, bot: Any) -> None:
        self._bot = bot

    def say(self, message: str) -> None:
        self._bot.chat(message)


@dataclass(slots=True)
class MineflayerConnection:
    """A single mineflayer bot session bridged onto the asyncio loop."""

    username: str
    bot: Any
    world: MineflayerWorld
    actuator: MineflayerActuator
    chat: MineflayerChat
    spawned: asyncio.Event = field(default_factory=asyncio.Event)
    ended: asyncio.Event = field(default_factory=asyncio.Event)
    chat_handlers: list[Callable[[str, str], None]] = field(default_factory=list)

    def on_chat(self, callback: Callable[[str, str], None]) -> None:
        self.chat_handlers.append(callback)

    def close(self) -> None:
        try:
            self.bot.quit()
        except Exception:  # noqa: BLE001 - already disconnected bots may refuse to quit.
            logger.debug("bot_quit_failed", exc_info=True)


@dataclass(slots=True)
class MineflayerConnector:
    """Creates mineflayer bots configured for autonomous play."""

    host: str = "localhost"
    port: int = 25565
    username: str = "AutonomousAI"
    version: str = "1.20.2"
    auth: str = "offline"

    def connect(self) -> MineflayerConnection:
        bridge = _resolve_bridge()
        loop = asyncio.get_running_loop()
        try:
            mineflayer = bridge.require("mineflayer")
            pathfinder = bridge.require("mineflayer-pathfinder")
        except Exception as exc:  # noqa: BLE001
            raise MineflayerUnavailableError(f"Unable to load mineflayer packages: {exc}") from exc

        bot = mineflayer.createBot(
            {
                "host": self.host,
                "port": self.port,
                "username": self.username,
                "auth": self.auth,
                "version": self.version,
            }
        )
        bot.loadPlugin(pathfinder.pathfinder)

        connection = MineflayerConnection(
            username=self.username,
            bot=bot,
            world=MineflayerWorld(bot, bridge),
            actuator=MineflayerActuator(bot, bridge, pathfinder.goals),
            chat=MineflayerChat(bot),
        )

        @bridge.On(bot, "spawn")
        def _on_spawn(*_args: Any) -> None:
            movements = pathfinder.Movements(bot)
            movements.canDig = True
            movements.maxDropDown = 4
            bot.pathfinder.setMovements(movements)
            loop.call_soon_threadsafe(connection.spawned.set)

        @bridge.On(bot, "end")
        def _on_end(*_args: Any) -> None:
            loop.call_soon_threadsafe(connection.ended.set)

        @bridge.On(bot, "error")
        def _on_error(_this: Any, err: Any, *_args: Any) -> None:
            logger.warning("bot_error", extra={"error": str(getattr(err, "message", err))})

        @bridge.On(bot, "chat")
        def _on_chat(_this: Any, sender: Any, message: Any, *_args: Any) -> None:
            for handler in list(connection.chat_handlers):
                loop.call_soon_threadsafe(handler, str(sender), str(message))

        logger.info("bot_connecting", extra={"host": self.host, "port": self.port, "username": self.username})
        return connection
