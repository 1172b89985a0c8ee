from __future__ import annotations

import asyncio
import sys
import types

import pytest

from mc_autonomy.adapters.live_minecraft import (
    MineflayerActuator,
    MineflayerConnector,
    MineflayerUnavailableError,
    MineflayerWorld,
)
from mc_autonomy.models import Vec3


def _emit(emitter, event: str, *args) -> None:
    for handler in emitter.handlers.get(event, []):
        handler(emitter, *args)


class _FakeBot(types.SimpleNamespace):
    def __init__(self, options: dict) -> None:
        super().__init__()
        self.options = options
        self.handlers: dict[str, list] = {}
        self.plugins: list = []
        self.goals: list = []
        self.said: list[str] = []
        self.movements = None
        self.health = 18
        self.food = 7
        self.time = types.SimpleNamespace(timeOfDay=14_000)
        self.entity = types.SimpleNamespace(position=types.SimpleNamespace(x=1.5, y=64.0, z=-2.0))
        self.inventory = types.SimpleNamespace(
            slots=[None, types.SimpleNamespace(name="oak_log", count=3), None]
        )
        self.entities = {
            "7": types.SimpleNamespace(name="cow", position=types.SimpleNamespace(x=4, y=64, z=0)),
            "8": types.SimpleNamespace(name=None, position=None),
        }
        self.pathfinder = types.SimpleNamespace(
            setGoal=self.goals.append,
            setMovements=self._set_movements,
        )

    def _set_movements(self, movements) -> None:
        self.movements = movements

    def loadPlugin(self, plugin) -> None:
        self.plugins.append(plugin)

    def blockAt(self, vec):
        if vec == (3, 64, 0):
            return types.SimpleNamespace(name="oak_log")
        return None

    def chat(self, message: str) -> None:
        self.said.append(message)

    def quit(self) -> None:
        self.quit_called = True


def _fake_bridge() -> types.SimpleNamespace:
    bots: list[_FakeBot] = []

    def create_bot(options):
        bot = _FakeBot(options)
        bots.append(bot)
        return bot

    modules = {
        "mineflayer": types.SimpleNamespace(createBot=create_bot),
        "mineflayer-pathfinder": types.SimpleNamespace(
            pathfinder="pathfinder-plugin",
            goals=types.SimpleNamespace(GoalNear=lambda x, y, z, r: ("near", x, y, z, r)),
            Movements=lambda bot: types.SimpleNamespace(canDig=False, maxDropDown=1),
        ),
        "vec3": lambda x, y, z: (x, y, z),
    }

    def on(emitter, event):
        def _register(fn):
            emitter.handlers.setdefault(event, []).append(fn)
            return fn

        return _register

    return types.SimpleNamespace(
        require=modules.__getitem__,
        On=on,
        globalThis=types.SimpleNamespace(Object=types.SimpleNamespace(values=lambda obj: list(obj.values()))),
        bots=bots,
    )


def test_connector_creates_configured_bot(monkeypatch) -> None:
    bridge = _fake_bridge()
    monkeypatch.setitem(sys.modules, "javascript", bridge)

    async def _run():
        connector = MineflayerConnector(host="mc.local", port=25570, username="Robo")
        connection = connector.connect()
        bot = bridge.bots[0]
        _emit(bot, "spawn")
        await asyncio.wait_for(connection.spawned.wait(), timeout=1)

        received = []
        connection.on_chat(lambda sender, message: received.append((sender, message)))
        _emit(bot, "chat", "Steve", "hi Robo?")
        _emit(bot, "end")
        await asyncio.wait_for(connection.ended.wait(), timeout=1)
        return connection, bot, received

    connection, bot, received = asyncio.run(_run())

    assert bot.options == {
        "host": "mc.local",
        "port": 25570,
        "username": "Robo",
        "auth": "offline",
        "version": "1.20.2",
    }
    assert bot.plugins == ["pathfinder-plugin"]
    assert bot.movements.canDig is True
    assert bot.movements.maxDropDown == 4
    assert received == [("Steve", "hi Robo?")]

    connection.chat.say("hello")
    assert bot.said == ["hello"]


def test_world_view_reads_bot_state() -> None:
    bridge = _fake_bridge()
    bot = _FakeBot({})
    world = MineflayerWorld(bot, bridge)

    assert world.health == 18
    assert world.food == 7
    assert world.time_of_day == 14_000
    assert world.position == Vec3(1.5, 64.0, -2.0)
    assert [(stack.name, stack.count) for stack in world.inventory_slots()] == [("oak_log", 3)]
    block = world.block_at(Vec3(3, 64, 0))
    assert block is not None
    assert block.name == "oak_log"
    assert world.block_at(Vec3(0, 0, 0)) is None
    names = [entity.name for entity in world.entities()]
    assert names == ["cow", None]

    bot.entity = None
    assert world.position is None


def test_actuator_goals_and_one_shot_callbacks() -> None:
    bridge = _fake_bridge()
    bot = _FakeBot({})
    actuator = MineflayerActuator(bot, bridge, bridge.require("mineflayer-pathfinder").goals)
    hits: list[str] = []

    actuator.set_goal(Vec3(1, 2, 3), 1)
    actuator.cancel_goal()
    unsubscribe_a = actuator.on_goal_reached(lambda: hits.append("a"))
    actuator.on_goal_reached(lambda: hits.append("b"))
    unsubscribe_a()
    _emit(bot, "goal_reached")
    _emit(bot, "goal_reached")

    assert bot.goals == [("near", 1, 2, 3, 1), None]
    assert hits == ["b"]


def test_missing_bridge_raises(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "javascript", None)

    async def _run():
        MineflayerConnector().connect()

    with pytest.raises(MineflayerUnavailableError):
        asyncio.run(_run())


class _CraftingBot(_FakeBot):
    def __init__(self, *, table) -> None:
        super().__init__({})
        self.table = table
        self.searches: list[dict] = []
        self.crafts: list[tuple] = []
        self.registry = types.SimpleNamespace(
            itemsByName={"wooden_pickaxe": types.SimpleNamespace(id=585)},
            blocksByName={"crafting_table": types.SimpleNamespace(id=182)},
        )

    def findBlock(self, options):
        self.searches.append(options)
        return self.table

    def recipesFor(self, item_id, metadata, min_count, table):
        # 3x3 recipes are only offered at a crafting table.
        return [("recipe", item_id)] if table is not None else []

    def craft(self, recipe, count, table) -> None:
        self.crafts.append((recipe, count, table))


def test_craft_uses_crafting_table_in_reach() -> None:
    bridge = _fake_bridge()
    table = types.SimpleNamespace(name="crafting_table")
    bot = _CraftingBot(table=table)
    actuator = MineflayerActuator(bot, bridge, bridge.require("mineflayer-pathfinder").goals)

    asyncio.run(actuator.craft("wooden_pickaxe", 1))

    assert bot.searches == [{"matching": 182, "maxDistance": 4}]
    assert bot.crafts == [(("recipe", 585), 1, table)]


def test_craft_without_table_reports_missing_recipe() -> None:
    bridge = _fake_bridge()
    bot = _CraftingBot(table=None)
    actuator = MineflayerActuator(bot, bridge, bridge.require("mineflayer-pathfinder").goals)

    with pytest.raises(RuntimeError, match="without a crafting table in reach"):
        asyncio.run(actuator.craft("wooden_pickaxe", 1))
    assert bot.crafts == []
