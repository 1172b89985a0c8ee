"""Single-flight execution of agent decisions with outcome verification."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from mc_autonomy.adapters.game_interface import (
    STONE_BLOCKS,
    WOOD_LOGS,
    Actuator,
    ChatChannel,
    WorldView,
    count_items,
)
from mc_autonomy.context import AgentContext
from mc_autonomy.models import (
    ActionKind,
    ActionResult,
    Decision,
    EntityRef,
    ResourceRef,
    Vec3,
    WorldSnapshot,
    context_key,
)
from mc_autonomy.movement import MovementWaiter

HUNT_REACQUIRE_RADIUS = 5.0
MIN_LOGS_FOR_TOOLS = 3


@dataclass(slots=True)
class ActionTimings:
    """Per-action movement timeouts (ms), arrival tolerances and the pickup settle delay."""

    collect_wood_timeout_ms: float = 12_000
    hunt_timeout_ms: float = 8_000
    mine_stone_timeout_ms: float = 12_000
    seek_safety_timeout_ms: float = 10_000
    flee_timeout_ms: float = 6_000
    explore_timeout_ms: float = 15_000
    settle_seconds: float = 2.0
    block_tolerance: float = 1
    hunt_tolerance: float = 2
    escape_tolerance: float = 3
    explore_tolerance: float = 5
    safety_offset: float = 10
    explore_offset: float = 20


class ActionExecutor:
    """Runs one decision at a time against the actuator and learns from the result."""

    def __init__(
        self,
        context: AgentContext,
        world: WorldView,
        actuator: Actuator,
        *,
        chat: ChatChannel | None = None,
        waiter: MovementWaiter | None = None,
        timings: ActionTimings | None = None,
        save_every: int = 10,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._context = context
        self._world = world
        self._actuator = actuator
        self._chat = chat
        self._waiter = waiter or MovementWaiter(actuator)
        self._timings = timings or ActionTimings()
        self._save_every = save_every
        self._rng = rng or random.Random()
        self._logger = logger or logging.getLogger("mc_autonomy.action_runtime")
        self._pending_saves: set[asyncio.Task[None]] = set()

        self._routines: dict[ActionKind, Callable[[Decision], Awaitable[ActionResult]]] = {
            ActionKind.COLLECT_WOOD: self._collect_wood,
            ActionKind.CRAFT_TOOLS: self._craft_tools,
            ActionKind.HUNT_ANIMAL: self._hunt_animal,
            ActionKind.MINE_STONE: self._mine_stone,
            ActionKind.SEEK_SAFETY: self._seek_safety,
            ActionKind.FLEE_DANGER: self._flee_danger,
            ActionKind.EXPLORE: self._explore,
        }

    @property
    def context(self) -> AgentContext:
        return self._context

    async def execute(self, decision: Decision, snapshot: WorldSnapshot) -> ActionResult | None:
        """Run ``decision``; returns ``None`` when another action is still in flight."""
        execution = self._context.execution
        if execution.is_executing:
            self._logger.warning(
                "action_skipped_busy",
                extra={"action": decision.action.value, "current_action": str(execution.current_action)},
            )
            return None

        execution.begin(decision.action)
        started = time.monotonic()
        try:
            self._logger.info("action_started", extra={"action": decision.action.value, "reason": decision.reason})
            self._say(f"🎯 {decision.action.value}")

            result = await self._run_routine(decision)
            duration_ms = (time.monotonic() - started) * 1000

            self._context.tracker.record_result(decision.action, result.success, duration_ms, result.details)
            self._context.skills.record(context_key(decision.action, snapshot), result.success)
            if self._context.tracker.total_actions % self._save_every == 0:
                self._schedule_save()

            if result.success:
                self._logger.info("action_succeeded", extra={"action": decision.action.value, "details": result.details})
                self._say(f"✅ {result.details}")
            else:
                self._logger.info("action_failed", extra={"action": decision.action.value, "details": result.details})
                self._say(f"❌ {result.details}")
            return result
        finally:
            execution.clear()

    async def flush_saves(self) -> None:
        """Wait for any in-flight background skill saves."""
        if self._pending_saves:
            await asyncio.gather(*self._pending_saves, return_exceptions=True)

    async def _run_routine(self, decision: Decision) -> ActionResult:
        routine = self._routines.get(decision.action, self._explore)
        try:
            return await routine(decision)
        except Exception as exc:  # noqa: BLE001 - actuator faults become failed results.
            self._logger.exception("action_crashed", extra={"action": decision.action.value})
            return ActionResult(False, f"{type(exc).__name__}: {exc}")

    def _schedule_save(self) -> None:
        task = asyncio.create_task(self._save_skills(), name="skill-save")
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    async def _save_skills(self) -> None:
        skills = self._context.skills
        # Snapshot on the loop so the writer thread never sees a map being mutated.
        snapshot = skills.snapshot()
        try:
            await asyncio.to_thread(skills.save, snapshot)
        except Exception:  # noqa: BLE001 - a missed save is retried on the next interval.
            self._logger.exception("skill_save_failed", extra={"path": str(skills.path)})

    def _say(self, message: str) -> None:
        if self._chat is None:
            return
        try:
            self._chat.say(message)
        except Exception:  # noqa: BLE001
            self._logger.debug("chat_send_failed", exc_info=True)

    def _position(self) -> Vec3:
        position = self._world.position
        if position is None:
            raise RuntimeError("Agent is not spawned")
        return position

    async def _move_to(self, position: Vec3, tolerance: float, timeout_ms: float) -> bool:
        return await self._waiter.move_to(position, tolerance, timeout_ms)

    async def _harvest(
        self,
        target: ResourceRef,
        *,
        accepts: Callable[[str], bool],
        counted: tuple[str, ...],
        timeout_ms: float,
        unreachable: str,
        empty: str,
        noun: str,
        verb: str,
    ) -> ActionResult:
        before = count_items(self._world, counted)
        if not await self._move_to(target.position, self._timings.block_tolerance, timeout_ms):
            return ActionResult(False, unreachable)

        try:
            # The block may have changed between sensing and arrival.
            block = self._world.block_at(target.position)
            if block is not None and accepts(block.name):
                await self._actuator.break_block(block)
                await self._waiter.settle(self._timings.settle_seconds)

                gained = count_items(self._world, counted) - before
                if gained > 0:
                    return ActionResult(True, f"{verb} {gained} {noun}")
        except Exception as exc:  # noqa: BLE001
            return ActionResult(False, f"Mining failed: {exc}")

        return ActionResult(False, empty)

    async def _collect_wood(self, decision: Decision) -> ActionResult:
        target = _require_target(decision, ResourceRef)
        return await self._harvest(
            target,
            accepts=lambda name: "log" in name,
            counted=WOOD_LOGS,
            timeout_ms=self._timings.collect_wood_timeout_ms,
            unreachable="Could not reach tree",
            empty="No wood collected",
            noun="wood",
            verb="Collected",
        )

    async def _mine_stone(self, decision: Decision) -> ActionResult:
        target = _require_target(decision, ResourceRef)
        return await self._harvest(
            target,
            accepts=lambda name: name in STONE_BLOCKS,
            counted=STONE_BLOCKS,
            timeout_ms=self._timings.mine_stone_timeout_ms,
            unreachable="Could not reach stone",
            empty="No stone mined",
            noun="stone",
            verb="Mined",
        )

    async def _craft_tools(self, decision: Decision) -> ActionResult:
        try:
            slots = self._world.inventory_slots()
            wood = next((stack for log in WOOD_LOGS for stack in slots if stack.name == log), None)
            if wood is None or wood.count < MIN_LOGS_FOR_TOOLS:
                return ActionResult(False, "Insufficient wood")

            planks = wood.name.replace("_log", "_planks")
            await self._actuator.craft(planks, 4)
            await self._actuator.craft("stick", 4)
            await self._actuator.craft("wooden_pickaxe", 1)
            return ActionResult(True, "Crafted tools successfully")
        except Exception as exc:  # noqa: BLE001
            return ActionResult(False, f"Crafting failed: {exc}")

    async def _hunt_animal(self, decision: Decision) -> ActionResult:
        target = _require_target(decision, EntityRef)
        if not await self._move_to(target.position, self._timings.hunt_tolerance, self._timings.hunt_timeout_ms):
            return ActionResult(False, "Could not reach animal")

        try:
            # The sensed handle may be stale; look the animal up again near us.
            here = self._position()
            matches = [
                entity
                for entity in self._world.entities()
                if entity.name == target.type_name
                and entity.position is not None
                and here.distance_to(entity.position) <= HUNT_REACQUIRE_RADIUS
            ]
            if matches:
                self._actuator.attack(matches[0].handle)
                return ActionResult(True, f"Hunted {target.type_name}")
        except Exception as exc:  # noqa: BLE001
            return ActionResult(False, f"Hunt failed: {exc}")

        return ActionResult(False, "Animal escaped")

    async def _seek_safety(self, decision: Decision) -> ActionResult:
        here = self._position()
        spread = self._timings.safety_offset
        safe_spot = here.offset(self._rng.uniform(-spread, spread), 2, self._rng.uniform(-spread, spread))

        moved = await self._move_to(safe_spot, self._timings.escape_tolerance, self._timings.seek_safety_timeout_ms)
        return ActionResult(moved, "Reached safety" if moved else "Could not find safety")

    async def _flee_danger(self, decision: Decision) -> ActionResult:
        threat = _require_target(decision, EntityRef)
        here = self._position()
        escape = Vec3(
            here.x + (here.x - threat.position.x),
            here.y,
            here.z + (here.z - threat.position.z),
        )

        moved = await self._move_to(escape, self._timings.escape_tolerance, self._timings.flee_timeout_ms)
        return ActionResult(moved, f"Fled from {threat.type_name}" if moved else "Could not escape")

    async def _explore(self, decision: Decision) -> ActionResult:
        start = self._position()
        spread = self._timings.explore_offset
        destination = start.offset(self._rng.uniform(-spread, spread), 0, self._rng.uniform(-spread, spread))

        moved = await self._move_to(destination, self._timings.explore_tolerance, self._timings.explore_timeout_ms)
        if moved:
            self._context.explored.add(start)
        return ActionResult(moved, "Explored new area" if moved else "Exploration incomplete")


def _require_target(decision: Decision, kind: type) -> ResourceRef | EntityRef:
    if not isinstance(decision.target, kind):
        raise ValueError(f"{decision.action.value} requires a {kind.__name__} target")
    return decision.target
