"""The agent controller: a periodic perceive, decide, execute loop."""

from __future__ import annotations

import asyncio
import logging
import random

from mc_autonomy.action_runtime import ActionExecutor, ActionTimings
from mc_autonomy.adapters.game_interface import Actuator, ChatChannel, WorldView
from mc_autonomy.chat import StatusResponder
from mc_autonomy.context import AgentContext
from mc_autonomy.game_state import SnapshotBuilder
from mc_autonomy.models import ActionResult
from mc_autonomy.planning import DecisionEngine, PriorityDecisionEngine
from mc_autonomy.telemetry import LoggingTelemetry, Telemetry


class AutonomousAgent:
    """Runs one decision per tick; ticks that arrive mid-action are skipped, not queued."""

    def __init__(
        self,
        context: AgentContext,
        world: WorldView,
        actuator: Actuator,
        chat: ChatChannel,
        *,
        tick_interval_seconds: float = 10.0,
        builder: SnapshotBuilder | None = None,
        engine: DecisionEngine | None = None,
        executor: ActionExecutor | None = None,
        timings: ActionTimings | None = None,
        save_every: int = 10,
        rng: random.Random | None = None,
        telemetry: Telemetry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._context = context
        self._world = world
        self._tick_interval_seconds = tick_interval_seconds
        self._builder = builder or SnapshotBuilder()
        self._engine = engine or PriorityDecisionEngine()
        self._executor = executor or ActionExecutor(
            context,
            world,
            actuator,
            chat=chat,
            timings=timings,
            save_every=save_every,
            rng=rng,
        )
        self._responder = StatusResponder(context, chat)
        self._telemetry = telemetry or LoggingTelemetry()
        self._logger = logger or logging.getLogger("mc_autonomy.agent")
        self._tick_tasks: set[asyncio.Task[ActionResult | None]] = set()

    @property
    def context(self) -> AgentContext:
        return self._context

    @property
    def executor(self) -> ActionExecutor:
        return self._executor

    async def tick(self) -> ActionResult | None:
        """Perceive, decide and act once. Never raises for in-tick faults."""
        if self._context.execution.is_executing:
            self._logger.debug(
                "tick_skipped",
                extra={"current_action": str(self._context.execution.current_action)},
            )
            return None

        try:
            snapshot = self._builder.build(self._world)
            if snapshot is None:
                self._logger.debug("tick_waiting_for_spawn")
                return None

            decision = self._engine.decide(snapshot)
            self._telemetry.emit("decision_made", {"action": decision.action.value, "reason": decision.reason})
            return await self._executor.execute(decision, snapshot)
        except Exception:  # noqa: BLE001 - one bad tick must not stop the loop.
            self._logger.exception("tick_failed")
            return None

    async def run(self) -> None:
        """Fire a tick every interval without waiting for the previous one to finish."""
        self._logger.info(
            "agent_loop_started",
            extra={"username": self._context.username, "interval_s": self._tick_interval_seconds},
        )
        try:
            while True:
                task = asyncio.create_task(self.tick(), name="agent-tick")
                self._tick_tasks.add(task)
                task.add_done_callback(self._tick_tasks.discard)
                await asyncio.sleep(self._tick_interval_seconds)
        finally:
            for task in list(self._tick_tasks):
                task.cancel()
            if self._tick_tasks:
                await asyncio.gather(*self._tick_tasks, return_exceptions=True)
            await self._executor.flush_saves()
            self._logger.info("agent_loop_stopped", extra={"username": self._context.username})

    def handle_chat(self, sender: str, message: str) -> str | None:
        return self._responder.handle(sender, message)

    def reset_for_reconnect(self) -> None:
        """Drop in-flight execution state; learned skills, history and exploration are kept."""
        self._context.execution.clear()
        self._context.execution.action_started_at = None
        self._logger.info(
            "agent_state_reset",
            extra={
                "skill_count": len(self._context.skills),
                "total_actions": self._context.tracker.total_actions,
                "explored_cells": len(self._context.explored),
            },
        )
