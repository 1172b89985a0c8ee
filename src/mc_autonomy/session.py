"""Connection lifecycle: spawn, run the agent, reconnect after disconnects."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from mc_autonomy.adapters.game_interface import BackendUnavailableError, BotConnection, Connector
from mc_autonomy.agent import AutonomousAgent
from mc_autonomy.chat import greeting
from mc_autonomy.context import AgentContext
from mc_autonomy.game_state import SnapshotBuilder

AgentFactory = Callable[[AgentContext, BotConnection], AutonomousAgent]


def default_agent_factory(
    *,
    tick_interval_seconds: float = 10.0,
    save_every: int = 10,
    block_scan_radius: int = 20,
    entity_scan_radius: float = 15.0,
) -> AgentFactory:
    def _build(context: AgentContext, connection: BotConnection) -> AutonomousAgent:
        return AutonomousAgent(
            context,
            connection.world,
            connection.actuator,
            connection.chat,
            tick_interval_seconds=tick_interval_seconds,
            builder=SnapshotBuilder(block_radius=block_scan_radius, entity_radius=entity_scan_radius),
            save_every=save_every,
        )

    return _build


class AgentSession:
    """Keeps one agent identity playing across server connections.

    The ``AgentContext`` outlives individual connections: skills, history and explored
    cells carry over, while execution state is reset whenever a connection ends.
    """

    def __init__(
        self,
        context: AgentContext,
        connector: Connector,
        *,
        agent_factory: AgentFactory | None = None,
        startup_delay_seconds: float = 3.0,
        reconnect_delay_seconds: float = 5.0,
        max_sessions: int | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._context = context
        self._connector = connector
        self._agent_factory = agent_factory or default_agent_factory()
        self._startup_delay_seconds = startup_delay_seconds
        self._reconnect_delay_seconds = reconnect_delay_seconds
        self._max_sessions = max_sessions
        self._logger = logger or logging.getLogger("mc_autonomy.session")
        self._skills_loaded = False
        self.sessions_started = 0

    @property
    def context(self) -> AgentContext:
        return self._context

    async def run_forever(self) -> None:
        while self._max_sessions is None or self.sessions_started < self._max_sessions:
            self.sessions_started += 1
            try:
                connection = self._connector.connect()
            except BackendUnavailableError:
                raise
            except Exception:  # noqa: BLE001 - the server may simply not be up yet.
                self._logger.exception("connect_failed", extra={"attempt": self.sessions_started})
            else:
                await self._run_connection(connection)

            if self._max_sessions is not None and self.sessions_started >= self._max_sessions:
                break
            self._logger.info("reconnect_scheduled", extra={"delay_s": self._reconnect_delay_seconds})
            await asyncio.sleep(self._reconnect_delay_seconds)

    async def _run_connection(self, connection: BotConnection) -> None:
        agent = self._agent_factory(self._context, connection)
        connection.on_chat(agent.handle_chat)
        loop_task: asyncio.Task[None] | None = None
        spawned = asyncio.create_task(connection.spawned.wait())
        ended = asyncio.create_task(connection.ended.wait())
        try:
            done, _ = await asyncio.wait({spawned, ended}, return_when=asyncio.FIRST_COMPLETED)
            if ended in done:
                self._logger.warning("connection_ended_before_spawn", extra={"username": connection.username})
                return

            self._logger.info("agent_spawned", extra={"username": connection.username})
            try:
                connection.chat.say(greeting(self._context.username))
            except Exception:  # noqa: BLE001
                self._logger.warning("greeting_failed", exc_info=True)
            if not self._skills_loaded:
                self._context.skills.load()
                self._skills_loaded = True

            await asyncio.sleep(self._startup_delay_seconds)
            loop_task = asyncio.create_task(agent.run(), name="agent-loop")
            await asyncio.wait({ended, loop_task}, return_when=asyncio.FIRST_COMPLETED)
            self._logger.warning("connection_ended", extra={"username": connection.username})
        finally:
            spawned.cancel()
            ended.cancel()
            if loop_task is not None and not loop_task.done():
                loop_task.cancel()
                await asyncio.gather(loop_task, return_exceptions=True)
            agent.reset_for_reconnect()
            connection.close()
