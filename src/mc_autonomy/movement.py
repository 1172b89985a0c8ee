"""Bounded waiting on pathfinder goals."""

from __future__ import annotations

import asyncio
import logging

from mc_autonomy.adapters.game_interface import Actuator
from mc_autonomy.models import Vec3


class MovementWaiter:
    """Races the actuator's goal-reached signal against a timeout.

    The signal is subscribed before the goal is set, so an arrival reported
    while ``set_goal`` is still running is not lost. Exactly one outcome wins.
    On timeout the pending goal is cancelled so the pathfinder stops working
    toward it. The goal-reached subscription is removed before returning, so a
    late signal never reaches a finished wait.
    """

    def __init__(self, actuator: Actuator, *, logger: logging.Logger | None = None) -> None:
        self._actuator = actuator
        self._logger = logger or logging.getLogger("mc_autonomy.movement")

    async def move_to(self, position: Vec3, tolerance: float, timeout_ms: float) -> bool:
        loop = asyncio.get_running_loop()
        reached: asyncio.Future[bool] = loop.create_future()

        def _resolve() -> None:
            if not reached.done():
                reached.set_result(True)

        def _on_goal_reached() -> None:
            loop.call_soon_threadsafe(_resolve)

        unsubscribe = self._actuator.on_goal_reached(_on_goal_reached)
        try:
            self._actuator.set_goal(position, tolerance)
            return await asyncio.wait_for(reached, timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            self._actuator.cancel_goal()
            self._logger.info("movement_timeout", extra={"timeout_ms": timeout_ms})
            return False
        finally:
            unsubscribe()

    async def settle(self, seconds: float) -> None:
        """Give the game time to register pickups after breaking a block."""
        if seconds > 0:
            await asyncio.sleep(seconds)
