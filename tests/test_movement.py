from __future__ import annotations

import asyncio
import threading

import pytest
from fakes import FakeActuator

from mc_autonomy.models import Vec3
from mc_autonomy.movement import MovementWaiter

GOAL = Vec3(5, 64, 5)


def test_timeout_cancels_goal_once_and_reports_false() -> None:
    actuator = FakeActuator(reach_goals=False)

    reached = asyncio.run(MovementWaiter(actuator).move_to(GOAL, 1, 100))

    assert reached is False
    assert actuator.cancel_calls == 1
    assert actuator.callbacks == []


def test_goal_reached_before_timeout() -> None:
    actuator = FakeActuator(reach_goals=True)

    reached = asyncio.run(MovementWaiter(actuator).move_to(GOAL, 1, 1_000))

    assert reached is True
    assert actuator.cancel_calls == 0
    assert actuator.callbacks == []


def test_signal_from_bridge_thread_resolves_wait() -> None:
    actuator = FakeActuator(reach_goals=False)

    async def _run() -> bool:
        timer = threading.Timer(0.02, actuator.fire_goal_reached)
        timer.start()
        try:
            return await MovementWaiter(actuator).move_to(GOAL, 1, 2_000)
        finally:
            timer.cancel()

    assert asyncio.run(_run()) is True
    assert actuator.cancel_calls == 0


def test_duplicate_signals_resolve_once() -> None:
    actuator = FakeActuator(reach_goals=False)

    async def _run() -> bool:
        waiter = MovementWaiter(actuator)
        task = asyncio.create_task(waiter.move_to(GOAL, 1, 1_000))
        await asyncio.sleep(0)
        callback = actuator.callbacks[0]
        callback()
        callback()
        result = await task
        # Late signals after resolution are harmless.
        callback()
        await asyncio.sleep(0)
        return result

    assert asyncio.run(_run()) is True
    assert actuator.cancel_calls == 0


def test_cancelled_wait_releases_subscription() -> None:
    actuator = FakeActuator(reach_goals=False)

    async def _run() -> None:
        task = asyncio.create_task(MovementWaiter(actuator).move_to(GOAL, 1, 5_000))
        await asyncio.sleep(0)
        assert len(actuator.callbacks) == 1
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    asyncio.run(_run())

    assert actuator.callbacks == []


def test_arrival_signalled_during_set_goal_is_not_lost() -> None:
    actuator = FakeActuator(reach_goals=False, arrive_on_set_goal=True)

    reached = asyncio.run(MovementWaiter(actuator).move_to(GOAL, 1, 200))

    assert reached is True
    assert actuator.goals == [(GOAL, 1)]
    assert actuator.cancel_calls == 0
    assert actuator.callbacks == []


def test_set_goal_fault_releases_subscription() -> None:
    actuator = FakeActuator(reach_goals=False)
    actuator.fail_with = RuntimeError("pathfinder missing")

    async def _run() -> None:
        await MovementWaiter(actuator).move_to(GOAL, 1, 1_000)

    with pytest.raises(RuntimeError, match="pathfinder missing"):
        asyncio.run(_run())
    assert actuator.callbacks == []
