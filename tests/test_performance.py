from __future__ import annotations

from mc_autonomy.models import ActionKind, Vec3
from mc_autonomy.performance import PerformanceTracker
from mc_autonomy.world import ExploredMemory


def test_history_keeps_most_recent_twenty() -> None:
    tracker = PerformanceTracker()

    for index in range(25):
        tracker.record_result(ActionKind.EXPLORE, index % 2 == 0, float(index), f"run {index}")

    history = tracker.history()
    assert len(history) == 20
    assert [record.details for record in history] == [f"run {index}" for index in range(5, 25)]
    assert tracker.total_actions == 25
    assert tracker.success_count == 13


def test_success_rate_percentage() -> None:
    tracker = PerformanceTracker()
    assert tracker.success_rate == 0.0

    tracker.record_result(ActionKind.COLLECT_WOOD, True, 10.0, "Collected 1 wood")
    tracker.record_result(ActionKind.COLLECT_WOOD, False, 12.0, "No wood collected")
    tracker.record_result(ActionKind.EXPLORE, True, 5.0, "Explored new area")
    tracker.record_result(ActionKind.EXPLORE, True, 5.0, "Explored new area")

    assert tracker.success_rate == 75.0


def test_history_size_is_configurable() -> None:
    tracker = PerformanceTracker(max_records=3)
    for index in range(5):
        tracker.record_result(ActionKind.EXPLORE, True, 1.0, str(index))

    assert [record.details for record in tracker.history()] == ["2", "3", "4"]


def test_explored_cells_are_coarse_and_idempotent() -> None:
    memory = ExploredMemory()

    assert memory.add(Vec3(12.5, 70, 39.9)) == (1, 3)
    memory.add(Vec3(19.9, 64, 30.0))
    memory.add(Vec3(-0.5, 64, -10))

    assert len(memory) == 2
    assert (1, 3) in memory
    assert (-1, -1) in memory
    assert memory.cells() == {(1, 3), (-1, -1)}
