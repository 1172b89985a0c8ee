"""Rolling action history and aggregate success rate."""

from __future__ import annotations

import logging
from collections import deque

from mc_autonomy.models import ActionKind, ExecutionRecord


class PerformanceTracker:
    """Bounded in-memory history of completed actions."""

    def __init__(self, max_records: int = 20, *, logger: logging.Logger | None = None) -> None:
        self._history: deque[ExecutionRecord] = deque(maxlen=max_records)
        self._logger = logger or logging.getLogger("mc_autonomy.performance")
        self.total_actions = 0
        self.success_count = 0

    @property
    def success_rate(self) -> float:
        """Percentage of completed actions that succeeded."""
        if self.total_actions == 0:
            return 0.0
        return self.success_count / self.total_actions * 100

    def record_result(self, action: ActionKind, success: bool, duration_ms: float, details: str) -> ExecutionRecord:
        self.total_actions += 1
        if success:
            self.success_count += 1

        record = ExecutionRecord(action=action, success=success, duration_ms=duration_ms, details=details)
        self._history.append(record)
        self._logger.info(
            "performance",
            extra={
                "success_rate": f"{self.success_rate:.1f}%",
                "successes": self.success_count,
                "total": self.total_actions,
            },
        )
        return record

    def history(self) -> list[ExecutionRecord]:
        """Most recent records, oldest first."""
        return list(self._history)
