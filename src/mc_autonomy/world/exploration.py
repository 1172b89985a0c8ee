from __future__ import annotations

import math

from mc_autonomy.models import Vec3

CELL_SIZE = 10


class ExploredMemory:
    """Set of coarse horizontal grid cells the agent has explored from."""

    def __init__(self) -> None:
        self._cells: set[tuple[int, int]] = set()

    @staticmethod
    def cell_for(position: Vec3) -> tuple[int, int]:
        return math.floor(position.x / CELL_SIZE), math.floor(position.z / CELL_SIZE)

    def add(self, position: Vec3) -> tuple[int, int]:
        cell = self.cell_for(position)
        self._cells.add(cell)
        return cell

    def __contains__(self, cell: object) -> bool:
        return cell in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def cells(self) -> set[tuple[int, int]]:
        return set(self._cells)
