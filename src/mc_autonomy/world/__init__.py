"""World memory kept across ticks."""

from .exploration import ExploredMemory

__all__ = ["ExploredMemory"]
