"""Decision-making boundaries."""

from .engine import DecisionEngine, PriorityDecisionEngine

__all__ = ["DecisionEngine", "PriorityDecisionEngine"]
