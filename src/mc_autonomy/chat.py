"""In-game chat replies about the agent's status."""

from __future__ import annotations

from mc_autonomy.adapters.game_interface import ChatChannel
from mc_autonomy.context import AgentContext


def greeting(username: str) -> str:
    return f"Hello! I'm {username}, an autonomous AI that learns and adapts!"


class StatusResponder:
    """Answers players who mention the agent by name or ask a question."""

    def __init__(self, context: AgentContext, chat: ChatChannel) -> None:
        self._context = context
        self._chat = chat

    def wants_status(self, sender: str, message: str) -> bool:
        if sender == self._context.username:
            return False
        return self._context.username in message or "?" in message

    def status_line(self, sender: str) -> str:
        tracker = self._context.tracker
        current = self._context.execution.current_action
        return (
            f"Hello {sender}! Success rate: {tracker.success_rate:.1f}% "
            f"({tracker.success_count}/{tracker.total_actions} actions). "
            f"Currently: {current.value if current else 'thinking'}"
        )

    def handle(self, sender: str, message: str) -> str | None:
        if not self.wants_status(sender, message):
            return None
        reply = self.status_line(sender)
        self._chat.say(reply)
        return reply
