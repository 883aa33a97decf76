"""
Conversation Log
================

In-memory conversation history for one agent session.

The model provider keeps no memory between calls, so the agent keeps
the turns itself and replays them on every request.

Design Notes:
- Append-only; turns are kept in arrival order
- Lives only as long as the agent (never persisted)
- Optional max_turns bound drops the oldest turns first; 0 means
  unbounded, which grows with the session
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator


class Role(str, Enum):
    """Who spoke a turn."""
    USER = "USER"
    ASSISTANT = "ASSISTANT"


_OPENAI_ROLES = {
    Role.USER: "user",
    Role.ASSISTANT: "assistant",
}


@dataclass(frozen=True)
class Turn:
    """
    A single turn in the conversation.

    Attributes:
        role: USER or ASSISTANT
        text: What was said
        timestamp: When the turn was appended
    """
    role: Role
    text: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_openai_message(self) -> dict:
        """Convert to the chat message format used by the provider."""
        return {
            "role": _OPENAI_ROLES[self.role],
            "content": self.text,
        }


class Conversation:
    """
    Ordered log of turns.

    Example:
        conversation = Conversation()
        conversation.append(Role.USER, "Draft an intro paragraph")
        conversation.append(Role.ASSISTANT, "Here is a draft...")

        history = conversation.snapshot()
    """

    def __init__(self, max_turns: int = 0):
        """
        Args:
            max_turns: Maximum turns to keep, 0 for no limit
        """
        if max_turns < 0:
            raise ValueError("max_turns must be >= 0")
        self.max_turns = max_turns
        self._turns: list[Turn] = []

    def append(self, role: Role, text: str) -> Turn:
        """Append a turn, trimming the oldest turns when over the bound."""
        turn = Turn(role=role, text=text)
        self._turns.append(turn)

        if self.max_turns and len(self._turns) > self.max_turns:
            self._turns = self._turns[-self.max_turns:]

        return turn

    def snapshot(self) -> list[Turn]:
        """Copy of the current turns, oldest first."""
        return list(self._turns)

    def clear(self) -> None:
        self._turns.clear()

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.snapshot())
