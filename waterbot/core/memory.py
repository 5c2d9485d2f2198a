"""
Conversation memory: ordered, append-only turn log for one session.
"""

import logging
from dataclasses import dataclass, field
from typing import Literal

from waterbot.schemas.agent import MapCommand

logger = logging.getLogger(__name__)

Role = Literal["user", "assistant", "system"]


@dataclass(frozen=True)
class ChatTurn:
    role: Role
    text: str
    map_commands: tuple[MapCommand, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        out: dict = {"role": self.role, "text": self.text}
        if self.map_commands:
            out["mapCommands"] = [c.model_dump(exclude_none=True) for c in self.map_commands]
        return out


class ConversationMemory:
    """Insertion-ordered ChatTurn log. Turns are only appended; clear() wipes the whole session."""

    def __init__(self) -> None:
        self._turns: list[ChatTurn] = []

    def __len__(self) -> int:
        return len(self._turns)

    @property
    def turns(self) -> tuple[ChatTurn, ...]:
        return tuple(self._turns)

    def append(self, turn: ChatTurn) -> None:
        self._turns.append(turn)
        logger.debug("[memory:append] role=%s text_len=%d size=%d", turn.role, len(turn.text), len(self._turns))

    def recent(self, n: int, before: int | None = None) -> list[ChatTurn]:
        """Last ``n`` turns (oldest first), optionally only those before index ``before``."""
        turns = self._turns if before is None else self._turns[:before]
        if n <= 0:
            return []
        return list(turns[-n:])

    def clear(self) -> None:
        self._turns.clear()
        logger.info("[memory:clear] session memory cleared")
