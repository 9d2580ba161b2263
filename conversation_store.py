"""
Conversation Store

In-memory log of chat turns for the lifetime of the process. The log is a
single flat buffer shared by every caller: it is advisory (shown back to the
UI), never consulted when routing, and gone on restart.

Features:
- Thread-safe append / read / clear
- Optional cap turning the log into a ring buffer
- JSON-ready rendering of turns for the HTTP layer
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

USER = "user"
BOT = "bot"


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    content: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }


class ConversationStore:
    """
    Holds conversation turns in arrival order.

    Attributes:
        max_turns (int | None): Oldest turns are dropped past this size;
            None keeps everything
        lock (threading.Lock): Serializes access from request threads
    """

    def __init__(self, max_turns: Optional[int] = None):
        if max_turns is not None and max_turns <= 0:
            raise ValueError("max_turns must be positive")
        self.max_turns = max_turns
        self.lock = threading.Lock()
        self._turns: deque = deque(maxlen=max_turns)

    def append(self, role: str, content: str) -> ConversationTurn:
        """
        Record a turn stamped with the current time.

        Args:
            role (str): "user" or "bot"
            content (str): Message text

        Returns:
            ConversationTurn: The stored turn
        """
        if role not in (USER, BOT):
            raise ValueError(f"Unknown role: {role!r}")

        turn = ConversationTurn(role=role, content=content)
        with self.lock:
            self._turns.append(turn)
        return turn

    def recent(self, n: int) -> List[ConversationTurn]:
        """Last `n` turns, oldest first."""
        if n <= 0:
            return []
        with self.lock:
            turns = list(self._turns)
        return turns[-n:]

    def all(self) -> List[ConversationTurn]:
        with self.lock:
            return list(self._turns)

    def clear(self):
        with self.lock:
            self._turns.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._turns)
