from __future__ import annotations

import copy
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass
class HistoryEntry:
    action_type: str
    prev_state: Any
    next_state: Any
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))


class History:
    """Bounded undo/redo stacks of whole-state snapshots.

    States are deep-copied on the way in so later mutation by the caller
    cannot rewrite history.
    """

    def __init__(self, max_length: int = 50) -> None:
        if max_length < 1:
            raise ValueError("max_length must be positive")
        self.max_length = max_length
        self._past: deque[HistoryEntry] = deque(maxlen=max_length)
        self._future: list[HistoryEntry] = []
        self._applying = False

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    @property
    def history_length(self) -> int:
        return len(self._past)

    @property
    def redo_length(self) -> int:
        return len(self._future)

    @property
    def is_applying(self) -> bool:
        return self._applying

    def record(self, action_type: str, prev_state: Any, next_state: Any) -> bool:
        if self._applying:
            return False
        self._past.append(HistoryEntry(action_type, copy.deepcopy(prev_state), copy.deepcopy(next_state)))
        self._future.clear()
        return True

    @contextmanager
    def applying(self) -> Iterator[None]:
        """Suppress recording while a restored state is being applied."""
        self._applying = True
        try:
            yield
        finally:
            self._applying = False

    def undo(self) -> HistoryEntry | None:
        if not self._past:
            return None
        entry = self._past.pop()
        self._future.insert(0, entry)
        return entry

    def redo(self) -> HistoryEntry | None:
        if not self._future:
            return None
        entry = self._future.pop(0)
        self._past.append(entry)
        return entry

    def clear(self) -> None:
        self._past.clear()
        self._future.clear()
