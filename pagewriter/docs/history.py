"""Snapshot-based undo/redo history.

Both stacks hold whole-document snapshots by value; the oldest entries are
evicted once ``capacity`` is reached. Any new commit invalidates the redo
branch.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Optional

from .model import HistorySnapshot


class HistoryManager:
    def __init__(self, capacity: int = 50) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1.")
        self.capacity = capacity
        self._undo: Deque[HistorySnapshot] = deque(maxlen=capacity)
        self._redo: Deque[HistorySnapshot] = deque(maxlen=capacity)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def commit(self, snapshot: HistorySnapshot) -> None:
        self._undo.append(snapshot)
        self._redo.clear()

    def undo(self, current: HistorySnapshot) -> Optional[HistorySnapshot]:
        """Pop the newest undo entry, parking ``current`` on the redo stack."""
        if not self._undo:
            return None
        target = self._undo.pop()
        self._redo.append(current)
        return target

    def redo(self, current: HistorySnapshot) -> Optional[HistorySnapshot]:
        if not self._redo:
            return None
        target = self._redo.pop()
        self._undo.append(current)
        return target

    def discard_redo_top(self) -> None:
        if self._redo:
            self._redo.pop()

    def discard_undo_top(self) -> None:
        if self._undo:
            self._undo.pop()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
