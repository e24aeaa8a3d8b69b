"""
Undo/redo history for the whiteboard.

A linear list of shape-list snapshots with a cursor:

    snapshots: [s0, s1, s2, s3]
    cursor:              ^        undo -> s1, redo -> s3

add() drops everything after the cursor before appending, so a new edit
after an undo discards the redo branch. Snapshots are deep copies going in
and coming out; callers can mutate what they get back freely.
"""

from __future__ import annotations

import copy
from typing import Any

Shape = dict[str, Any]


class BoardHistory:
    """Snapshot stack with a cursor (history_step)."""

    def __init__(self, initial: list[Shape] | None = None, max_entries: int = 0):
        """
        Args:
            initial: Shapes on the board when history starts (default empty)
            max_entries: Keep at most this many snapshots; 0 means unbounded
        """
        if max_entries < 0:
            raise ValueError("max_entries must be >= 0")
        self.max_entries = max_entries
        self._snapshots: list[list[Shape]] = [copy.deepcopy(initial or [])]
        self.history_step = 0

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return self.history_step > 0

    @property
    def can_redo(self) -> bool:
        return self.history_step < len(self._snapshots) - 1

    @property
    def current(self) -> list[Shape]:
        return copy.deepcopy(self._snapshots[self.history_step])

    def add(self, shapes: list[Shape]) -> None:
        """Record a new board state after the cursor, discarding any redo branch."""
        del self._snapshots[self.history_step + 1 :]
        self._snapshots.append(copy.deepcopy(shapes))
        self.history_step = len(self._snapshots) - 1

        if self.max_entries and len(self._snapshots) > self.max_entries:
            overflow = len(self._snapshots) - self.max_entries
            del self._snapshots[:overflow]
            self.history_step -= overflow

    def undo(self) -> list[Shape] | None:
        if not self.can_undo:
            return None
        self.history_step -= 1
        return self.current

    def redo(self) -> list[Shape] | None:
        if not self.can_redo:
            return None
        self.history_step += 1
        return self.current
