"""
Snapshot-based undo/redo over a document's page list.
"""
import copy
from typing import List, Optional

from ..document.models import Page

DEFAULT_HISTORY_LIMIT = 50


def snapshot(pages: List[Page]) -> List[Page]:
    """Deep copy of a page list; shares nothing with the original."""
    return copy.deepcopy(pages)


class HistoryManager:
    """
    Linear history of full page-list snapshots.

    ``past`` holds states older than the current one, newest last; ``future``
    holds states undone since the last checkpoint, newest last. Both stacks are
    capped at ``max_size`` entries, dropping the oldest.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_LIMIT):
        """
        Initialize the history.

        Args:
            max_size: Maximum number of snapshots kept on either stack
        """
        self.past: List[List[Page]] = []
        self.future: List[List[Page]] = []
        self.max_size = max_size

    def checkpoint(self, pages: List[Page]) -> None:
        """
        Record ``pages`` as the state before a change.

        Must run before the change is applied. Discards the redo stack.

        Args:
            pages: The document's current page list
        """
        self._push(self.past, snapshot(pages))
        self.future.clear()

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return len(self.past) > 0

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return len(self.future) > 0

    def undo(self, current: List[Page]) -> Optional[List[Page]]:
        """
        Step back one state.

        Args:
            current: The document's pages before undo

        Returns:
            The pages to restore, or None if there is nothing to undo
        """
        if not self.can_undo():
            return None

        self._push(self.future, snapshot(current))
        return self.past.pop()

    def redo(self, current: List[Page]) -> Optional[List[Page]]:
        """
        Step forward one state.

        Args:
            current: The document's pages before redo

        Returns:
            The pages to restore, or None if there is nothing to redo
        """
        if not self.can_redo():
            return None

        self._push(self.past, snapshot(current))
        return self.future.pop()

    def clear(self) -> None:
        """Clear both stacks."""
        self.past.clear()
        self.future.clear()

    def _push(self, stack: List[List[Page]], pages: List[Page]) -> None:
        stack.append(pages)
        if len(stack) > self.max_size:
            stack.pop(0)
