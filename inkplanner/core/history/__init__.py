"""
Undo/redo history for planner documents.
"""
from .undo_redo import DEFAULT_HISTORY_LIMIT, HistoryManager, snapshot

__all__ = ["DEFAULT_HISTORY_LIMIT", "HistoryManager", "snapshot"]
