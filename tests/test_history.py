"""Tests for snapshot-based undo/redo."""
from conftest import make_text

from inkplanner.core.document.models import Page
from inkplanner.core.history import HistoryManager, snapshot


def page_dicts(pages):
    return [p.to_dict() for p in pages]


class TestHistoryManager:
    def test_undo_redo_round_trip(self):
        history = HistoryManager()
        pages = [Page(id="p1")]
        before = page_dicts(pages)

        history.checkpoint(pages)
        pages[0].elements.append(make_text(1, 1))
        after = page_dicts(pages)

        pages = history.undo(pages)
        assert page_dicts(pages) == before

        pages = history.redo(pages)
        assert page_dicts(pages) == after

    def test_snapshot_is_independent(self):
        pages = [Page(id="p1", elements=[make_text()])]
        copy = snapshot(pages)
        pages[0].elements[0].x = 99
        pages[0].elements.append(make_text())
        assert copy[0].elements[0].x == 0
        assert len(copy[0].elements) == 1

    def test_checkpoint_clears_future(self):
        history = HistoryManager()
        pages = [Page(id="p1")]
        history.checkpoint(pages)
        pages = history.undo(pages)
        assert history.can_redo()

        history.checkpoint(pages)
        assert not history.can_redo()

    def test_empty_stacks_return_none(self):
        history = HistoryManager()
        assert history.undo([]) is None
        assert history.redo([]) is None

    def test_past_capped_at_limit(self):
        history = HistoryManager()
        pages = [Page(id="p1", name="0")]
        for i in range(60):
            history.checkpoint(pages)
            pages[0].name = str(i + 1)

        assert len(history.past) == 50
        # Oldest kept state is the one recorded by the 11th checkpoint
        assert history.past[0][0].name == "10"

        undone = 0
        while history.can_undo():
            pages = history.undo(pages)
            undone += 1
        assert undone == 50
        assert pages[0].name == "10"

    def test_future_capped_at_limit(self):
        history = HistoryManager(max_size=3)
        pages = [Page(id="p1")]
        for _ in range(3):
            history.checkpoint(pages)
        for _ in range(3):
            pages = history.undo(pages)
        assert len(history.future) == 3
        assert not history.can_undo()
