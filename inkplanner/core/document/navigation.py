"""
Filtered page navigation.
"""
from dataclasses import dataclass
from typing import List, Optional

from .models import Page


@dataclass
class PageFilter:
    """
    Restricts navigation to pages matching every set field.

    Unset (None) fields match any page.
    """

    year: Optional[int] = None
    month: Optional[str] = None
    section: Optional[str] = None
    category: Optional[str] = None

    def matches(self, page: Page) -> bool:
        if self.year is not None and page.year != self.year:
            return False
        if self.month is not None and page.month != self.month:
            return False
        if self.section is not None and page.section != self.section:
            return False
        if self.category is not None and page.category != self.category:
            return False
        return True


def visible_indices(pages: List[Page], page_filter: Optional[PageFilter] = None) -> List[int]:
    """Indices of the pages the filter lets through, in page order."""
    if page_filter is None:
        return list(range(len(pages)))
    return [i for i, page in enumerate(pages) if page_filter.matches(page)]


def next_index(visible: List[int], current: int) -> Optional[int]:
    """
    Visible index after ``current``.

    Returns:
        The next index, or None at the end of the set or when ``current``
        is not itself visible
    """
    if current not in visible:
        return None
    position = visible.index(current)
    if position + 1 >= len(visible):
        return None
    return visible[position + 1]


def prev_index(visible: List[int], current: int) -> Optional[int]:
    """Visible index before ``current``; None as for ``next_index``."""
    if current not in visible:
        return None
    position = visible.index(current)
    if position == 0:
        return None
    return visible[position - 1]
