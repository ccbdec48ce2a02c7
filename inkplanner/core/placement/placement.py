"""
Collision-aware insertion point for new elements.
"""
import logging
from typing import Iterable, Tuple

from ..document.models import Element, Page

logger = logging.getLogger(__name__)

COLLISION_DISTANCE = 30
PROBE_STEP = 60

# Probe order relative to the requested point; first free one wins
PROBE_OFFSETS = (
    (PROBE_STEP, 0),
    (-PROBE_STEP, 0),
    (0, PROBE_STEP),
    (0, -PROBE_STEP),
    (PROBE_STEP, PROBE_STEP),
    (-PROBE_STEP, -PROBE_STEP),
    (PROBE_STEP, -PROBE_STEP),
    (-PROBE_STEP, PROBE_STEP),
)


def collides(elements: Iterable[Element], x: float, y: float) -> bool:
    """True if any element sits inside the collision box around (x, y)."""
    for element in elements:
        if abs(element.x - x) < COLLISION_DISTANCE and abs(element.y - y) < COLLISION_DISTANCE:
            return True
    return False


def find_free_position(elements: Iterable[Element], x: float, y: float) -> Tuple[float, float]:
    """
    Return the point where a new element requested at (x, y) should go.

    Only the eight fixed offsets are tried. When all of them are taken the
    requested point is returned as-is and the new element overlaps.

    Args:
        elements: Elements already on the page (obstacles, never moved)
        x: Requested x
        y: Requested y

    Returns:
        The (x, y) insertion point
    """
    elements = list(elements)
    if not collides(elements, x, y):
        return x, y

    for dx, dy in PROBE_OFFSETS:
        if not collides(elements, x + dx, y + dy):
            return x + dx, y + dy

    logger.debug("No free slot around (%s, %s); placing with overlap", x, y)
    return x, y


def place(page: Page, x: float, y: float) -> Tuple[float, float]:
    """Insertion point for a new element on ``page``."""
    return find_free_position(page.elements, x, y)
