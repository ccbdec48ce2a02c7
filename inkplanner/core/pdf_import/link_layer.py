"""
Reading link annotations off PDF pages.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import fitz

logger = logging.getLogger(__name__)


class LinkType(Enum):
    """Kind of a source link annotation."""

    URI = "uri"
    GOTO = "goto"
    NAMED = "named"
    REMOTE = "remote"  # another file; not importable
    LAUNCH = "launch"  # runs a program; not importable
    UNKNOWN = "unknown"


FITZ_LINK_KINDS = {
    fitz.LINK_URI: LinkType.URI,
    fitz.LINK_GOTO: LinkType.GOTO,
    fitz.LINK_NAMED: LinkType.NAMED,
    fitz.LINK_GOTOR: LinkType.REMOTE,
    fitz.LINK_LAUNCH: LinkType.LAUNCH,
    fitz.LINK_NONE: LinkType.UNKNOWN,
}

IMPORTABLE_TYPES = (LinkType.URI, LinkType.GOTO, LinkType.NAMED)


@dataclass
class LinkAnnotation:
    """
    A link as the PDF declares it, before it becomes a page hotspot.

    ``bbox`` is x0, y0, x1, y1 with a top-left origin, multiplied by the scale
    the page was read at. Internal targets are 0-based page indices.
    """

    bbox: Tuple[float, float, float, float]
    link_type: LinkType
    uri: Optional[str] = None
    page_index: Optional[int] = None
    named_dest: Optional[str] = None

    @property
    def width(self) -> float:
        return self.bbox[2] - self.bbox[0]

    @property
    def height(self) -> float:
        return self.bbox[3] - self.bbox[1]

    @property
    def is_internal(self) -> bool:
        return self.link_type in (LinkType.GOTO, LinkType.NAMED)


def parse_link(link_data: Dict[str, Any], scale: float = 1.0) -> Optional[LinkAnnotation]:
    """
    Annotation from one ``Page.get_links()`` entry.

    Returns:
        The annotation, or None if the entry has no usable rectangle
    """
    rect = link_data.get("from")
    if rect is None:
        return None
    try:
        x0, y0, x1, y1 = (float(v) * scale for v in rect)
    except (TypeError, ValueError):
        return None

    link_type = FITZ_LINK_KINDS.get(link_data.get("kind"), LinkType.UNKNOWN)
    annotation = LinkAnnotation(bbox=(x0, y0, x1, y1), link_type=link_type)

    if link_type == LinkType.URI:
        annotation.uri = link_data.get("uri") or None
    elif annotation.is_internal:
        target = link_data.get("page", -1)
        if isinstance(target, int) and target >= 0:
            annotation.page_index = target
        annotation.named_dest = link_data.get("nameddest") or link_data.get("name") or None

    return annotation


class PageLinkLayer:
    """Importable link annotations of one PDF page."""

    def __init__(self, page: "fitz.Page", scale: float = 1.0):
        self.page = page
        self.scale = scale
        self.links: List[LinkAnnotation] = []

        try:
            raw_links = page.get_links()
        except Exception as e:
            logger.warning("Failed to read link annotations of page %d: %s", page.number, e)
            return

        for link_data in raw_links:
            annotation = parse_link(link_data, scale)
            if annotation is None or annotation.link_type not in IMPORTABLE_TYPES:
                logger.debug("Skipping link annotation of kind %r", link_data.get("kind"))
                continue
            self.links.append(annotation)
