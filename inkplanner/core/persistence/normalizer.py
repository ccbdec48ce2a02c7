"""
Load-time reconciliation of the two stored shapes of page content.

Element records may be flat (canonical) or keep their fields under a nested
``props`` object (legacy). Page content may sit inline on the page row or in a
separate per-page layer row (legacy). Everything here works on plain dicts and
is idempotent: normalizing normalized data returns an equal copy.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_PAGE_DIMENSIONS = {"width": 800, "height": 1000}
DEFAULT_PAGE_LAYOUT = "portrait"

_PAGE_FIELDS = (
    "section",
    "category",
    "year",
    "month",
    "thumbnail",
    "name",
    "ink_transcription",
)


def normalize_element(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Hoist legacy ``props`` fields to the top level of an element record.

    Top-level keys win over nested keys of the same name.

    Args:
        data: Element record in either shape

    Returns:
        A new flat record, or the input unchanged if it is empty
    """
    if not data:
        return data

    flat = dict(data)
    while "props" in flat:
        props = flat.pop("props")
        if isinstance(props, dict):
            merged = dict(props)
            merged.update(flat)
            flat = merged
    return flat


def normalize_ink_path(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a stroke record with an even-length coordinate array."""
    path = dict(data)
    points = list(path.get("points") or [])
    if len(points) % 2:
        logger.warning(
            "Stroke %s has an odd coordinate count (%d); dropping the last value",
            path.get("id"),
            len(points),
        )
        points = points[:-1]
    path["points"] = points
    return path


def _is_renderable(path: Dict[str, Any]) -> bool:
    return len(path.get("points") or []) >= 4


def _as_list(value) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def normalize_page(row: Dict[str, Any],
                   layer: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the canonical record of one page.

    Inline ``elements``/``ink_paths`` take priority; the layer row only fills a
    list that is empty inline. Strokes are then folded into the element list as
    ``path`` elements (skipping ids already present) so the result has a single
    element list and an empty ``ink_paths``.

    Args:
        row: Page row as stored
        layer: Legacy layer row for the same page, if any

    Returns:
        The canonical page record
    """
    elements = [normalize_element(e) for e in _as_list(row.get("elements")) if e]
    ink_paths = _as_list(row.get("ink_paths"))

    if layer:
        if not elements:
            elements = [normalize_element(e) for e in _as_list(layer.get("elements")) if e]
        if not ink_paths:
            ink_paths = _as_list(layer.get("ink_paths"))

    merged = list(elements)
    known_ids = {e.get("id") for e in merged}
    for raw in ink_paths:
        path = normalize_ink_path(raw)
        if not _is_renderable(path):
            logger.debug("Dropping non-renderable stroke %s", path.get("id"))
            continue
        if path.get("id") in known_ids:
            continue
        path["type"] = "path"
        merged.append(path)
        known_ids.add(path.get("id"))

    page = {
        "id": row["id"],
        "template_id": row.get("template_id"),
        "dimensions": row.get("dimensions") or dict(DEFAULT_PAGE_DIMENSIONS),
        "layout": row.get("layout") or DEFAULT_PAGE_LAYOUT,
        "is_locked": bool(row.get("is_locked")),
        "links": _as_list(row.get("links")),
        "elements": merged,
        "ink_paths": [],
    }
    for name in _PAGE_FIELDS:
        page[name] = row.get(name)
    if row.get("page_number") is not None:
        page["page_number"] = row["page_number"]
    return page


def normalize_pages(rows: Iterable[Dict[str, Any]],
                    layers: Iterable[Dict[str, Any]] = ()) -> List[Dict[str, Any]]:
    """
    Normalize every page of a document.

    Rows are ordered by ``page_number`` (missing numbers sort first, stable).

    Args:
        rows: Page rows of one document
        layers: Layer rows keyed by their ``page_id``

    Returns:
        Canonical page records in page order
    """
    layers_by_page = {}
    for layer in layers:
        layers_by_page[layer.get("page_id")] = layer

    ordered = sorted(rows, key=lambda r: r.get("page_number") or 0)
    return [normalize_page(row, layers_by_page.get(row["id"])) for row in ordered]
