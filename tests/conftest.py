"""Shared fixtures for the planner engine tests."""
from pathlib import Path

import fitz
import pytest

from inkplanner.core.document.models import (
    Document,
    Element,
    ElementType,
    InkStroke,
    Page,
    TextPayload,
    generate_id,
)
from inkplanner.core.generation import InMemoryTemplateSource, PageGenerator, Template
from inkplanner.core.persistence import JsonDocumentStore


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENT FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

def make_text(x: float = 0, y: float = 0, text: str = "note", **kwargs) -> Element:
    return Element(
        id=generate_id(),
        type=ElementType.TEXT,
        payload=TextPayload(text=text),
        x=x,
        y=y,
        **kwargs,
    )


def make_stroke(*points: float) -> InkStroke:
    return InkStroke(id=generate_id(), points=list(points or (0, 0, 10, 10)))


@pytest.fixture
def document() -> Document:
    """Three pages; the first holds one locked and one free element and a stroke."""
    first = Page(
        id="page-1",
        template_id="daily",
        elements=[make_text(10, 10, "locked", is_locked=True), make_text(200, 200, "free")],
        ink_strokes=[make_stroke(0, 0, 5, 5, 10, 10)],
        section="JAN",
        year=2024,
        month="JAN",
    )
    second = Page(id="page-2", template_id="weekly", section="FEB", year=2024, month="FEB")
    third = Page(id="page-3", template_id="notes", section="JAN", year=2024, month="JAN")
    return Document(id="doc-1", name="Test Planner", pages=[first, second, third])


@pytest.fixture
def template_source() -> InMemoryTemplateSource:
    return InMemoryTemplateSource({
        "daily": Template(
            id="daily",
            elements=[
                {"id": "t1", "type": "text", "text": "Today", "x": 40, "y": 40},
                {"id": "t2", "type": "shape", "props": {"shapeType": "rect", "x": 0, "y": 100}},
            ],
            background_image="https://example.com/daily.png",
        ),
        "a4": Template(id="a4", page_size="A4"),
        "empty": Template(id="empty"),
    })


@pytest.fixture
def generator(template_source) -> PageGenerator:
    return PageGenerator(template_source)


@pytest.fixture
def store(tmp_path: Path) -> JsonDocumentStore:
    return JsonDocumentStore(tmp_path / "documents")


# ═══════════════════════════════════════════════════════════════════════════════
# PDF FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════

LINK_RECT = fitz.Rect(72, 72, 144, 100)


@pytest.fixture
def linked_pdf() -> bytes:
    """
    Three portrait pages (612x792).

    Page 1 links to https://example.com and to page 3; page 2 links to page 1.
    """
    doc = fitz.open()
    for _ in range(3):
        doc.new_page(width=612, height=792)

    doc[0].insert_link({"kind": fitz.LINK_URI, "from": LINK_RECT, "uri": "https://example.com"})
    doc[0].insert_link({
        "kind": fitz.LINK_GOTO,
        "from": fitz.Rect(72, 200, 200, 230),
        "page": 2,
        "to": fitz.Point(0, 0),
    })
    doc[1].insert_link({
        "kind": fitz.LINK_GOTO,
        "from": fitz.Rect(300, 300, 400, 340),
        "page": 0,
        "to": fitz.Point(0, 0),
    })

    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def landscape_pdf() -> bytes:
    doc = fitz.open()
    doc.new_page(width=842, height=595)
    data = doc.tobytes()
    doc.close()
    return data
