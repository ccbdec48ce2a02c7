"""
Saving and loading whole documents through a DocumentStore.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..document.models import (
    Document,
    Element,
    ElementType,
    Link,
    OcrPayload,
    Page,
    generate_id,
)
from ..errors import NotFoundError
from ..recognition import DEFAULT_RECOGNITION_TIMEOUT, Recognizer, transcribe
from .normalizer import normalize_pages
from .store import DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_TEMPLATES = ("daily", "weekly", "notes")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def ocr_element_id(page_id: str) -> str:
    return f"ocr-{page_id}"


def searchable_text(elements: List[Element]) -> str:
    """Text element contents joined for search."""
    return " ".join(
        e.payload.text or "" for e in elements if e.type == ElementType.TEXT
    )


def page_records(document: Document, page: Page, index: int,
                 recognizer: Optional[Recognizer] = None,
                 timeout: float = DEFAULT_RECOGNITION_TIMEOUT) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Page row and layer row for one page.

    Strokes that cannot be rendered are not written. When the page has ink and
    a recognizer is given, its transcription replaces the page's
    ``ocr_metadata`` element; a failed transcription leaves the page as it is.
    """
    elements = list(page.elements)
    strokes = [s for s in page.ink_strokes if s.is_renderable]
    transcription = page.ink_transcription or ""

    if strokes and recognizer is not None:
        text = transcribe(recognizer, strokes, timeout)
        if text:
            transcription = text
            elements = [e for e in elements if e.type != ElementType.OCR_METADATA]
            elements.append(Element(
                id=ocr_element_id(page.id),
                type=ElementType.OCR_METADATA,
                payload=OcrPayload(text=text),
                z_index=-1,
            ))

    updated_at = _now()
    page_row = {
        "id": page.id,
        "document_id": document.id,
        "page_number": index,
        "template_id": page.template_id,
        "dimensions": page.dimensions.to_dict(),
        "layout": page.layout.value,
        "section": page.section,
        "category": page.category,
        "year": page.year,
        "month": page.month,
        "is_locked": page.is_locked,
        "links": [link.to_dict() for link in page.links],
        "thumbnail": page.thumbnail,
        "name": page.name,
        "searchable_text": searchable_text(elements),
        "ink_transcription": transcription,
        "updated_at": updated_at,
    }
    layer_row = {
        "page_id": page.id,
        "elements": [e.to_dict() for e in elements],
        "ink_paths": [s.to_dict() for s in strokes],
        "updated_at": updated_at,
    }
    return page_row, layer_row


def save_document(document: Document, store: DocumentStore,
                  recognizer: Optional[Recognizer] = None,
                  timeout: float = DEFAULT_RECOGNITION_TIMEOUT) -> None:
    """
    Write the whole document: header, page rows, then layer rows.

    Store errors propagate unchanged; nothing is retried here.
    """
    header = document.to_header()
    header["updated_at"] = _now()

    rows = [
        page_records(document, page, i, recognizer, timeout)
        for i, page in enumerate(document.pages)
    ]
    try:
        store.upsert_document(header)
        store.upsert_pages(document.id, [page_row for page_row, _ in rows])
        store.upsert_layers(document.id, [layer_row for _, layer_row in rows])
        store.prune_pages(document.id, [page.id for page in document.pages])
    except Exception:
        logger.exception("Error saving document %s", document.id)
        raise

    logger.info("Saved document %s (%d pages)", document.id, len(document.pages))


def build_page(record: Dict[str, Any]) -> Page:
    """
    Page from a normalized record.

    Elements with an unknown type and links without a usable target are
    skipped with a warning rather than failing the whole load.
    """
    elements = []
    for data in record.get("elements") or []:
        try:
            elements.append(Element.from_dict(data))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("Skipping element %s on page %s: %s", data.get("id"), record["id"], e)

    links = []
    for data in record.get("links") or []:
        try:
            links.append(Link.from_dict(data))
        except ValueError as e:
            logger.warning("Skipping link %s on page %s: %s", data.get("id"), record["id"], e)

    page = Page.from_dict({**record, "elements": [], "links": []})
    page.elements = elements
    page.links = links
    return page


def default_pages() -> List[Page]:
    """Starter pages for a document that has none."""
    return [Page(id=generate_id(), template_id=template_id) for template_id in DEFAULT_PAGE_TEMPLATES]


def load_document(store: DocumentStore, document_id: str) -> Document:
    """
    Read a document and reconcile its stored shape into the in-memory model.

    Raises:
        NotFoundError: if the store has no such document
    """
    header = store.fetch_document(document_id)
    if header is None:
        raise NotFoundError(f"Document not found: {document_id}")

    rows = store.fetch_pages(document_id)
    layers = store.fetch_layers(document_id, [row["id"] for row in rows]) if rows else []

    pages = [build_page(record) for record in normalize_pages(rows, layers)]
    if not pages:
        logger.info("Document %s has no pages; adding defaults", document_id)
        pages = default_pages()

    document = Document.from_header(header, pages)
    logger.info("Loaded document %s (%d pages)", document.id, len(pages))
    return document

