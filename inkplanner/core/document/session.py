"""
Editing session over one open document, with undo/redo support.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from ...utils.config import EngineConfig
from ..errors import DuplicateIdError, NotFoundError, ReadOnlyElementError
from ..generation.page_generator import DateLike, Frequency, PageGenerator
from ..generation.templates import Template
from ..history.undo_redo import HistoryManager
from ..pdf_import.importer import ImportResult
from ..placement.placement import place
from ..recognition import Recognizer, transcribe
from .models import (
    DEFAULT_LEFT_TABS,
    DEFAULT_RIGHT_TABS,
    DEFAULT_TOP_TABS,
    MONTH_ABBREVIATIONS,
    DataPayload,
    Dimensions,
    Document,
    Element,
    ElementType,
    InkStroke,
    Layout,
    Link,
    Page,
    SourcePayload,
    TextPayload,
    generate_id,
)
from .navigation import PageFilter, next_index, prev_index, visible_indices

logger = logging.getLogger(__name__)

CLONE_OFFSET = 20
NEW_PAGE_TEMPLATE = "notes"
NEW_PAGE_SECTION = "NOTES"

_FILTER_FIELDS = ("year", "month", "section", "category")

_TAB_ATTRIBUTES = {
    "right": ("custom_tabs", DEFAULT_RIGHT_TABS),
    "left": ("left_tabs", DEFAULT_LEFT_TABS),
    "top": ("top_tabs", DEFAULT_TOP_TABS),
}


class DocumentSession:
    """
    Owns one open document while it is being edited.

    Every change to the page list records a history checkpoint first, so each
    operation below is one undo step. Element and stroke ids are unique across
    the whole document, not just their page.
    """

    def __init__(self, document: Document, config: Optional[EngineConfig] = None,
                 generator: Optional[PageGenerator] = None):
        self.config = config or EngineConfig()
        self.document = document
        self.history = HistoryManager(self.config.history_limit)
        self.generator = generator

        self.selection: List[str] = []
        self.page_filter = PageFilter()
        self.has_unsaved_changes = False

        self.document.clamp_current_page_index()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def pages(self) -> List[Page]:
        return self.document.pages

    @property
    def current_page_index(self) -> int:
        return self.document.current_page_index

    @property
    def current_page(self) -> Optional[Page]:
        return self.document.current_page

    def get_page(self, page_id: str) -> Page:
        """
        Raises:
            NotFoundError: if no page has this id
        """
        index = self.document.page_index(page_id)
        if index < 0:
            raise NotFoundError(f"Page not found: {page_id}")
        return self.pages[index]

    def _page_at(self, index: Optional[int]) -> Page:
        if index is None:
            index = self.current_page_index
        if not 0 <= index < len(self.pages):
            raise NotFoundError(f"No page at index {index}")
        return self.pages[index]

    def _element(self, page: Page, element_id: str) -> Element:
        element = page.find_element(element_id)
        if element is None:
            raise NotFoundError(f"Element not found: {element_id}")
        return element

    def _checkpoint(self) -> None:
        """Save state before a change."""
        self.history.checkpoint(self.pages)
        self.has_unsaved_changes = True

    def _ensure_unique(self, *ids: str) -> None:
        taken = self.document.ids()
        for element_id in ids:
            if element_id in taken:
                raise DuplicateIdError(f"Id already used in document: {element_id}")

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def add_element(self, element: Element, page_index: Optional[int] = None) -> Element:
        """
        Add an element, nudging it off any element already at its position.

        Args:
            element: Element to add; its x/y is the requested position
            page_index: Target page; the current page when omitted

        Returns:
            The added element, with its final position

        Raises:
            DuplicateIdError: if the element id is already in the document
            NotFoundError: if there is no such page
        """
        page = self._page_at(page_index)
        self._ensure_unique(element.id)

        self._checkpoint()
        element.x, element.y = place(page, element.x, element.y)
        page.elements.append(element)
        return element

    def add_text_element(self, text: str, x: float, y: float,
                         page_index: Optional[int] = None, **style) -> Element:
        """Add a text element; ``style`` sets TextPayload fields."""
        element = Element(
            id=generate_id(),
            type=ElementType.TEXT,
            payload=TextPayload(text=text, **style),
            x=x,
            y=y,
        )
        return self.add_element(element, page_index)

    def update_element(self, element_id: str, changes: Dict[str, Any],
                       page_index: Optional[int] = None) -> Element:
        """
        Change element attributes.

        Keys naming an Element attribute set it; other keys set the payload
        attribute of the same name. Free-form payloads (sticky notes, widgets,
        todo lists, voice memos) take any other key into their values.

        Raises:
            NotFoundError: if the element is not on the page
            ReadOnlyElementError: if the element is OCR metadata
            AttributeError: if a key names neither
        """
        page = self._page_at(page_index)
        element = self._element(page, element_id)
        if element.type == ElementType.OCR_METADATA:
            raise ReadOnlyElementError(f"Element {element_id} holds OCR metadata and cannot be edited")

        free_form = isinstance(element.payload, DataPayload)
        for name in changes:
            if name in ("id", "type", "payload"):
                raise AttributeError(f"Element attribute '{name}' cannot be updated")
            if not (hasattr(element, name) or free_form or hasattr(element.payload, name)):
                raise AttributeError(f"Element has no attribute '{name}'")

        self._checkpoint()
        for name, value in changes.items():
            if hasattr(element, name):
                setattr(element, name, value)
            elif free_form:
                element.payload.values[name] = value
            else:
                setattr(element.payload, name, value)
        return element

    def delete_element(self, element_id: str, page_index: Optional[int] = None) -> bool:
        """
        Delete an element.

        Returns:
            True if the element was removed; locked elements and OCR
            metadata are kept
        """
        page = self._page_at(page_index)
        element = page.find_element(element_id)
        if element is None or not element.is_editable:
            return False

        self._checkpoint()
        page.elements.remove(element)
        if element_id in self.selection:
            self.selection.remove(element_id)
        return True

    def reorder_element(self, element_id: str, direction: str,
                        page_index: Optional[int] = None) -> None:
        """
        Move an element in the stacking order.

        Args:
            direction: ``up``, ``down``, ``top`` or ``bottom``
        """
        page = self._page_at(page_index)
        element = self._element(page, element_id)
        index = page.elements.index(element)

        if direction == "up":
            new_index = min(index + 1, len(page.elements) - 1)
        elif direction == "down":
            new_index = max(index - 1, 0)
        elif direction == "top":
            new_index = len(page.elements) - 1
        elif direction == "bottom":
            new_index = 0
        else:
            raise ValueError(f"Unknown direction: {direction}")

        if new_index == index:
            return

        self._checkpoint()
        page.elements.insert(new_index, page.elements.pop(index))

    # ------------------------------------------------------------------
    # Ink
    # ------------------------------------------------------------------

    def add_ink_stroke(self, stroke: InkStroke, page_index: Optional[int] = None) -> bool:
        """
        Add a freehand stroke.

        Returns:
            False if the stroke has fewer than two points and was dropped

        Raises:
            DuplicateIdError: if the stroke id is already in the document
        """
        if not stroke.is_renderable:
            logger.debug("Dropping stroke %s with %d point(s)", stroke.id, stroke.point_count)
            return False

        page = self._page_at(page_index)
        self._ensure_unique(stroke.id)

        self._checkpoint()
        page.ink_strokes.append(stroke)
        return True

    def delete_ink_stroke(self, stroke_id: str, page_index: Optional[int] = None) -> bool:
        page = self._page_at(page_index)
        for stroke in page.ink_strokes:
            if stroke.id == stroke_id:
                self._checkpoint()
                page.ink_strokes.remove(stroke)
                return True
        return False

    def convert_ink_to_text(self, recognizer: Recognizer,
                            stroke_ids: Optional[List[str]] = None,
                            page_index: Optional[int] = None,
                            timeout: Optional[float] = None) -> Optional[Element]:
        """
        Replace strokes with a text element holding their transcription.

        Args:
            recognizer: Handwriting recognizer
            stroke_ids: Strokes to convert; all strokes on the page when omitted
            timeout: Recognition deadline in seconds; the configured one when omitted

        Returns:
            The new text element, placed at the strokes' top-left corner, or
            None if recognition produced nothing (the page is left unchanged)
        """
        page = self._page_at(page_index)
        wanted = set(stroke_ids) if stroke_ids is not None else None
        strokes = [
            s for s in page.ink_strokes
            if s.is_renderable and (wanted is None or s.id in wanted)
        ]
        if timeout is None:
            timeout = self.config.recognition_timeout
        text = transcribe(recognizer, strokes, timeout)
        if not text:
            return None

        x0 = min(s.bounds()[0] for s in strokes)
        y0 = min(s.bounds()[1] for s in strokes)
        converted = {s.id for s in strokes}

        self._checkpoint()
        page.ink_strokes = [s for s in page.ink_strokes if s.id not in converted]
        element = Element(
            id=generate_id(),
            type=ElementType.TEXT,
            payload=TextPayload(text=text),
            x=x0,
            y=y0,
        )
        page.elements.append(element)
        return element

    def clear_page(self, page_index: Optional[int] = None) -> None:
        """Remove all unlocked elements and all ink from a page."""
        page = self._page_at(page_index)
        self._checkpoint()
        page.elements = [e for e in page.elements if e.is_locked]
        page.ink_strokes = []
        self.selection = []

    # ------------------------------------------------------------------
    # Selection (current page)
    # ------------------------------------------------------------------

    def set_selection(self, ids: List[str]) -> None:
        self.selection = list(ids)

    def delete_selection(self) -> int:
        """
        Delete selected elements and strokes; locked elements and OCR
        metadata are kept.

        Returns:
            Number of items removed
        """
        page = self.current_page
        if not self.selection or page is None:
            return 0

        selected = set(self.selection)
        elements = [e for e in page.elements if e.id not in selected or not e.is_editable]
        strokes = [s for s in page.ink_strokes if s.id not in selected]
        removed = (len(page.elements) - len(elements)) + (len(page.ink_strokes) - len(strokes))
        if removed == 0:
            return 0

        self._checkpoint()
        page.elements = elements
        page.ink_strokes = strokes
        self.selection = []
        return removed

    def move_selection(self, dx: float, dy: float) -> None:
        """Shift selected elements and strokes; OCR metadata stays put."""
        page = self.current_page
        if not self.selection or page is None:
            return

        selected = set(self.selection)
        self._checkpoint()
        for element in page.elements:
            if element.id in selected and element.type != ElementType.OCR_METADATA:
                element.x += dx
                element.y += dy
        for stroke in page.ink_strokes:
            if stroke.id in selected:
                stroke.translate(dx, dy)

    def clone_selection(self) -> List[str]:
        """
        Copy selected elements and strokes, offset down and right.

        The copies become the new selection.

        Returns:
            Ids of the copies
        """
        page = self.current_page
        if not self.selection or page is None:
            return []

        selected = set(self.selection)
        elements = [e for e in page.elements if e.id in selected and e.type != ElementType.OCR_METADATA]
        strokes = [s for s in page.ink_strokes if s.id in selected]
        if not elements and not strokes:
            return []

        self._checkpoint()
        new_ids = []
        for element in elements:
            clone = element.copy_with_new_id(x=element.x + CLONE_OFFSET, y=element.y + CLONE_OFFSET)
            page.elements.append(clone)
            new_ids.append(clone.id)
        for stroke in strokes:
            clone = InkStroke.from_dict({**stroke.to_dict(), "id": generate_id()})
            clone.translate(CLONE_OFFSET, CLONE_OFFSET)
            page.ink_strokes.append(clone)
            new_ids.append(clone.id)

        self.selection = new_ids
        return new_ids

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def add_link(self, link: Link, page_index: Optional[int] = None) -> Link:
        page = self._page_at(page_index)
        self._checkpoint()
        page.links.append(link)
        return link

    def update_link(self, link_id: str, page_index: Optional[int] = None,
                    **changes) -> Link:
        """
        Change a link's rectangle, target or note.

        Setting ``url`` clears ``target_page_index`` and vice versa.

        Raises:
            NotFoundError: if the link is not on the page
            ValueError: if the result has no target
        """
        page = self._page_at(page_index)
        link = page.find_link(link_id)
        if link is None:
            raise NotFoundError(f"Link not found: {link_id}")

        values = link.to_dict()
        values.update({
            "x": changes.get("x", link.x),
            "y": changes.get("y", link.y),
            "width": changes.get("width", link.width),
            "height": changes.get("height", link.height),
            "note": changes.get("note", link.note),
        })
        if "url" in changes:
            values["url"] = changes["url"]
            values["targetPageIndex"] = None
        if "target_page_index" in changes:
            values["targetPageIndex"] = changes["target_page_index"]
            values["url"] = None
        updated = Link.from_dict(values)

        self._checkpoint()
        page.links[page.links.index(link)] = updated
        return updated

    def delete_link(self, link_id: str, page_index: Optional[int] = None) -> bool:
        page = self._page_at(page_index)
        link = page.find_link(link_id)
        if link is None:
            return False
        self._checkpoint()
        page.links.remove(link)
        return True

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def add_page(self, at_index: Optional[int] = None,
                 template_id: str = NEW_PAGE_TEMPLATE) -> Page:
        """
        Insert a blank page after ``at_index`` and go to it.

        The new page inherits the section of the page it follows.
        """
        if at_index is None:
            at_index = self.current_page_index
        anchor = (
            self.pages[at_index] if 0 <= at_index < len(self.pages)
            else (self.pages[-1] if self.pages else None)
        )
        insert_at = min(at_index + 1, len(self.pages))
        page = Page(
            id=generate_id(),
            template_id=template_id,
            section=anchor.section if anchor and anchor.section else NEW_PAGE_SECTION,
        )

        self._checkpoint()
        self.pages.insert(insert_at, page)
        self.document.current_page_index = insert_at
        return page

    def delete_page(self, index: int) -> bool:
        """
        Delete a page; the last remaining page cannot be deleted.

        Returns:
            True if the page was removed
        """
        if len(self.pages) <= 1 or not 0 <= index < len(self.pages):
            return False

        self._checkpoint()
        del self.pages[index]
        current = self.current_page_index
        if index <= current and current > 0:
            current -= 1
        self.document.current_page_index = current
        self.document.clamp_current_page_index()
        return True

    def duplicate_page(self, index: int) -> Page:
        """Copy a page with fresh ids right after it and go to the copy."""
        source = self._page_at(index)
        copy_page = Page.from_dict(source.to_dict())
        copy_page.id = generate_id()
        copy_page.elements = [e.copy_with_new_id() for e in copy_page.elements]
        for stroke in copy_page.ink_strokes:
            stroke.id = generate_id()
        for link in copy_page.links:
            link.id = generate_id()
        copy_page.name = f"{source.name or f'Page {index + 1}'} (Copy)"

        self._checkpoint()
        self.pages.insert(index + 1, copy_page)
        self.document.current_page_index = index + 1
        return copy_page

    def reorder_page(self, old_index: int, new_index: int) -> None:
        """Move a page, keeping the current page selected."""
        count = len(self.pages)
        if not (0 <= old_index < count and 0 <= new_index < count) or old_index == new_index:
            return

        current_id = self.current_page.id if self.current_page else None
        self._checkpoint()
        self.pages.insert(new_index, self.pages.pop(old_index))
        if current_id is not None:
            self.document.current_page_index = self.document.page_index(current_id)

    def toggle_page_lock(self, index: int) -> bool:
        """Returns the page's new lock state."""
        page = self._page_at(index)
        self._checkpoint()
        page.is_locked = not page.is_locked
        return page.is_locked

    def set_page_name(self, page_id: str, name: Optional[str]) -> None:
        page = self.get_page(page_id)
        self._checkpoint()
        page.name = name

    def set_page_layout(self, page_id: str, layout: Union[Layout, str],
                        dimensions: Optional[Dimensions] = None) -> None:
        """Change a page's layout; a sized background follows new dimensions."""
        page = self.get_page(page_id)
        layout = Layout(layout)
        self._checkpoint()
        page.set_layout(layout, dimensions)

    def set_page_template(self, page_id: str, template_id: str) -> None:
        page = self.get_page(page_id)
        self._checkpoint()
        page.template_id = template_id

    def update_page_metadata(self, page_id: str, **metadata) -> None:
        """
        Set classification fields: ``year``, ``month``, ``section``, ``category``.

        Raises:
            TypeError: for any other keyword
        """
        unknown = set(metadata) - set(_FILTER_FIELDS)
        if unknown:
            raise TypeError(f"Unknown page metadata: {', '.join(sorted(unknown))}")

        page = self.get_page(page_id)
        self._checkpoint()
        for name, value in metadata.items():
            setattr(page, name, value)

    def apply_background_to_all(self, color: str) -> None:
        """Fill every page's background with ``color``, adding one where missing."""
        self._checkpoint()
        for page in self.pages:
            background = page.background
            if background is not None:
                background.payload.fill = color
            else:
                page.elements.insert(0, Element(
                    id=generate_id(),
                    type=ElementType.BACKGROUND,
                    payload=SourcePayload(fill=color),
                    z_index=-1,
                ))

    def apply_bulk_template(self, template: Union[str, Template],
                            frequency: Union[Frequency, str], count: int,
                            start_date: Optional[DateLike] = None,
                            section: Optional[str] = None,
                            category: Optional[str] = None) -> List[Page]:
        """
        Append pages generated from a template and go to the first of them.

        Nothing is appended if generation fails.

        Raises:
            TemplateNotFoundError: if the template id is unknown
            RuntimeError: if the session has no page generator
        """
        if self.generator is None:
            raise RuntimeError("Session has no page generator")

        pages = self.generator.expand(template, frequency, count, start_date, section, category)
        if not pages:
            return pages

        self._checkpoint()
        first = len(self.pages)
        self.pages.extend(pages)
        self.document.current_page_index = first
        return pages

    def add_pdf_pages(self, result: ImportResult) -> List[Page]:
        """
        Append imported PDF pages in one step.

        Internal links are shifted so they still point at the imported pages.
        """
        if not result.pages:
            return []
        self._ensure_unique(*(i for page in result.pages for i in page.ids()))

        offset = len(self.pages)
        self._checkpoint()
        for page in result.pages:
            for link in page.links:
                if link.is_internal:
                    link.target_page_index += offset
        self.pages.extend(result.pages)
        logger.info("Added %d PDF page(s) to document %s", len(result.pages), self.document.id)
        return result.pages

    # ------------------------------------------------------------------
    # Document metadata (not part of undo history)
    # ------------------------------------------------------------------

    def rename_tab(self, side: str, index: int, name: str) -> None:
        """
        Rename a binder tab.

        Args:
            side: ``right``, ``left`` or ``top``
            index: Tab position; the list grows from the defaults if needed
        """
        if side not in _TAB_ATTRIBUTES:
            raise ValueError(f"Unknown tab side: {side}")
        attribute, defaults = _TAB_ATTRIBUTES[side]
        tabs = list(getattr(self.document, attribute) or defaults)
        if not 0 <= index < len(tabs):
            raise IndexError(f"No {side} tab at index {index}")
        tabs[index] = name
        setattr(self.document, attribute, tabs)
        self.has_unsaved_changes = True

    # ------------------------------------------------------------------
    # Undo / redo
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        """
        Undo the last operation.

        Returns:
            True if undo was successful
        """
        pages = self.history.undo(self.pages)
        if pages is None:
            return False
        self._restore(pages)
        return True

    def redo(self) -> bool:
        """
        Redo the last undone operation.

        Returns:
            True if redo was successful
        """
        pages = self.history.redo(self.pages)
        if pages is None:
            return False
        self._restore(pages)
        return True

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def _restore(self, pages: List[Page]) -> None:
        self.document.pages = pages
        self.document.clamp_current_page_index()
        ids = self.document.ids()
        self.selection = [i for i in self.selection if i in ids]
        self.has_unsaved_changes = True

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def visible_indices(self) -> List[int]:
        return visible_indices(self.pages, self.page_filter)

    def go_to_page(self, index: int) -> bool:
        if not 0 <= index < len(self.pages):
            return False
        self.document.current_page_index = index
        self.selection = []
        return True

    def next_page(self) -> bool:
        index = next_index(self.visible_indices(), self.current_page_index)
        if index is None:
            logger.debug("next_page: no visible page after %d", self.current_page_index)
            return False
        return self.go_to_page(index)

    def prev_page(self) -> bool:
        index = prev_index(self.visible_indices(), self.current_page_index)
        if index is None:
            logger.debug("prev_page: no visible page before %d", self.current_page_index)
            return False
        return self.go_to_page(index)

    def go_to_section(self, section: str) -> bool:
        """
        Jump to the first page of a section.

        Month abbreviations set the month filter; anything else sets the
        category filter.

        Returns:
            True if a page with that section exists
        """
        if section in MONTH_ABBREVIATIONS:
            self.page_filter.month = section
        else:
            self.page_filter.category = section

        for index, page in enumerate(self.pages):
            if page.section == section:
                return self.go_to_page(index)
        return False

    def set_filters(self, **filters) -> None:
        """
        Set ``year``, ``month``, ``section`` or ``category`` filters; None clears one.

        The current page is left where it is.
        """
        for name, value in filters.items():
            if name not in _FILTER_FIELDS:
                raise TypeError(f"Unknown filter: {name}")
            setattr(self.page_filter, name, value)

    def clear_filters(self) -> None:
        self.page_filter = PageFilter()
