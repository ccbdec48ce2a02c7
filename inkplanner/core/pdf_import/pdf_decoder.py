"""
PDF decoding: page count, rasterization, page sizes and link annotations.
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple, Union

import fitz  # PyMuPDF

from .link_layer import LinkAnnotation, PageLinkLayer

logger = logging.getLogger(__name__)

PdfSource = Union[str, Path, bytes]


class PdfDecoder(Protocol):
    """What the importer needs from a PDF library."""

    @property
    def page_count(self) -> int: ...

    def render_png(self, page_index: int, scale: float) -> bytes: ...

    def page_size(self, page_index: int, scale: float) -> Tuple[float, float]: ...

    def link_annotations(self, page_index: int, scale: float) -> List[LinkAnnotation]: ...

    def resolve_destination(self, name: str) -> Optional[int]: ...

    def close(self) -> None: ...


class FitzPdfDecoder:
    """PdfDecoder backed by PyMuPDF."""

    def __init__(self, source: PdfSource):
        """
        Open a PDF.

        Args:
            source: Path to the file, or the file's bytes

        Raises:
            RuntimeError, ValueError: from PyMuPDF when the data is not a PDF
        """
        if isinstance(source, (bytes, bytearray)):
            self.doc = fitz.open(stream=bytes(source), filetype="pdf")
            self.file_path: Optional[str] = None
        else:
            self.file_path = str(source)
            self.doc = fitz.open(self.file_path)
        self._named_destinations: Optional[Dict[str, Dict]] = None

    @property
    def page_count(self) -> int:
        return self.doc.page_count

    def get_page(self, page_index: int) -> fitz.Page:
        """
        Load a page.

        Raises:
            IndexError: if ``page_index`` is out of range
        """
        if not 0 <= page_index < self.doc.page_count:
            raise IndexError(f"Page index {page_index} out of range (0-{self.doc.page_count - 1})")
        return self.doc.load_page(page_index)

    def render_png(self, page_index: int, scale: float) -> bytes:
        """
        Rasterize a page.

        Args:
            page_index: 0-based index of the page to render
            scale: Zoom factor; 1.0 renders at 72 dpi

        Returns:
            PNG bytes without an alpha channel
        """
        page = self.get_page(page_index)
        mat = fitz.Matrix(scale, scale)
        pix = page.get_pixmap(matrix=mat, alpha=False)
        return pix.tobytes("png")

    def page_size(self, page_index: int, scale: float) -> Tuple[float, float]:
        """Width and height of a page in points, times ``scale``."""
        rect = self.get_page(page_index).rect
        return rect.width * scale, rect.height * scale

    def link_annotations(self, page_index: int, scale: float) -> List[LinkAnnotation]:
        """Supported link annotations of a page, rectangles times ``scale``."""
        return PageLinkLayer(self.get_page(page_index), scale).links

    def resolve_destination(self, name: str) -> Optional[int]:
        """
        Page index a named destination points at.

        Returns:
            0-based page index, or None if the document does not define it
        """
        if self._named_destinations is None:
            self._named_destinations = self.doc.resolve_names()

        target = self._named_destinations.get(name)
        if not target:
            return None
        page_num = target.get("page", -1)
        return page_num if page_num >= 0 else None

    def close(self) -> None:
        if self.doc is not None:
            self.doc.close()
            self.doc = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
