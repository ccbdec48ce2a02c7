"""
Turning PDF pages into planner pages.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from ...utils.config import REFERENCE_SCALE
from ..document.models import (
    Dimensions,
    Document,
    Element,
    ElementType,
    Layout,
    Link,
    Page,
    PagePreset,
    SourcePayload,
    find_preset,
    generate_id,
)
from ..errors import PdfImportError
from .link_layer import LinkAnnotation
from .pdf_decoder import FitzPdfDecoder, PdfDecoder, PdfSource

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_SCALE = 1.5
DEFAULT_IMPORT_SECTION = "General"
IMPORTED_COVER_COLOR = "#FFFFFF"
ASSET_SCHEME = "asset:"

ProgressCallback = Callable[[int, int], None]


@dataclass
class ImportedAsset:
    """A rendered page image waiting to be uploaded by the host."""

    id: str
    data: bytes
    source_page_index: int
    mime_type: str = "image/png"

    @property
    def reference(self) -> str:
        """Placeholder ``src`` used until the upload URL is known."""
        return f"{ASSET_SCHEME}{self.id}"


@dataclass
class ImportResult:
    """Pages built from a PDF and the images their backgrounds point at."""

    pages: List[Page] = field(default_factory=list)
    assets: List[ImportedAsset] = field(default_factory=list)
    source_page_count: int = 0

    def bind_asset_urls(self, urls: Dict[str, str]) -> int:
        """
        Point backgrounds at uploaded images.

        Args:
            urls: Asset id to URL

        Returns:
            Number of backgrounds rewritten
        """
        bound = 0
        for page in self.pages:
            background = page.background
            if background is None:
                continue
            src = background.payload.src or ""
            if src.startswith(ASSET_SCHEME) and src[len(ASSET_SCHEME):] in urls:
                background.payload.src = urls[src[len(ASSET_SCHEME):]]
                bound += 1
        return bound


class PdfImporter:
    """
    Builds one planner page per PDF page.

    Each page is rendered once at the preview scale for its image and read
    once at the reference scale for its size and link rectangles, so links
    line up with the page no matter how sharp the preview is.
    """

    def __init__(self, decoder_factory: Callable[[PdfSource], PdfDecoder] = FitzPdfDecoder,
                 preview_scale: float = DEFAULT_PREVIEW_SCALE):
        if preview_scale <= 0:
            raise ValueError(f"Preview scale must be positive: {preview_scale}")
        self.decoder_factory = decoder_factory
        self.preview_scale = preview_scale

    def import_pdf(self, source: PdfSource, preset_name: Optional[str] = None,
                   section: str = DEFAULT_IMPORT_SECTION,
                   selected_pages: Optional[Iterable[int]] = None,
                   progress: Optional[ProgressCallback] = None) -> ImportResult:
        """
        Import a PDF.

        Args:
            source: Path to the PDF or its bytes
            preset_name: Page preset to size pages to; None or an unknown or
                non-resizing preset keeps each page's own size
            section: Section given to every page
            selected_pages: 0-based source page indices to import; all pages
                when omitted
            progress: Called with (pages done, pages total) after each page

        Returns:
            The new pages and their assets, not attached to any document

        Raises:
            PdfImportError: if the PDF cannot be opened or any page fails
        """
        preset = find_preset(preset_name)
        if preset_name and preset is None:
            logger.warning("Unknown page preset %r; keeping source page sizes", preset_name)

        try:
            decoder = self.decoder_factory(source)
        except Exception as e:
            logger.error("Failed to open PDF: %s", e)
            raise PdfImportError(f"Failed to open PDF: {e}") from e

        try:
            total = decoder.page_count
            indices = self._select(selected_pages, total)
            logger.info("Importing %d of %d PDF page(s)", len(indices), total)

            result = ImportResult(source_page_count=total)
            for done, index in enumerate(indices, start=1):
                try:
                    page, asset = self._analyze_page(decoder, index, total, preset, section)
                except PdfImportError:
                    raise
                except Exception as e:
                    logger.error("Failed to analyze PDF page %d: %s", index + 1, e)
                    raise PdfImportError(
                        f"Failed to analyze page {index + 1}: {e}", index
                    ) from e
                result.pages.append(page)
                result.assets.append(asset)
                if progress is not None:
                    progress(done, len(indices))
        finally:
            decoder.close()

        self._retarget_links(result.pages, indices)
        logger.info("Imported %d page(s) from PDF", len(result.pages))
        return result

    @staticmethod
    def _select(selected_pages: Optional[Iterable[int]], total: int) -> List[int]:
        if selected_pages is None:
            return list(range(total))
        indices = sorted(set(selected_pages))
        out_of_range = [i for i in indices if not 0 <= i < total]
        if out_of_range:
            raise PdfImportError(
                f"Selected page(s) out of range: {', '.join(str(i + 1) for i in out_of_range)}",
                out_of_range[0],
            )
        return indices

    def _analyze_page(self, decoder: PdfDecoder, index: int, total: int,
                      preset: Optional[PagePreset], section: str):
        png = decoder.render_png(index, self.preview_scale)
        width, height = decoder.page_size(index, REFERENCE_SCALE)
        if width <= 0 or height <= 0:
            raise PdfImportError(f"Page {index + 1} has no area", index)

        if preset is not None and preset.resizes:
            dimensions = Dimensions(preset.width, preset.height)
            layout = preset.layout
        else:
            dimensions = Dimensions(width, height)
            layout = Layout.for_size(width, height)

        # Links are read in source points; stretch them with the page
        sx = dimensions.width / width
        sy = dimensions.height / height
        links = []
        for annotation in decoder.link_annotations(index, REFERENCE_SCALE):
            link = self._to_link(annotation, decoder, total, sx, sy)
            if link is not None:
                links.append(link)

        asset = ImportedAsset(id=generate_id(), data=png, source_page_index=index)
        background = Element(
            id=generate_id(),
            type=ElementType.BACKGROUND,
            payload=SourcePayload(
                src=asset.reference,
                width=dimensions.width,
                height=dimensions.height,
            ),
            is_locked=True,
        )
        page = Page(
            id=generate_id(),
            template_id="blank",
            elements=[background],
            section=section,
            layout=layout,
            dimensions=dimensions,
            links=links,
        )
        return page, asset

    @staticmethod
    def _to_link(annotation: LinkAnnotation, decoder: PdfDecoder, total: int,
                 sx: float, sy: float) -> Optional[Link]:
        geometry = dict(
            id=generate_id(),
            x=annotation.bbox[0] * sx,
            y=annotation.bbox[1] * sy,
            width=annotation.width * sx,
            height=annotation.height * sy,
        )

        if annotation.uri:
            return Link(url=annotation.uri, **geometry)

        target = annotation.page_index
        if target is None and annotation.named_dest:
            try:
                target = decoder.resolve_destination(annotation.named_dest)
            except Exception as e:
                logger.warning("Could not resolve destination %r: %s", annotation.named_dest, e)
                return None

        if target is None or not 0 <= target < total:
            logger.debug("Dropping link without a usable target: %r", annotation)
            return None
        return Link(target_page_index=target, **geometry)

    @staticmethod
    def _retarget_links(pages: List[Page], indices: List[int]) -> None:
        """Rewrite internal link targets from source indices to result indices."""
        position = {source: i for i, source in enumerate(indices)}
        for page in pages:
            kept = []
            for link in page.links:
                if link.is_internal:
                    if link.target_page_index not in position:
                        logger.debug("Dropping link to unimported page %d", link.target_page_index + 1)
                        continue
                    link.target_page_index = position[link.target_page_index]
                kept.append(link)
            page.links = kept


def create_document_from_pdf(name: str, result: ImportResult,
                             category: Optional[str] = None) -> Document:
    """
    New document holding the imported pages.

    Call after ``bind_asset_urls`` so the cover points at the uploaded image.
    """
    document = Document.new(name, category=category, color=IMPORTED_COVER_COLOR, pages=result.pages)
    if result.pages and result.pages[0].background is not None:
        document.cover_url = result.pages[0].background.payload.src
    logger.info("Created document %s from %d imported page(s)", document.id, len(result.pages))
    return document
