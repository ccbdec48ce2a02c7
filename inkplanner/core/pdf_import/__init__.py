"""
PDF import: decoding, link extraction and page building.
"""

from .import_worker import ImportWorker
from .importer import (
    ImportedAsset,
    ImportResult,
    PdfImporter,
    create_document_from_pdf,
)
from .link_layer import LinkAnnotation, LinkType, PageLinkLayer
from .pdf_decoder import FitzPdfDecoder, PdfDecoder

__all__ = [
    "FitzPdfDecoder",
    "ImportedAsset",
    "ImportResult",
    "ImportWorker",
    "LinkAnnotation",
    "LinkType",
    "PageLinkLayer",
    "PdfDecoder",
    "PdfImporter",
    "create_document_from_pdf",
]
