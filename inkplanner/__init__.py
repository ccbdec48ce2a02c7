"""
InkPlanner - a multi-page planner document engine.
"""
from .core.document import Document, Element, InkStroke, Link, Page
from .core.document.session import DocumentSession
from .core.generation import Frequency, PageGenerator
from .core.pdf_import import PdfImporter, create_document_from_pdf
from .core.persistence import JsonDocumentStore, load_document, save_document
from .utils.config import EngineConfig, load_config

__version__ = "0.1.0"

__all__ = [
    'Document',
    'DocumentSession',
    'Element',
    'EngineConfig',
    'Frequency',
    'InkStroke',
    'JsonDocumentStore',
    'Link',
    'Page',
    'PageGenerator',
    'PdfImporter',
    'create_document_from_pdf',
    'load_config',
    'load_document',
    'save_document',
]
