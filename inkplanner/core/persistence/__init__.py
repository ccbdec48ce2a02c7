"""
Document persistence and load-time schema reconciliation.
"""
from .documents import load_document, save_document
from .normalizer import normalize_element, normalize_page, normalize_pages
from .store import DocumentStore, JsonDocumentStore

__all__ = [
    'DocumentStore',
    'JsonDocumentStore',
    'load_document',
    'save_document',
    'normalize_element',
    'normalize_page',
    'normalize_pages',
]
