"""
Core logic for the InkPlanner document engine.
"""
from .errors import (
    DuplicateIdError,
    NotFoundError,
    PdfImportError,
    PlannerError,
    ReadOnlyElementError,
    SchemaMismatchError,
    TemplateNotFoundError,
    TransientIOError,
)

__all__ = [
    'DuplicateIdError',
    'NotFoundError',
    'PdfImportError',
    'PlannerError',
    'ReadOnlyElementError',
    'SchemaMismatchError',
    'TemplateNotFoundError',
    'TransientIOError',
]
