"""
Document model and filtered navigation.

The editing session lives in ``inkplanner.core.document.session``.
"""
from .models import (
    Dimensions,
    Document,
    Element,
    ElementType,
    InkStroke,
    Layout,
    Link,
    Page,
    PagePreset,
    PAGE_PRESETS,
    find_preset,
    generate_id,
)
from .navigation import PageFilter, visible_indices

__all__ = [
    'Dimensions',
    'Document',
    'Element',
    'ElementType',
    'InkStroke',
    'Layout',
    'Link',
    'Page',
    'PagePreset',
    'PAGE_PRESETS',
    'PageFilter',
    'find_preset',
    'generate_id',
    'visible_indices',
]
