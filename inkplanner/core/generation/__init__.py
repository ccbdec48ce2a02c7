"""
Template-driven page generation.
"""
from .page_generator import Frequency, PageGenerator, long_date, parse_date
from .templates import (
    InMemoryTemplateSource,
    JsonTemplateSource,
    Template,
    TemplateSource,
    require_template,
)

__all__ = [
    "Frequency",
    "PageGenerator",
    "long_date",
    "parse_date",
    "InMemoryTemplateSource",
    "JsonTemplateSource",
    "Template",
    "TemplateSource",
    "require_template",
]
