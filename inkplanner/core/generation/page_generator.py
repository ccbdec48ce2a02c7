"""
Bulk expansion of one template into a run of dated pages.
"""
import calendar
import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional, Tuple, Union

from ..document.models import (
    A4_DIMENSIONS,
    DEFAULT_DIMENSIONS,
    MONTH_ABBREVIATIONS,
    Dimensions,
    Element,
    ElementType,
    Layout,
    Page,
    SourcePayload,
    generate_id,
)
from ..persistence.normalizer import normalize_element
from .templates import Template, TemplateSource, require_template

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)

DateLike = Union[date, datetime, str]


class Frequency(Enum):
    """How far apart consecutive generated pages are."""

    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def parse_date(value: Optional[DateLike]) -> date:
    """
    Calendar date from a date, datetime or ``YYYY-MM-DD`` string.

    Strings are read as a local calendar date; any time part is ignored.
    None means today.
    """
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def add_months(start: date, months: int) -> date:
    """``start`` moved by whole months, clamped to the last day of the month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def step_date(start: date, frequency: Frequency, index: int) -> date:
    """Date of the ``index``-th (0-based) generated page."""
    if frequency == Frequency.DAILY:
        return start + timedelta(days=index)
    if frequency == Frequency.WEEKLY:
        return start + timedelta(weeks=index)
    if frequency == Frequency.MONTHLY:
        return add_months(start, index)
    if frequency == Frequency.YEARLY:
        return add_months(start, 12 * index)
    return start


def long_date(value: date) -> str:
    """e.g. ``Monday, January 1, 2024``."""
    return (
        f"{WEEKDAY_NAMES[value.weekday()]}, {MONTH_NAMES[value.month - 1]} "
        f"{value.day}, {value.year}"
    )


def month_abbreviation(value: date) -> str:
    return MONTH_ABBREVIATIONS[value.month - 1]


class PageGenerator:
    """
    Expands templates into pages.

    Template content is resolved once per expansion. Every generated page gets
    fresh element ids, and template elements are locked so they act as a
    backdrop the user writes over.
    """

    def __init__(self, template_source: TemplateSource,
                 default_dimensions: Dimensions = DEFAULT_DIMENSIONS):
        self.template_source = template_source
        self.default_dimensions = default_dimensions

    def resolve(self, template: Union[str, Template]) -> Tuple[Template, List[Element], Dimensions, Layout]:
        """
        Template content ready to stamp: its elements, page size and layout.

        A background image becomes a background element at the bottom of the
        stack unless the template already has one.

        Raises:
            TemplateNotFoundError: if ``template`` is an id the source lacks
        """
        if isinstance(template, str):
            template = require_template(self.template_source, template)

        if template.dimensions is not None:
            dimensions = template.dimensions
        elif template.page_size == "A4":
            dimensions = A4_DIMENSIONS
        else:
            dimensions = self.default_dimensions

        try:
            layout = Layout(template.orientation) if template.orientation else Layout.for_size(
                dimensions.width, dimensions.height
            )
        except ValueError:
            logger.warning("Template %s has unknown orientation %r", template.id, template.orientation)
            layout = Layout.for_size(dimensions.width, dimensions.height)

        elements = [Element.from_dict(normalize_element(data)) for data in template.elements]
        if template.background_image and not any(e.is_background for e in elements):
            elements.insert(0, Element(
                id=generate_id(),
                type=ElementType.BACKGROUND,
                payload=SourcePayload(
                    src=template.background_image,
                    width=dimensions.width,
                    height=dimensions.height,
                ),
                z_index=-1,
            ))

        return template, elements, dimensions, layout

    def expand(self, template: Union[str, Template], frequency: Union[Frequency, str],
               count: int, start_date: Optional[DateLike] = None,
               section: Optional[str] = None,
               category: Optional[str] = None) -> List[Page]:
        """
        Generate ``count`` pages from one template.

        Args:
            template: Template or template id
            frequency: Spacing between page dates
            count: Number of pages to generate
            start_date: Date of the first page; today when omitted
            section: Section for every page; dated runs default to the
                page's month abbreviation
            category: Category for every page

        Returns:
            The new pages, in date order. Nothing is attached to a document.

        Raises:
            TemplateNotFoundError: if the template id is unknown
            ValueError: if ``count`` is negative
        """
        frequency = Frequency(frequency)
        if count < 0:
            raise ValueError(f"Page count must not be negative: {count}")

        template, elements, dimensions, layout = self.resolve(template)
        start = parse_date(start_date)

        pages = []
        for i in range(count):
            page_date = step_date(start, frequency, i)
            month = month_abbreviation(page_date)

            pages.append(Page(
                id=generate_id(),
                template_id=template.id,
                elements=[e.copy_with_new_id(is_locked=True) for e in elements],
                dimensions=dimensions,
                layout=layout,
                name=self._page_name(frequency, page_date, i, start_date is None),
                section=section if section or frequency == Frequency.ONCE else month,
                category=category,
                year=page_date.year,
                month=month,
            ))

        logger.info(
            "Generated %d %s page(s) from template %s starting %s",
            count, frequency.value, template.id, start.isoformat(),
        )
        return pages

    @staticmethod
    def _page_name(frequency: Frequency, page_date: date, index: int,
                   undated: bool) -> Optional[str]:
        if frequency == Frequency.ONCE:
            return None
        if frequency == Frequency.WEEKLY and undated:
            return f"Week {index + 1}"
        return long_date(page_date)
