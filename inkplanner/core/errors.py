"""
Error taxonomy for the planner engine.
"""


class PlannerError(Exception):
    """Base class for every error raised by the engine."""


class NotFoundError(PlannerError):
    """A requested template, page, element or document does not exist."""


class TemplateNotFoundError(NotFoundError):
    """The template source has no template with the requested id."""

    def __init__(self, template_id: str):
        super().__init__(f"Template not found: {template_id}")
        self.template_id = template_id


class DuplicateIdError(PlannerError, ValueError):
    """An element or stroke id is already used somewhere in the document."""


class ReadOnlyElementError(PlannerError):
    """The element holds derived data (OCR metadata) and cannot be edited by hand."""


class SchemaMismatchError(PlannerError):
    """
    The store rejected a write because a row carries columns it does not know.

    Not retried: the store needs a schema migration before writes can succeed.
    """

    def __init__(self, table: str, columns):
        self.table = table
        self.columns = sorted(columns)
        super().__init__(
            f"Schema mismatch: table '{table}' has no column(s) {', '.join(self.columns)}"
        )


class TransientIOError(PlannerError):
    """Reading or writing the store or an asset failed at the OS level."""


class PdfImportError(PlannerError):
    """Analyzing a PDF page failed; the whole import was aborted."""

    def __init__(self, message: str, page_index: int = -1):
        super().__init__(message)
        self.page_index = page_index
