"""
Background worker for PDF imports.
"""
import logging
from typing import Iterable, Optional

from PyQt5.QtCore import QThread, pyqtSignal

from .importer import DEFAULT_IMPORT_SECTION, PdfImporter
from .pdf_decoder import PdfSource

logger = logging.getLogger(__name__)


class ImportWorker(QThread):
    """Worker thread for importing large PDFs without blocking the caller."""

    # Signals
    progress = pyqtSignal(int, int)  # pages done, total pages
    finished = pyqtSignal(object)  # ImportResult
    error = pyqtSignal(str)  # error message

    def __init__(self, importer: PdfImporter, source: PdfSource,
                 preset_name: Optional[str] = None,
                 section: str = DEFAULT_IMPORT_SECTION,
                 selected_pages: Optional[Iterable[int]] = None, parent=None):
        super().__init__(parent)
        self._importer = importer
        self._source = source
        self._preset_name = preset_name
        self._section = section
        self._selected_pages = list(selected_pages) if selected_pages is not None else None
        self._cancelled = False
        self._started = False

    def cancel(self) -> bool:
        """
        Cancel the import.

        Only honored before the import starts; a running import finishes.

        Returns:
            True if the import will not run
        """
        if self._started:
            return False
        self._cancelled = True
        return True

    def is_cancelled(self) -> bool:
        return self._cancelled

    def run(self):
        """Execute the import in background thread."""
        if self._cancelled:
            logger.info("PDF import cancelled before start")
            return
        self._started = True

        try:
            result = self._importer.import_pdf(
                self._source,
                preset_name=self._preset_name,
                section=self._section,
                selected_pages=self._selected_pages,
                progress=self.progress.emit,
            )
        except Exception as e:
            self.error.emit(str(e))
            return

        self.finished.emit(result)
