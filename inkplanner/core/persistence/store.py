"""
Whole-document persistence: the store interface and a JSON file store.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set, Union

from ...utils.resource_loader import get_app_data_dir
from ..errors import NotFoundError, PlannerError, SchemaMismatchError, TransientIOError

logger = logging.getLogger(__name__)

DOCUMENT_COLUMNS = frozenset({
    "id", "name", "category", "cover_color", "cover_url", "custom_tabs",
    "left_tabs", "top_tabs", "binder_style", "use_spread_view", "is_favorite",
    "is_archived", "archived_at", "created_at", "updated_at",
})

PAGE_COLUMNS = frozenset({
    "id", "document_id", "page_number", "template_id", "dimensions", "layout",
    "section", "category", "year", "month", "is_locked", "links", "thumbnail",
    "name", "searchable_text", "ink_transcription", "elements", "ink_paths",
    "updated_at",
})

LAYER_COLUMNS = frozenset({"page_id", "elements", "ink_paths", "updated_at"})


class DocumentStore(Protocol):
    """Where documents are read from and written to."""

    def upsert_document(self, header: Dict[str, Any]) -> None: ...

    def upsert_pages(self, document_id: str, rows: List[Dict[str, Any]]) -> None: ...

    def upsert_layers(self, document_id: str, rows: List[Dict[str, Any]]) -> None: ...

    def prune_pages(self, document_id: str, keep_ids: Iterable[str]) -> None: ...

    def fetch_document(self, document_id: str) -> Optional[Dict[str, Any]]: ...

    def fetch_pages(self, document_id: str) -> List[Dict[str, Any]]: ...

    def fetch_layers(self, document_id: str, page_ids: Iterable[str]) -> List[Dict[str, Any]]: ...

    def delete_document(self, document_id: str) -> None: ...


class JsonDocumentStore:
    """
    Stores each document as one JSON file under the data directory.

    The file holds the document header, the page rows and the layer rows
    (element and stroke lists keyed by page id). Column sets can be narrowed
    to mirror an older schema; writing an unknown column then fails with
    SchemaMismatchError.
    """

    def __init__(self, data_dir: Optional[Union[str, Path]] = None,
                 document_columns: Optional[Set[str]] = None,
                 page_columns: Optional[Set[str]] = None,
                 layer_columns: Optional[Set[str]] = None):
        self._data_dir: Optional[Path] = Path(data_dir) if data_dir else None
        self._columns = {
            "documents": frozenset(document_columns or DOCUMENT_COLUMNS),
            "pages": frozenset(page_columns or PAGE_COLUMNS),
            "layers": frozenset(layer_columns or LAYER_COLUMNS),
        }

    @property
    def data_dir(self) -> Path:
        """Directory holding the document files, created on first use."""
        if self._data_dir is None:
            self._data_dir = get_app_data_dir() / "documents"
        self._data_dir.mkdir(parents=True, exist_ok=True)
        return self._data_dir

    def get_json_path(self, document_id: str) -> Path:
        return self.data_dir / f"{document_id}.json"

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert_document(self, header: Dict[str, Any]) -> None:
        self._check_columns("documents", header)
        data = self._read(header["id"]) or self._empty()
        merged = dict(data["document"] or {})
        merged.update(header)
        data["document"] = merged
        self._write(header["id"], data)

    def upsert_pages(self, document_id: str, rows: List[Dict[str, Any]]) -> None:
        for row in rows:
            self._check_columns("pages", row)
        data = self._require(document_id)
        data["pages"] = self._upsert_rows(data["pages"], rows, "id")
        self._write(document_id, data)

    def upsert_layers(self, document_id: str, rows: List[Dict[str, Any]]) -> None:
        for row in rows:
            self._check_columns("layers", row)
        data = self._require(document_id)
        data["layers"] = self._upsert_rows(data["layers"], rows, "page_id")
        self._write(document_id, data)

    def prune_pages(self, document_id: str, keep_ids: Iterable[str]) -> None:
        """Drop page and layer rows whose page is no longer in the document."""
        keep = set(keep_ids)
        data = self._require(document_id)
        data["pages"] = [row for row in data["pages"] if row["id"] in keep]
        data["layers"] = [row for row in data["layers"] if row["page_id"] in keep]
        self._write(document_id, data)

    def delete_document(self, document_id: str) -> None:
        path = self.get_json_path(document_id)
        if not path.exists():
            return
        try:
            os.remove(path)
        except OSError as e:
            raise TransientIOError(f"Failed to delete {path}: {e}") from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        data = self._read(document_id)
        return data["document"] if data else None

    def fetch_pages(self, document_id: str) -> List[Dict[str, Any]]:
        data = self._read(document_id)
        return list(data["pages"]) if data else []

    def fetch_layers(self, document_id: str, page_ids: Iterable[str]) -> List[Dict[str, Any]]:
        data = self._read(document_id)
        if not data:
            return []
        wanted = set(page_ids)
        return [row for row in data["layers"] if row.get("page_id") in wanted]

    def list_documents(self) -> List[Dict[str, Any]]:
        """Headers of every stored document."""
        headers = []
        for path in sorted(self.data_dir.glob("*.json")):
            data = self._read(path.stem)
            if data and data["document"]:
                headers.append(data["document"])
        return headers

    def has_document(self, document_id: str) -> bool:
        return self.get_json_path(document_id).exists()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _empty() -> Dict[str, Any]:
        return {"document": None, "pages": [], "layers": []}

    @staticmethod
    def _upsert_rows(existing: List[Dict[str, Any]], rows: List[Dict[str, Any]],
                     key: str) -> List[Dict[str, Any]]:
        index = {row[key]: i for i, row in enumerate(existing)}
        result = list(existing)
        for row in rows:
            if row[key] in index:
                merged = dict(result[index[row[key]]])
                merged.update(row)
                result[index[row[key]]] = merged
            else:
                index[row[key]] = len(result)
                result.append(dict(row))
        return result

    def _check_columns(self, table: str, row: Dict[str, Any]) -> None:
        unknown = set(row) - self._columns[table]
        if unknown:
            raise SchemaMismatchError(table, unknown)

    def _require(self, document_id: str) -> Dict[str, Any]:
        data = self._read(document_id)
        if data is None or data["document"] is None:
            raise NotFoundError(f"Document not found: {document_id}")
        return data

    def _read(self, document_id: str) -> Optional[Dict[str, Any]]:
        path = self.get_json_path(document_id)
        if not path.exists():
            return None
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except OSError as e:
            raise TransientIOError(f"Failed to read {path}: {e}") from e
        except ValueError as e:
            raise PlannerError(f"Corrupt document file {path}: {e}") from e

        for key, default in self._empty().items():
            data.setdefault(key, default)
        return data

    def _write(self, document_id: str, data: Dict[str, Any]) -> None:
        path = self.get_json_path(document_id)
        temp_path = None
        try:
            fd, temp_path = tempfile.mkstemp(suffix=".json", dir=str(path.parent))
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(temp_path, path)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                os.remove(temp_path)
            logger.error("Failed to write %s: %s", path, e)
            raise TransientIOError(f"Failed to write {path}: {e}") from e
