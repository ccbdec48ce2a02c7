"""Tests for saving and loading documents."""
import json

import pytest

from conftest import make_stroke, make_text

from inkplanner.core.document.models import Document, ElementType, Page
from inkplanner.core.errors import NotFoundError, PlannerError, SchemaMismatchError
from inkplanner.core.persistence import JsonDocumentStore, load_document, save_document
from inkplanner.core.persistence.documents import ocr_element_id
from inkplanner.core.persistence.store import PAGE_COLUMNS


class StubRecognizer:
    def __init__(self, text):
        self.text = text
        self.calls = 0

    def recognize(self, strokes):
        self.calls += 1
        return self.text


class TestJsonDocumentStore:
    def test_missing_document(self, store):
        assert store.fetch_document("nope") is None
        assert store.fetch_pages("nope") == []
        with pytest.raises(NotFoundError):
            load_document(store, "nope")

    def test_pages_need_a_header(self, store):
        with pytest.raises(NotFoundError):
            store.upsert_pages("nope", [{"id": "p1"}])

    def test_schema_mismatch(self, tmp_path):
        store = JsonDocumentStore(tmp_path, page_columns=PAGE_COLUMNS - {"ink_transcription"})
        store.upsert_document({"id": "d1", "name": "x"})
        with pytest.raises(SchemaMismatchError) as excinfo:
            store.upsert_pages("d1", [{"id": "p1", "ink_transcription": ""}])
        assert excinfo.value.table == "pages"
        assert excinfo.value.columns == ["ink_transcription"]

    def test_corrupt_file(self, store):
        store.get_json_path("bad").write_text("{not json")
        with pytest.raises(PlannerError):
            store.fetch_document("bad")

    def test_upsert_merges_rows(self, store):
        store.upsert_document({"id": "d1", "name": "x"})
        store.upsert_pages("d1", [{"id": "p1", "name": "a", "section": "JAN"}])
        store.upsert_pages("d1", [{"id": "p1", "name": "b"}])
        assert store.fetch_pages("d1") == [{"id": "p1", "name": "b", "section": "JAN"}]

    def test_list_and_delete(self, store):
        store.upsert_document({"id": "d1", "name": "one"})
        store.upsert_document({"id": "d2", "name": "two"})
        assert [h["name"] for h in store.list_documents()] == ["one", "two"]
        store.delete_document("d1")
        assert not store.has_document("d1")


class TestSaveLoad:
    def test_round_trip(self, store, document):
        save_document(document, store)
        loaded = load_document(store, document.id)

        assert loaded.name == document.name
        assert [p.id for p in loaded.pages] == [p.id for p in document.pages]
        first = loaded.pages[0]
        assert first.section == "JAN" and first.year == 2024
        # Strokes come back folded into the element list
        assert first.ink_strokes == []
        assert [e.type for e in first.elements] == [ElementType.TEXT, ElementType.TEXT, ElementType.PATH]
        assert first.elements[0].is_locked

    def test_rows_written(self, store, document):
        save_document(document, store)
        rows = store.fetch_pages(document.id)

        assert [r["page_number"] for r in rows] == [0, 1, 2]
        assert rows[0]["searchable_text"] == "locked free"
        layers = store.fetch_layers(document.id, [rows[0]["id"]])
        assert len(layers[0]["ink_paths"]) == 1

    def test_deleted_pages_pruned(self, store, document):
        save_document(document, store)
        del document.pages[1]
        save_document(document, store)
        assert [p.id for p in load_document(store, document.id).pages] == ["page-1", "page-3"]

    def test_non_renderable_strokes_not_written(self, store):
        page = Page(id="p1", ink_strokes=[make_stroke(1, 1)])
        save_document(Document(id="d1", name="d", pages=[page]), store)
        assert store.fetch_layers("d1", ["p1"])[0]["ink_paths"] == []

    def test_transcription_adds_ocr_element(self, store, document):
        recognizer = StubRecognizer("  meeting at noon ")
        save_document(document, store, recognizer=recognizer)

        # Only the first page has ink
        assert recognizer.calls == 1
        row = store.fetch_pages(document.id)[0]
        assert row["ink_transcription"] == "meeting at noon"
        first = load_document(store, document.id).pages[0]
        ocr = first.find_element(ocr_element_id(first.id))
        assert ocr.type == ElementType.OCR_METADATA
        assert ocr.payload.text == "meeting at noon"

    def test_failed_transcription_keeps_saving(self, store, document):
        class Broken:
            def recognize(self, strokes):
                raise RuntimeError("offline")

        save_document(document, store, recognizer=Broken())
        assert store.fetch_pages(document.id)[0]["ink_transcription"] == ""

    def test_empty_document_gets_default_pages(self, store):
        store.upsert_document({"id": "d1", "name": "Empty"})
        loaded = load_document(store, "d1")
        assert [p.template_id for p in loaded.pages] == ["daily", "weekly", "notes"]

    def test_legacy_layout_loads(self, store):
        data = {
            "document": {"id": "old", "name": "Legacy"},
            "pages": [
                {"id": "p2", "page_number": 1, "template_id": "notes"},
                {"id": "p1", "page_number": 0, "template_id": "daily", "is_locked": 1},
            ],
            "layers": [{
                "page_id": "p1",
                "elements": [{"id": "e1", "type": "image", "props": {"url": "a.png", "x": 3}}],
                "ink_paths": [{"id": "s1", "points": [0, 0, 4, 4, 9]}],
            }],
        }
        store.get_json_path("old").write_text(json.dumps(data))

        loaded = load_document(store, "old")
        assert [p.id for p in loaded.pages] == ["p1", "p2"]
        first = loaded.pages[0]
        assert first.is_locked is True
        image = first.find_element("e1")
        assert image.payload.src == "a.png" and image.x == 3
        assert first.find_element("s1").payload.points == [0, 0, 4, 4]

    def test_unknown_element_skipped(self, store):
        data = {
            "document": {"id": "d1", "name": "x"},
            "pages": [{"id": "p1", "elements": [{"id": "e1", "type": "hologram"}, make_text().to_dict()]}],
            "layers": [],
        }
        store.get_json_path("d1").write_text(json.dumps(data))
        assert len(load_document(store, "d1").pages[0].elements) == 1
