"""Tests for load-time schema reconciliation."""
from inkplanner.core.persistence import normalize_element, normalize_page, normalize_pages


class TestNormalizeElement:
    def test_props_hoisted(self):
        data = {"id": "e1", "type": "text", "props": {"text": "hi", "x": 5}}
        assert normalize_element(data) == {"id": "e1", "type": "text", "text": "hi", "x": 5}

    def test_top_level_wins(self):
        data = {"id": "e1", "type": "text", "x": 1, "props": {"x": 99}}
        assert normalize_element(data)["x"] == 1

    def test_flat_record_unchanged(self):
        data = {"id": "e1", "type": "text", "text": "hi"}
        assert normalize_element(data) == data

    def test_input_not_mutated(self):
        data = {"id": "e1", "props": {"x": 1}}
        normalize_element(data)
        assert "props" in data


class TestNormalizePage:
    def test_defaults(self):
        page = normalize_page({"id": "p1"})
        assert page["dimensions"] == {"width": 800, "height": 1000}
        assert page["layout"] == "portrait"
        assert page["is_locked"] is False
        assert page["elements"] == []
        assert page["ink_paths"] == []

    def test_layer_fills_empty_inline_lists(self):
        layer = {
            "page_id": "p1",
            "elements": [{"id": "e1", "type": "text", "props": {"text": "legacy"}}],
            "ink_paths": [{"id": "s1", "points": [0, 0, 5, 5]}],
        }
        page = normalize_page({"id": "p1", "elements": [], "ink_paths": []}, layer)

        assert [e["id"] for e in page["elements"]] == ["e1", "s1"]
        assert page["elements"][0]["text"] == "legacy"
        assert page["elements"][1]["type"] == "path"

    def test_inline_content_wins_over_layer(self):
        layer = {"page_id": "p1", "elements": [{"id": "old", "type": "text"}]}
        page = normalize_page({"id": "p1", "elements": [{"id": "new", "type": "text"}]}, layer)
        assert [e["id"] for e in page["elements"]] == ["new"]

    def test_ink_folding_skips_known_ids_and_short_strokes(self):
        row = {
            "id": "p1",
            "elements": [{"id": "s1", "type": "path", "points": [0, 0, 1, 1]}],
            "ink_paths": [
                {"id": "s1", "points": [0, 0, 1, 1]},
                {"id": "dot", "points": [3, 3]},
                {"id": "odd", "points": [0, 0, 1, 1, 2]},
            ],
        }
        page = normalize_page(row)
        assert [e["id"] for e in page["elements"]] == ["s1", "odd"]
        assert page["elements"][1]["points"] == [0, 0, 1, 1]

    def test_idempotent(self):
        layer = {
            "page_id": "p1",
            "elements": [{"id": "e1", "type": "text", "props": {"text": "x"}}],
            "ink_paths": [{"id": "s1", "points": [0, 0, 5, 5]}],
        }
        once = normalize_page({"id": "p1", "page_number": 0, "section": "JAN"}, layer)
        twice = normalize_page(once, layer)
        assert twice == once
        assert normalize_page(twice) == once

    def test_pages_sorted_and_matched_to_layers(self):
        rows = [{"id": "b", "page_number": 1}, {"id": "a", "page_number": 0}]
        layers = [{"page_id": "b", "elements": [{"id": "eb", "type": "text"}]}]
        pages = normalize_pages(rows, layers)
        assert [p["id"] for p in pages] == ["a", "b"]
        assert pages[0]["elements"] == []
        assert pages[1]["elements"][0]["id"] == "eb"
