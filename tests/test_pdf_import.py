"""Tests for the PDF import pipeline."""
import fitz
import pytest

from inkplanner.core.document.models import Dimensions, ElementType, Layout
from inkplanner.core.errors import PdfImportError
from inkplanner.core.pdf_import import (
    FitzPdfDecoder,
    LinkAnnotation,
    LinkType,
    PageLinkLayer,
    PdfImporter,
    create_document_from_pdf,
)
from inkplanner.core.pdf_import.link_layer import parse_link


class FakeDecoder:
    """In-memory decoder: one 600x800 page per entry in ``links``."""

    def __init__(self, links, named=None, fail_on=None, size=(600, 800)):
        self.links = links
        self.named = named or {}
        self.fail_on = fail_on
        self.size = size
        self.render_scales = []
        self.link_scales = []
        self.closed = False

    @property
    def page_count(self):
        return len(self.links)

    def render_png(self, page_index, scale):
        if page_index == self.fail_on:
            raise RuntimeError("broken page")
        self.render_scales.append(scale)
        return b"png-%d" % page_index

    def page_size(self, page_index, scale):
        return self.size[0] * scale, self.size[1] * scale

    def link_annotations(self, page_index, scale):
        self.link_scales.append(scale)
        return [
            LinkAnnotation(
                bbox=tuple(v * scale for v in a.bbox),
                link_type=a.link_type,
                uri=a.uri,
                page_index=a.page_index,
                named_dest=a.named_dest,
            )
            for a in self.links[page_index]
        ]

    def resolve_destination(self, name):
        return self.named.get(name)

    def close(self):
        self.closed = True


def annotation(**kwargs):
    kwargs.setdefault("bbox", (10, 20, 110, 70))
    kwargs.setdefault("link_type", LinkType.URI)
    return LinkAnnotation(**kwargs)


def importer_for(decoder, preview_scale=1.5):
    return PdfImporter(decoder_factory=lambda source: decoder, preview_scale=preview_scale)


class TestParseLink:
    def test_uri(self):
        link = parse_link({"kind": fitz.LINK_URI, "from": fitz.Rect(1, 2, 3, 4), "uri": "https://x"}, 2)
        assert link.link_type == LinkType.URI
        assert link.bbox == (2, 4, 6, 8)
        assert link.uri == "https://x"

    def test_goto(self):
        link = parse_link({"kind": fitz.LINK_GOTO, "from": (0, 0, 1, 1), "page": 3})
        assert link.page_index == 3

    def test_named(self):
        link = parse_link({"kind": fitz.LINK_NAMED, "from": (0, 0, 1, 1), "nameddest": "ch1"})
        assert link.page_index is None
        assert link.named_dest == "ch1"

    def test_missing_rect(self):
        assert parse_link({"kind": fitz.LINK_URI, "uri": "https://x"}) is None


class TestImporter:
    def test_reference_pass_independent_of_preview_scale(self):
        for scale in (1.0, 1.5, 3.0):
            decoder = FakeDecoder([[annotation(uri="https://example.com")]])
            result = importer_for(decoder, scale).import_pdf(b"%PDF")

            link = result.pages[0].links[0]
            assert (link.x, link.y, link.width, link.height) == (10, 20, 100, 50)
            assert decoder.render_scales == [scale]
            assert decoder.link_scales == [1.0]
            assert result.pages[0].dimensions == Dimensions(600, 800)

    def test_page_structure(self):
        decoder = FakeDecoder([[], []])
        result = importer_for(decoder).import_pdf(b"%PDF", section="Work")

        assert len(result.pages) == len(result.assets) == 2
        for page, asset in zip(result.pages, result.assets):
            assert len(page.elements) == 1
            background = page.background
            assert background.type == ElementType.BACKGROUND
            assert background.is_locked
            assert background.payload.src == f"asset:{asset.id}"
            assert page.section == "Work"
            assert page.layout == Layout.PORTRAIT
        assert decoder.closed

    def test_link_targets(self):
        decoder = FakeDecoder(
            [[
                annotation(uri="https://example.com"),
                annotation(link_type=LinkType.GOTO, page_index=1),
                annotation(link_type=LinkType.NAMED, named_dest="intro"),
                annotation(link_type=LinkType.NAMED, named_dest="missing"),
                annotation(link_type=LinkType.GOTO, page_index=9),
            ], []],
            named={"intro": 0},
        )
        links = importer_for(decoder).import_pdf(b"%PDF").pages[0].links

        assert [link.url for link in links] == ["https://example.com", None, None]
        assert [link.target_page_index for link in links] == [None, 1, 0]

    def test_selected_pages_retarget_links(self):
        decoder = FakeDecoder([
            [annotation(link_type=LinkType.GOTO, page_index=2)],
            [],
            [annotation(link_type=LinkType.GOTO, page_index=1)],
        ])
        result = importer_for(decoder).import_pdf(b"%PDF", selected_pages=[2, 0])

        assert [a.source_page_index for a in result.assets] == [0, 2]
        assert result.pages[0].links[0].target_page_index == 1
        # Page 2 was not imported, so the link to it is dropped
        assert result.pages[1].links == []

    def test_preset_resizes_page_and_links(self):
        decoder = FakeDecoder([[annotation(uri="https://example.com", bbox=(60, 80, 120, 160))]])
        page = importer_for(decoder).import_pdf(b"%PDF", preset_name="A4 Landscape").pages[0]

        assert page.dimensions == Dimensions(1123, 794)
        assert page.layout == Layout.LANDSCAPE
        assert (page.background.payload.width, page.background.payload.height) == (1123, 794)
        link = page.links[0]
        assert link.x == pytest.approx(60 * 1123 / 600)
        assert link.y == pytest.approx(80 * 794 / 800)

    def test_custom_preset_keeps_source_size(self):
        decoder = FakeDecoder([[]], size=(800, 600))
        page = importer_for(decoder).import_pdf(b"%PDF", preset_name="Custom").pages[0]
        assert page.dimensions == Dimensions(800, 600)
        assert page.layout == Layout.LANDSCAPE

    def test_page_failure_aborts_import(self):
        decoder = FakeDecoder([[], [], []], fail_on=1)
        with pytest.raises(PdfImportError) as excinfo:
            importer_for(decoder).import_pdf(b"%PDF")
        assert excinfo.value.page_index == 1
        assert decoder.closed

    def test_unopenable_pdf(self):
        with pytest.raises(PdfImportError):
            PdfImporter().import_pdf(b"not a pdf")

    def test_progress(self):
        calls = []
        importer_for(FakeDecoder([[], [], []])).import_pdf(b"%PDF", progress=lambda *a: calls.append(a))
        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_bind_asset_urls_and_document(self):
        result = importer_for(FakeDecoder([[], []])).import_pdf(b"%PDF")
        urls = {a.id: f"https://cdn.example.com/{a.id}.png" for a in result.assets}

        assert result.bind_asset_urls(urls) == 2
        document = create_document_from_pdf("Scanned", result)
        assert document.cover_color == "#FFFFFF"
        assert document.cover_url == urls[result.assets[0].id]
        assert len(document.pages) == 2


class TestFitzDecoder:
    def test_page_facts(self, linked_pdf):
        with FitzPdfDecoder(linked_pdf) as decoder:
            assert decoder.page_count == 3
            assert decoder.page_size(0, 1.0) == pytest.approx((612, 792))
            assert decoder.page_size(0, 2.0) == pytest.approx((1224, 1584))
            assert decoder.render_png(0, 0.5).startswith(b"\x89PNG")

    def test_link_annotations_scaled(self, linked_pdf):
        with FitzPdfDecoder(linked_pdf) as decoder:
            uri = next(a for a in decoder.link_annotations(0, 2.0) if a.link_type == LinkType.URI)
        assert uri.bbox == pytest.approx((144, 144, 288, 200))

    def test_import_real_pdf(self, linked_pdf):
        result = PdfImporter(preview_scale=2.0).import_pdf(linked_pdf)

        first = result.pages[0]
        uri = next(link for link in first.links if not link.is_internal)
        assert uri.url == "https://example.com"
        assert (uri.x, uri.y, uri.width, uri.height) == pytest.approx((72, 72, 72, 28))

        internal = next(link for link in first.links if link.is_internal)
        assert internal.target_page_index == 2
        assert result.pages[1].links[0].target_page_index == 0
        assert first.dimensions.width == pytest.approx(612)

    def test_landscape_source(self, landscape_pdf):
        page = PdfImporter().import_pdf(landscape_pdf).pages[0]
        assert page.layout == Layout.LANDSCAPE

    def test_page_link_layer(self, linked_pdf):
        doc = fitz.open(stream=linked_pdf, filetype="pdf")
        try:
            links = PageLinkLayer(doc[0]).links
        finally:
            doc.close()
        assert [a.link_type for a in links] == [LinkType.URI, LinkType.GOTO]
        assert (links[0].width, links[0].height) == pytest.approx((72, 28))
        assert links[1].page_index == 2

    def test_unreadable_link_table_yields_no_links(self):
        class BrokenPage:
            number = 4

            def get_links(self):
                raise RuntimeError("bad annotation array")

        assert PageLinkLayer(BrokenPage()).links == []
