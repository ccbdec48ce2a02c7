"""Command line entry point for the planner engine."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from inkplanner.core.document.models import PAGE_PRESETS, Dimensions
from inkplanner.core.document.session import DocumentSession
from inkplanner.core.errors import PlannerError
from inkplanner.core.generation import Frequency, JsonTemplateSource, PageGenerator
from inkplanner.core.pdf_import import PdfImporter, create_document_from_pdf
from inkplanner.core.persistence import JsonDocumentStore, load_document, save_document
from inkplanner.utils.config import EngineConfig, load_config
from inkplanner.utils.resource_loader import get_asset_dir

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inkplanner", description="Build and inspect planner documents.")
    parser.add_argument("--data-dir", help="Directory holding document files")
    parser.add_argument("--config", help="Path to config.json")
    parser.add_argument("--templates", help="JSON file with templates and assets")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    commands = parser.add_subparsers(dest="command", required=True)

    pdf = commands.add_parser("import-pdf", help="Create a document from a PDF")
    pdf.add_argument("pdf_path", help="Path to the PDF")
    pdf.add_argument("--name", help="Document name; defaults to the file name")
    pdf.add_argument("--preset", choices=[p.name for p in PAGE_PRESETS],
                     help="Resize pages to a standard preset")
    pdf.add_argument("--section", help="Section for every imported page")
    pdf.add_argument("--scale", type=float, help="Preview render scale")

    generate = commands.add_parser("generate", help="Append template pages to a document")
    generate.add_argument("document_id")
    generate.add_argument("template_id")
    generate.add_argument("--frequency", default=Frequency.DAILY.value,
                          choices=[f.value for f in Frequency])
    generate.add_argument("--count", type=int, default=1)
    generate.add_argument("--start", help="First page date, YYYY-MM-DD")
    generate.add_argument("--section")
    generate.add_argument("--category")

    show = commands.add_parser("show", help="Print a document's pages")
    show.add_argument("document_id")

    return parser


def import_pdf(args, config: EngineConfig, store: JsonDocumentStore) -> int:
    pdf_path = Path(args.pdf_path)
    if not pdf_path.exists():
        logger.error("File not found: %s", pdf_path)
        return 1

    importer = PdfImporter(preview_scale=args.scale or config.preview_scale)
    result = importer.import_pdf(
        pdf_path,
        preset_name=args.preset,
        section=args.section or config.default_section,
    )

    asset_dir = get_asset_dir(store.data_dir)
    urls = {}
    for asset in result.assets:
        path = asset_dir / f"{asset.id}.png"
        path.write_bytes(asset.data)
        urls[asset.id] = path.as_uri()
    result.bind_asset_urls(urls)

    document = create_document_from_pdf(args.name or pdf_path.stem, result)
    save_document(document, store)
    print(document.id)
    return 0


def generate_pages(args, config: EngineConfig, store: JsonDocumentStore) -> int:
    if not args.templates:
        logger.error("--templates is required for generate")
        return 1

    generator = PageGenerator(
        JsonTemplateSource(args.templates),
        Dimensions(*config.default_dimensions),
    )
    session = DocumentSession(load_document(store, args.document_id), config, generator)
    pages = session.apply_bulk_template(
        args.template_id,
        args.frequency,
        args.count,
        start_date=args.start,
        section=args.section,
        category=args.category,
    )
    save_document(session.document, store)
    logger.info("Added %d page(s) to %s", len(pages), args.document_id)
    return 0


def show_document(args, config: EngineConfig, store: JsonDocumentStore) -> int:
    document = load_document(store, args.document_id)
    print(f"{document.name} ({document.id}): {len(document.pages)} page(s)")
    for i, page in enumerate(document.pages):
        label = page.name or page.template_id
        print(
            f"{i + 1:4d}  {label:<32}  {page.section or '-':<8}  "
            f"{page.layout.value:<10}  {page.dimensions.width:g}x{page.dimensions.height:g}  "
            f"elements={len(page.elements)} links={len(page.links)}"
        )
    return 0


COMMANDS = {
    "import-pdf": import_pdf,
    "generate": generate_pages,
    "show": show_document,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    config = load_config(args.config)
    store = JsonDocumentStore(args.data_dir or config.data_dir)

    try:
        return COMMANDS[args.command](args, config, store)
    except PlannerError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
