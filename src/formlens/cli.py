#!/usr/bin/env python3
"""Command line entry point: run the extraction pipeline on a PDF or start the gateway."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import settings
from .session import DocumentSession


def print_document_info(session: DocumentSession) -> None:
    state = session.state
    print(f"PDF Info: {state.filename}")
    print(f"  Pages: {len(state.pages)}")
    for i, dims in enumerate(state.dimensions):
        print(
            f"  Page {i + 1}: {round(dims.original_width)} × {round(dims.original_height)}px"
            f" (rendered {round(dims.render_width)} × {round(dims.render_height)})"
        )


def print_fields(session: DocumentSession) -> None:
    state = session.state
    print(f"\nExtracted Form ({len(state.fields)} fields)")
    for field in state.fields:
        print(f"  {field.name:<30} {field.type.value:<10} {field.value}")

    if not state.positions:
        return
    print("\nField Positions")
    print(f"  {'Field Name':<30} {'Page':>4} {'X':>6} {'Y':>6} {'Width':>6} {'Height':>6}")
    for name, pos in state.positions.items():
        print(f"  {name:<30} {pos.page:>4} {pos.x:>6} {pos.y:>6} {pos.width:>6} {pos.height:>6}")


async def run_extract(
    pdf_path: Path,
    output_dir: Optional[Path] = None,
    select: Optional[str] = None,
    gateway_url: Optional[str] = None,
) -> int:
    """Process one PDF and optionally write overlay images.

    Returns:
        Process exit code
    """
    if not pdf_path.exists():
        print(f"Error: PDF not found: {pdf_path}")
        return 1

    from .client import ExtractionClient

    session = DocumentSession(ExtractionClient(gateway_url))
    accepted = await session.upload(pdf_path.name, pdf_path.read_bytes())
    if not accepted:
        message = session.state.alert or "file is not a PDF"
        print(f"✗ Failed to process {pdf_path.name}: {message}")
        return 1

    print_document_info(session)
    print_fields(session)

    if select:
        if session.state.get_field(select) is None:
            print(f"\nWarning: no field named {select!r}")
        session.focus(select)

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        for index, image in enumerate(session.render_overlays()):
            target = output_dir / f"{pdf_path.stem}-page-{index + 1:03}.png"
            image.save(target)
            print(f"✓ Wrote {target}")
    return 0


def main(argv=None):
    """Main CLI dispatcher."""
    parser = argparse.ArgumentParser(
        prog="formlens",
        description="formlens - extract form fields from PDFs with a vision model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)

    extract_parser = subparsers.add_parser("extract", help="Extract fields from a PDF via the gateway")
    extract_parser.add_argument("pdf_path", help="Path to the PDF file")
    extract_parser.add_argument("--output-dir", help="Write page images with field boxes here")
    extract_parser.add_argument("--select", help="Highlight this field in the overlay images")
    extract_parser.add_argument("--gateway-url", help=f"Gateway URL (default: {settings.gateway_url})")

    subparsers.add_parser("serve", help="Run the extraction gateway")

    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s: %(message)s")

    if args.command == "extract":
        return asyncio.run(
            run_extract(
                Path(args.pdf_path),
                output_dir=Path(args.output_dir) if args.output_dir else None,
                select=args.select,
                gateway_url=args.gateway_url,
            )
        )
    if args.command == "serve":
        import uvicorn

        from gateway.app.config import settings as gateway_settings
        from gateway.app.main import app

        uvicorn.run(app, host=gateway_settings.formlens_gateway_host, port=gateway_settings.formlens_gateway_port)
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
