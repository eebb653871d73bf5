"""CLI tool for docintake: extract text from local files.

Usage:
    python -m docintake.cli process report.pdf notes.txt
    python -m docintake.cli -o text process slides.pptx
    python -m docintake.cli process --metrics *.docx
    python -m docintake.cli detect mystery.bin
"""

import argparse
import asyncio
import json
import mimetypes
import os
import sys

from docintake.core.logging_config import configure_logging


def _load_file(path: str, index: int):
    from docintake.schemas.upload import InputFile
    from docintake.services.payload import to_data_url

    with open(path, "rb") as fh:
        raw = fh.read()
    mime_type = mimetypes.guess_type(path)[0] or ""
    return InputFile(
        id=str(index),
        name=os.path.basename(path),
        type=mime_type,
        size=len(raw),
        content=to_data_url(raw, mime_type or "application/octet-stream"),
    )


async def _cmd_process(args):
    """Extract a batch of files."""
    from docintake.core.metrics import get_metrics
    from docintake.services.orchestrator import process_batch

    files = [_load_file(path, i) for i, path in enumerate(args.files)]
    result = await process_batch(files)

    if args.output == "text":
        print(result.combined_text)
        if result.has_unprocessable_files:
            print("Some files could not be processed", file=sys.stderr)
    else:
        print(result.model_dump_json(indent=2))

    if args.metrics:
        print(get_metrics().decode("utf-8"), file=sys.stderr)


def _cmd_detect(args):
    """Print the format family each file would be routed to."""
    from docintake.services.orchestrator import resolve_family
    from docintake.services.payload import decode_payload

    rows = []
    for i, path in enumerate(args.files):
        file = _load_file(path, i)
        family = resolve_family(file, decode_payload(file.content))
        rows.append({"file": path, "type": file.declared_type, "format": family.value})

    if args.output == "json":
        print(json.dumps(rows, indent=2, ensure_ascii=False))
    else:
        for row in rows:
            print(f"{row['file']}\t{row['format']}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="docintake",
        description="docintake CLI: extract text from documents, code and binaries",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "-o", "--output", default="json",
        choices=["json", "text"],
        help="Output format (default: json)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # --- process ---
    process_parser = subparsers.add_parser("process", help="Extract text from files")
    process_parser.add_argument("files", nargs="+", help="Files to extract")
    process_parser.add_argument(
        "--metrics", action="store_true",
        help="Print Prometheus metrics to stderr when done",
    )

    # --- detect ---
    detect_parser = subparsers.add_parser("detect", help="Show the detected format of files")
    detect_parser.add_argument("files", nargs="+", help="Files to inspect")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(
        log_format="text",
        log_level="DEBUG" if args.verbose else "WARNING",
        stream=sys.stderr,
    )

    if args.command == "process":
        asyncio.run(_cmd_process(args))
    elif args.command == "detect":
        _cmd_detect(args)


if __name__ == "__main__":
    main()
