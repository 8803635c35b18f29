from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .artifacts import format_pages_text, write_words_json
from .contracts import DecoderName, ExtractWordsConfig
from .module import run_extract_words_relpath


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sq-pdf-words",
        description="Extract position-aligned words from a PDF into a JSON manifest.",
    )
    p.add_argument("--data-root", required=True, type=Path, help="Resolved DATA_ROOT path.")
    p.add_argument("--pdf-relpath", required=True, help="PDF path relative to --data-root.")
    p.add_argument("--out-json", required=True, type=Path, help="Output JSON file.")
    p.add_argument(
        "--engine",
        choices=[e.value for e in DecoderName],
        default=DecoderName.PYPDFIUM2.value,
        help="Text decoding backend.",
    )
    p.add_argument(
        "--page-selection",
        default=None,
        help='Optional page selection like "1,3-5". Default: all pages.',
    )
    p.add_argument(
        "--drop-empty-words",
        action="store_true",
        help="Leave empty words (from leading/repeated whitespace) out of the JSON.",
    )
    p.add_argument(
        "--compute-source-sha256",
        action="store_true",
        help="Include SHA-256 of the source PDF in the extraction block.",
    )
    p.add_argument("--print-text", action="store_true", help="Also print the extracted lines to stdout.")
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for diagnostics on stderr.",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = ExtractWordsConfig(
        data_root=args.data_root,
        engine=DecoderName(args.engine),
        page_selection=args.page_selection,
        drop_empty_words=args.drop_empty_words,
        compute_source_sha256=args.compute_source_sha256,
    )

    result = run_extract_words_relpath(config=config, pdf_relpath=args.pdf_relpath)
    write_words_json(result=result, out_json=args.out_json)

    if args.print_text:
        sys.stdout.write(format_pages_text(result.pages))

    return 0 if result.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
