"""Preview how a statement file would be parsed, without touching storage."""

import argparse
import json
import sys
from pathlib import Path

from tabulate import tabulate

from .catalogue import load_catalogue
from .errors import StatementImportError, UnsupportedFormatError
from .format_detector import supported_extension
from .parser import parse_statement
from .pdf_text import extract_pdf_text


def read_statement_text(path: Path) -> str:
    if path.suffix.lower() == ".pdf":
        return extract_pdf_text(path.read_bytes())
    raw = path.read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statement-import", description="Parse a bank statement (CSV or PDF)"
    )
    parser.add_argument("file", help="Path to the statement file")
    parser.add_argument(
        "--format", choices=("table", "json"), default="table", dest="output"
    )
    parser.add_argument("--catalogue", help="JSON file replacing the built-in merchants")
    parser.add_argument(
        "--show-skipped", action="store_true", help="List dropped lines and why"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    path = Path(args.file)

    try:
        supported_extension(path.name)
    except UnsupportedFormatError as e:
        print(str(e), file=sys.stderr)
        return 2

    try:
        text = read_statement_text(path)
    except StatementImportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = parse_statement(
        text, file_name=path.name, catalogue=load_catalogue(args.catalogue)
    )

    if args.output == "json":
        payload = {
            "transactions": [t.to_dict() for t in result.transactions],
            "matchedCount": result.matched_count,
            "unmatchedCount": result.unmatched_count,
            "totalCount": result.total_count,
            "skipped": [
                {"line": s.line_number, "reason": s.reason.value} for s in result.skipped
            ],
        }
        print(json.dumps(payload, indent=2))
        return 0

    rows = [
        [
            t.line_number,
            t.date,
            t.description,
            f"{t.amount:,.2f}",
            t.direction.value,
            t.merchant_name,
            "yes" if t.matched else "",
        ]
        for t in result.transactions
    ]
    print(
        tabulate(
            rows,
            headers=["Line", "Date", "Description", "Amount", "Type", "Merchant", "Matched"],
        )
    )
    print(
        f"\n{result.total_count} transactions "
        f"({result.matched_count} matched, {result.unmatched_count} unmatched)"
    )

    if args.show_skipped and result.skipped:
        print()
        print(
            tabulate(
                [[s.line_number, s.reason.value, s.text] for s in result.skipped],
                headers=["Line", "Reason", "Text"],
            )
        )
    return 0
