"""
interfaces/cli.py
──────────────────────────────────────────────────────────────────────────────
Command-line interface for the HS code classifier.

Usage:
  # Single product
  python -m hsclassify.interfaces.cli classify -d "Wireless optical mouse, USB receiver" -b Logitech

  # Save the result to a user's history
  python -m hsclassify.interfaces.cli classify -d "Stainless steel kitchen knife" --user UID

  # Batch file (one description per line)
  python -m hsclassify.interfaces.cli classify --file products.txt --json

  # History
  hs-classify history UID
  hs-classify export UID --output history.json
  hs-classify clear UID --yes

Exit codes:
  0 — success
  1 — runtime error (provider, database, etc.)
  2 — argument error
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from hsclassify.domain.exceptions import HSClassifierError
from hsclassify.services.container import get_history_store, get_pipeline
from hsclassify.services.history_export import export_filename, export_history_json

logger = logging.getLogger(__name__)


# ── Argument parser ────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hs-classify",
        description="Predict customs HS codes and manage classification history.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    sub = p.add_subparsers(dest="command", metavar="COMMAND")

    c = sub.add_parser("classify", help="Predict the HS code of a product.")
    c.add_argument("--description", "-d", metavar="TEXT",
                   help="Product description (at least 10 characters).")
    c.add_argument("--brand", "-b", default="", metavar="BRAND",
                   help="Product brand (optional).")
    c.add_argument("--file", "-f", metavar="FILE", type=Path,
                   help="Text file with one product description per line.")
    c.add_argument("--user", "-u", metavar="UID", default=None,
                   help="Save results to this user's history.")
    c.add_argument("--json", action="store_true", dest="json_output",
                   help="Output results as JSON.")

    h = sub.add_parser("history", help="List a user's history, newest first.")
    h.add_argument("user", metavar="UID")
    h.add_argument("--json", action="store_true", dest="json_output",
                   help="Output history as JSON.")

    e = sub.add_parser("export", help="Export a user's history to a JSON file.")
    e.add_argument("user", metavar="UID")
    e.add_argument("--output", "-o", type=Path, default=None,
                   help="Target file (default: timestamped name in the current dir).")

    x = sub.add_parser("clear", help="Delete a user's entire history.")
    x.add_argument("user", metavar="UID")
    x.add_argument("--yes", "-y", action="store_true",
                   help="Do not ask for confirmation.")
    return p


# ── Formatting helpers ─────────────────────────────────────────────────────

def _print_result_text(description: str, response) -> None:
    """Pretty-print an ActionResponse to stdout."""
    data = response.data
    print(f"\n{'─' * 60}")
    print(f"Product : {description}")
    print(f"{'─' * 60}")
    print(f"  HS code       : {data.prediction.hs_code}")
    print(f"  Justification : {data.prediction.explanation}")
    print(f"  Retro         : {data.explanation.explanation}")
    if response.saved:
        print(f"  Saved as #{response.history_item.id}")
    elif response.error:
        print(f"  NOTE: {response.error}")
    print()


def _print_history_text(items) -> None:
    if not items:
        print("No history yet.")
        return
    for item in items:
        print(f"[{item.timestamp:%Y-%m-%d %H:%M}] {item.label}")
        print(f"    {item.description}")


def _load_descriptions_from_file(path: Path) -> list[str]:
    """Read descriptions from a text file, skip blank/comment lines."""
    if not path.exists():
        print(f"ERROR: File not found: {path}", file=sys.stderr)
        sys.exit(2)
    lines = path.read_text(encoding="utf-8").splitlines()
    return [l.strip() for l in lines if l.strip() and not l.startswith("#")]


# ── Commands ───────────────────────────────────────────────────────────────

def _cmd_classify(args: argparse.Namespace) -> int:
    if args.description:
        descriptions = [args.description]
    elif args.file:
        descriptions = _load_descriptions_from_file(args.file)
    else:
        print("ERROR: provide --description or --file", file=sys.stderr)
        return 2

    try:
        pipeline = get_pipeline()
    except Exception as exc:
        logger.exception("Failed to initialise pipeline")
        print(f"ERROR: Pipeline initialisation failed: {exc}", file=sys.stderr)
        return 1

    exit_code = 0
    for description in descriptions:
        response = pipeline.classify(
            {"brand": args.brand, "description": description, "user_id": args.user}
        )
        if not response.success:
            print(f"ERROR [{description!r}]: {response.error}", file=sys.stderr)
            exit_code = 1
            continue
        if args.json_output:
            print(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
        else:
            _print_result_text(description, response)
    return exit_code


def _cmd_history(args: argparse.Namespace) -> int:
    items = get_history_store().list(args.user)
    if args.json_output:
        print(export_history_json(items))
    else:
        _print_history_text(items)
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    items = get_history_store().list(args.user)
    if not items:
        print("Nothing to export: the history is empty.", file=sys.stderr)
        return 0
    target = args.output or Path(export_filename())
    target.write_text(export_history_json(items), encoding="utf-8")
    print(f"Exported {len(items)} item(s) to {target}")
    return 0


def _cmd_clear(args: argparse.Namespace) -> int:
    if not args.yes:
        answer = input(
            f"This permanently deletes the history of {args.user}. Continue? [y/N] "
        )
        if answer.strip().lower() not in ("y", "yes"):
            print("Aborted.")
            return 0
    deleted = get_history_store().clear_all(args.user)
    print(f"History cleared ({deleted} item(s) deleted).")
    return 0


_COMMANDS = {
    "classify": _cmd_classify,
    "history": _cmd_history,
    "export": _cmd_export,
    "clear": _cmd_clear,
}


def run(args: argparse.Namespace) -> int:
    """Execute the selected command.

    Returns:
        Exit code (0 = success, 1 = error, 2 = argument error).
    """
    try:
        return _COMMANDS[args.command](args)
    except HSClassifierError as exc:
        logger.exception("Command %s failed", args.command)
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


def main() -> None:
    """Entry point for the hs-classify console script."""
    parser = _build_parser()
    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(2)

    sys.exit(run(args))


if __name__ == "__main__":
    main()
