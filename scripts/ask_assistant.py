"""
One-off assistant turn from the command line.

Usage:
    python scripts/ask_assistant.py --major "computer science" \
        --taken "COMP_SCI 111-0, COMP_SCI 211-0" "What should I take next fall?"
"""

from __future__ import annotations

import argparse
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))

from assistant import Assistant, get_openai_client
from catalog_client import CatalogClient, CatalogError
from course_keys import normalize_keys
from settings import Settings
from transcript import assistant_reply


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ask the course planning assistant one question.")
    parser.add_argument("question", help="Question to ask the assistant.")
    parser.add_argument("--major", default="", help="Declared major, e.g. 'computer science'.")
    parser.add_argument("--taken", default="", help="Comma-separated course keys already taken.")
    parser.add_argument(
        "--quarter",
        type=int,
        action="append",
        default=None,
        help="Quarter ID the assistant may look up (repeatable). Defaults to the catalog's list.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()

    try:
        client = get_openai_client(settings)
    except RuntimeError as exc:
        print(f"[ask] ERROR: {exc}", file=sys.stderr)
        return 1

    with CatalogClient(settings.catalog_api_url, timeout=settings.catalog_timeout_seconds) as catalog:
        quarters = args.quarter
        if quarters is None:
            try:
                quarters = catalog.get_quarters()
            except CatalogError as exc:
                print(f"[ask] WARN: could not load quarters: {exc}", file=sys.stderr)
                quarters = []

        assistant = Assistant.from_settings(settings, client, catalog)
        reply = assistant_reply(
            assistant.converse(set(normalize_keys(args.taken)), args.major, quarters, args.question)
        )

    print(reply.content)
    return 1 if reply.is_error else 0


if __name__ == "__main__":
    raise SystemExit(main())
