"""
Print requirement completion for a major.

Usage:
    python scripts/major_progress.py --major "computer science" --taken "COMP_SCI 111-0, MATH 220-1"
    python scripts/major_progress.py --file reqs.json --taken "COMP_SCI 111-0"
"""

from __future__ import annotations

import argparse
import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))

from catalog_client import CatalogClient, CatalogError
from course_keys import normalize_keys
from progress import progress_report
from requirements import RequirementsFormatError, parse_major_requirements
from settings import Settings


def format_report(report: dict) -> str:
    lines = [
        f"{report['major'] or '(unnamed major)'}: "
        f"{report['completed']}/{report['total']} requirements ({report['percentage']}%)"
    ]
    for group in report["groups"]:
        if group["type"] == "Generic":
            status = "DONE" if group["total"] and group["completed"] == group["total"] else "    "
            lines.append(f"  [{status}] {group['name']}: {group['completed']}/{group['total']}")
            for req in group["requirements"]:
                mark = "x" if req["satisfied"] else " "
                choices = " | ".join(" and ".join(o["courses"]) for o in req["options"])
                lines.append(f"      [{mark}] {choices}")
        else:
            lines.append(f"  [    ] {group['type']} electives: {group['count']} required (not tracked)")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Show requirement completion for a major.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--major", help="Major name to fetch from the catalog API.")
    source.add_argument("--file", help="Path to a saved /api/reqs JSON response.")
    parser.add_argument("--taken", default="", help="Comma-separated course keys already taken.")
    parser.add_argument("--json", action="store_true", help="Print the raw report as JSON.")
    args = parser.parse_args(argv)

    try:
        if args.file:
            with open(args.file, encoding="utf-8") as f:
                payload = json.load(f)
        else:
            settings = Settings.from_env()
            with CatalogClient(settings.catalog_api_url, timeout=settings.catalog_timeout_seconds) as catalog:
                payload = catalog.get_major_requirements(args.major)
        major_reqs = parse_major_requirements(payload)
    except (OSError, ValueError, CatalogError) as exc:
        # RequirementsFormatError and JSONDecodeError are both ValueErrors.
        kind = "malformed requirements" if isinstance(exc, RequirementsFormatError) else "error"
        print(f"[progress] ERROR ({kind}): {exc}", file=sys.stderr)
        return 1

    report = progress_report(major_reqs, normalize_keys(args.taken))
    print(json.dumps(report, indent=2) if args.json else format_report(report))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
