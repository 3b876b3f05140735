#!/usr/bin/env python3
"""Count appraisers with missing or placeholder images, per location.

Usage:  python -m scripts.check_for_placeholders
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from scripts.utils.images import is_placeholder
from scripts.utils.locations import LOCATIONS_DIR, appraisers_of, iter_location_files, load_location
from scripts.utils.logs import setup_logging

log = logging.getLogger("check-for-placeholders")


def percentage(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def count_placeholders(locations_dir: Path) -> tuple[int, int, list[dict]]:
    """Return (total appraisers, total with placeholder, per-location rows).

    Rows only cover locations with at least one placeholder and are sorted by
    count, highest first.
    """
    total = 0
    total_placeholder = 0
    rows = []
    for path in iter_location_files(locations_dir):
        try:
            data = load_location(path)
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Skipping %s: %s", path.name, e)
            continue
        appraisers = [a for a in appraisers_of(data) if isinstance(a, dict)]
        count = sum(1 for a in appraisers if not a.get("imageUrl") or is_placeholder(a["imageUrl"]))
        total += len(appraisers)
        total_placeholder += count
        if count:
            rows.append({
                "location": path.stem,
                "count": count,
                "total": len(appraisers),
                "percentage": percentage(count, len(appraisers)),
            })
    rows.sort(key=lambda r: r["count"], reverse=True)
    return total, total_placeholder, rows


def main(argv=None):
    parser = argparse.ArgumentParser(description="Summarise placeholder images per location")
    parser.add_argument("--locations-dir", default=str(LOCATIONS_DIR))
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("check-for-placeholders", args.verbose)
    locations_dir = Path(args.locations_dir)
    if not locations_dir.is_dir():
        print(f"Locations directory not found: {locations_dir}", file=sys.stderr)
        sys.exit(1)

    total, total_placeholder, rows = count_placeholders(locations_dir)
    print("==== Placeholder Images Summary ====")
    print(f"Total appraisers across all locations: {total}")
    print(f"Total appraisers with placeholder images: {total_placeholder} ({percentage(total_placeholder, total)}%)")
    print(f"Locations with placeholders: {len(rows)}")
    for row in rows:
        print(f"- {row['location']}: {row['count']}/{row['total']} ({row['percentage']}%)")


if __name__ == "__main__":
    main()
