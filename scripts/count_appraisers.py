#!/usr/bin/env python3
"""Count appraisers across the standardized location files.

Usage:  python -m scripts.count_appraisers [--standardized-dir src/data/standardized]
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from scripts.utils.locations import STANDARDIZED_DIR, appraisers_of, load_location
from scripts.utils.logs import setup_logging

TOP_N = 10
FEW_APPRAISERS = 5

log = logging.getLogger("count-appraisers")


def count_by_location(directory: Path) -> list[dict]:
    """``[{location, count}]`` sorted by count, highest first."""
    counts = []
    for path in sorted(directory.glob("*.json")):
        try:
            data = load_location(path)
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Skipping %s: %s", path.name, e)
            continue
        counts.append({"location": path.stem, "count": len(appraisers_of(data))})
    counts.sort(key=lambda c: c["count"], reverse=True)
    return counts


def summarise(counts: list[dict]) -> dict:
    total = sum(c["count"] for c in counts)
    return {
        "files": len(counts),
        "total": total,
        "top": counts[:TOP_N],
        "few": [c for c in counts if c["count"] <= FEW_APPRAISERS],
        "average": total / len(counts) if counts else 0.0,
    }


def main(argv=None):
    parser = argparse.ArgumentParser(description="Count appraisers per standardized location")
    parser.add_argument("--standardized-dir", default=str(STANDARDIZED_DIR))
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("count-appraisers", args.verbose)
    directory = Path(args.standardized_dir)
    if not directory.is_dir():
        print(f"Standardized directory not found: {directory}", file=sys.stderr)
        sys.exit(1)

    summary = summarise(count_by_location(directory))
    print(f"Found {summary['files']} standardized location files.")
    print(f"\nTotal appraisers: {summary['total']}")
    print(f"\nTop {TOP_N} locations by appraiser count:")
    for row in summary["top"]:
        print(f"{row['location']}: {row['count']} appraisers")
    print(f"\nLocations with {FEW_APPRAISERS} or fewer appraisers:")
    for row in summary["few"]:
        print(f"{row['location']}: {row['count']} appraisers")
    print(f"\nAverage appraisers per location: {summary['average']:.2f}")


if __name__ == "__main__":
    main()
