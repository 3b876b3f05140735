#!/usr/bin/env python3
"""HEAD-check every appraiser image and write a report.

Each ``imageUrl`` is classified as ok, broken or placeholder.

Usage:  python -m scripts.check_all_images [--output image-check-report.json]
"""

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path

from scripts.utils.images import check_many, classify_image_url, is_placeholder
from scripts.utils.locations import LOCATIONS_DIR, appraisers_of, iter_location_files, load_location, write_report
from scripts.utils.logs import setup_logging

OUTPUT_PATH = "image-check-report.json"

log = logging.getLogger("check-all-images")


def collect_images(locations_dir: Path) -> list[dict]:
    entries = []
    for path in iter_location_files(locations_dir):
        try:
            data = load_location(path)
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Skipping %s: %s", path.name, e)
            continue
        for appraiser in appraisers_of(data):
            if not isinstance(appraiser, dict):
                continue
            entries.append({
                "id": appraiser.get("id"),
                "name": appraiser.get("name"),
                "location": path.stem,
                "city": data.get("city", ""),
                "state": data.get("state", ""),
                "imageUrl": appraiser.get("imageUrl"),
            })
    return entries


def build_report(entries: list[dict], checker=None) -> dict:
    to_check = [e["imageUrl"] for e in entries if e["imageUrl"] and not is_placeholder(e["imageUrl"])]
    checks = check_many(to_check, checker=checker)

    counts = Counter()
    for entry in entries:
        check = checks.get(entry["imageUrl"]) if entry["imageUrl"] else None
        entry["result"] = classify_image_url(entry["imageUrl"], check)
        if check is not None:
            entry["status"] = check.status
            entry["message"] = check.message
        counts[entry["result"]] += 1

    return {
        "total": len(entries),
        "ok": counts["ok"],
        "broken": counts["broken"],
        "placeholder": counts["placeholder"],
        "broken_images": [e for e in entries if e["result"] == "broken"],
        "placeholder_images": [e for e in entries if e["result"] == "placeholder"],
    }


def main(argv=None):
    parser = argparse.ArgumentParser(description="Check every appraiser image URL")
    parser.add_argument("--locations-dir", default=str(LOCATIONS_DIR))
    parser.add_argument("--output", default=OUTPUT_PATH, help="Report path")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("check-all-images", args.verbose)
    locations_dir = Path(args.locations_dir)
    if not locations_dir.is_dir():
        print(f"Locations directory not found: {locations_dir}", file=sys.stderr)
        sys.exit(1)

    entries = collect_images(locations_dir)
    log.info("Found %d appraisers", len(entries))
    report = build_report(entries)
    write_report(Path(args.output), report)

    print(f"Total appraisers: {report['total']}")
    print(f"  ok:          {report['ok']}")
    print(f"  broken:      {report['broken']}")
    print(f"  placeholder: {report['placeholder']}")
    for i, item in enumerate(report["broken_images"], 1):
        print(f"{i}. {item['name']} ({item['city']}, {item['state']}): {item['imageUrl']}")
    print(f"Report written to {args.output}")


if __name__ == "__main__":
    main()
