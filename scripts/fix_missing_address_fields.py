#!/usr/bin/env python3
"""Add an ``address`` to appraisers that have none.

Uses ``"<city>, <state>"`` from the record when both are set, else the
title-cased location slug with an unknown state.

Usage:  python -m scripts.fix_missing_address_fields
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from scripts.utils.locations import (
    LOCATIONS_DIR,
    appraisers_of,
    iter_location_files,
    load_location,
    save_location,
    title_case_from_slug,
)
from scripts.utils.logs import setup_logging

log = logging.getLogger("fix-missing-address-fields")


def fallback_address(appraiser: dict, slug: str) -> str:
    if appraiser.get("city") and appraiser.get("state"):
        return f"{appraiser['city']}, {appraiser['state']}"
    return f"{title_case_from_slug(slug)}, Unknown"


def fix_addresses(data: dict, slug: str) -> int:
    fixed = 0
    for appraiser in appraisers_of(data):
        if not isinstance(appraiser, dict) or not appraiser.get("name"):
            continue
        if appraiser.get("address"):
            continue
        appraiser["address"] = fallback_address(appraiser, slug)
        log.info("Added address for %s (%s): %s", appraiser["name"], slug, appraiser["address"])
        fixed += 1
    return fixed


def main(argv=None):
    parser = argparse.ArgumentParser(description="Add missing appraiser addresses")
    parser.add_argument("--locations-dir", default=str(LOCATIONS_DIR))
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("fix-missing-address-fields", args.verbose)
    locations_dir = Path(args.locations_dir)
    if not locations_dir.is_dir():
        print(f"Locations directory not found: {locations_dir}", file=sys.stderr)
        sys.exit(1)

    total = fixed = 0
    for path in iter_location_files(locations_dir):
        try:
            data = load_location(path)
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Skipping %s: %s", path.name, e)
            continue
        total += len(appraisers_of(data))
        count = fix_addresses(data, path.stem)
        if count:
            save_location(path, data)
            fixed += count

    print(f"Total appraisers: {total}")
    print(f"Total appraisers fixed: {fixed}")


if __name__ == "__main__":
    main()
