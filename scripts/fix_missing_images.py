#!/usr/bin/env python3
"""Give every appraiser an ``id`` and an ``imageUrl``.

Missing ids become ``<city-slug>-<name-slug>``.  A legacy ``image`` field is
moved to ``imageUrl``; appraisers with neither get an ImageKit path derived
from their id.

Usage:  python -m scripts.fix_missing_images
"""

import argparse
import json
import logging
import re
import sys
from pathlib import Path

from scripts.utils.images import IMAGEKIT_BASE_URL
from scripts.utils.locations import LOCATIONS_DIR, appraisers_of, iter_location_files, load_location, save_location, slugify
from scripts.utils.logs import setup_logging

log = logging.getLogger("fix-missing-images")


def placeholder_path(appraiser_id: str) -> str:
    return f"{IMAGEKIT_BASE_URL}/appraiser-images/appraiser_{re.sub(r'[^a-z0-9]+', '_', appraiser_id)}_placeholder.jpg"


def fix_appraiser(appraiser: dict, city_slug: str) -> tuple[bool, bool]:
    """Returns (modified, image added)."""
    modified = False
    if not appraiser.get("id"):
        appraiser["id"] = f"{city_slug}-{slugify(appraiser.get('name', ''))}"
        modified = True

    if not appraiser.get("image") and not appraiser.get("imageUrl"):
        appraiser["imageUrl"] = placeholder_path(appraiser["id"])
        return True, True
    if appraiser.get("image") and not appraiser.get("imageUrl"):
        appraiser["imageUrl"] = appraiser.pop("image")
        modified = True
    return modified, False


def fix_file(path: Path) -> tuple[int, int]:
    """Returns (appraisers seen, images added); writes only when something changed."""
    data = load_location(path)
    appraisers = [a for a in appraisers_of(data) if isinstance(a, dict)]
    changed = False
    added = 0
    for appraiser in appraisers:
        modified, image_added = fix_appraiser(appraiser, path.stem)
        changed = changed or modified
        if image_added:
            added += 1
            log.info("Added image URL for %s", appraiser.get("name"))
    if changed:
        save_location(path, data)
        log.info("Updated %s", path.name)
    return len(appraisers), added


def main(argv=None):
    parser = argparse.ArgumentParser(description="Fill in missing appraiser ids and image URLs")
    parser.add_argument("--locations-dir", default=str(LOCATIONS_DIR))
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("fix-missing-images", args.verbose)
    locations_dir = Path(args.locations_dir)
    if not locations_dir.is_dir():
        print(f"Locations directory not found: {locations_dir}", file=sys.stderr)
        sys.exit(1)

    total = fixed = 0
    for path in iter_location_files(locations_dir):
        try:
            seen, added = fix_file(path)
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Skipping %s: %s", path.name, e)
            continue
        total += seen
        fixed += added

    print(f"Total appraisers processed: {total}")
    print(f"Fixed missing image URLs: {fixed}")


if __name__ == "__main__":
    main()
