#!/usr/bin/env python3
"""Build an inventory of every appraiser image and whether it still loads.

Writes ``image-inventory.json`` plus ``valid-images.json`` and
``invalid-images.json`` for quick reference.  Images that fail are re-checked
against their ``oldImageUrl`` when one is recorded.  With ``--cache-dir``
check results are reused for a day, so repeated runs skip known URLs.

Usage:  python -m scripts.create_image_inventory [--root .] [--cache-dir dist/data/image-cache]
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from scripts.utils.images import ImageCache, cached_checker, check_many, inspect_image_url, is_placeholder
from scripts.utils.locations import LOCATIONS_DIR, appraisers_of, iter_location_files, load_location, write_report
from scripts.utils.logs import setup_logging

INVENTORY_FILE = "image-inventory.json"
VALID_FILE = "valid-images.json"
INVALID_FILE = "invalid-images.json"

log = logging.getLogger("create-image-inventory")


def collect_images(locations_dir: Path) -> dict[str, dict]:
    """Map appraiser id -> inventory entry; later files win on duplicate ids."""
    images: dict[str, dict] = {}
    for path in iter_location_files(locations_dir):
        try:
            data = load_location(path)
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Skipping %s: %s", path.name, e)
            continue
        for appraiser in appraisers_of(data):
            if not isinstance(appraiser, dict):
                continue
            if not appraiser.get("id"):
                log.warning("Appraiser without ID in %s: %s", path.stem, appraiser.get("name"))
                continue
            url = appraiser.get("imageUrl")
            if not url:
                continue
            images[appraiser["id"]] = {
                "id": appraiser["id"],
                "name": appraiser.get("name") or "Unknown",
                "location": path.stem,
                "imageUrl": url,
                "isPlaceholder": is_placeholder(url),
                "oldImageUrl": appraiser.get("oldImageUrl"),
                "checked": False,
                "valid": False,
                "status": "pending",
            }
    log.info("Collected %d unique appraiser images", len(images))
    return images


def validate_images(images: dict[str, dict], checker=None, cache: ImageCache | None = None) -> dict[str, int]:
    checker = checker or inspect_image_url
    if cache is not None:
        checker = cached_checker(cache, checker)
    checks = check_many([e["imageUrl"] for e in images.values()], checker=checker)

    failed_old = [e["oldImageUrl"] for e in images.values()
                  if e["oldImageUrl"] and not checks[e["imageUrl"]].valid]
    old_checks = check_many(failed_old, checker=checker) if failed_old else {}

    stats = {"valid": 0, "invalid": 0, "placeholder": 0}
    for entry in images.values():
        result = checks[entry["imageUrl"]]
        entry.update(checked=True, valid=result.valid, status=result.status, message=result.message)
        if result.valid:
            stats["valid"] += 1
        elif result.status == "placeholder":
            stats["placeholder"] += 1
        else:
            stats["invalid"] += 1

        old = old_checks.get(entry["oldImageUrl"]) if not result.valid else None
        if old is not None:
            entry["oldImageValid"] = old.valid
            entry["oldImageStatus"] = old.status
            entry["oldImageMessage"] = old.message
    return stats


def write_inventory(root: Path, images: dict[str, dict]) -> dict:
    entries = list(images.values())
    inventory = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "totalImages": len(entries),
        "images": entries,
    }
    write_report(root / INVENTORY_FILE, inventory)
    write_report(root / VALID_FILE, [e for e in entries if e["valid"]])
    write_report(root / INVALID_FILE, [e for e in entries if not e["valid"]])
    return inventory


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create an inventory of appraiser images")
    parser.add_argument("--root", default=".", help="Directory the inventory files are written to")
    parser.add_argument("--locations-dir", default=str(LOCATIONS_DIR))
    parser.add_argument("--cache-dir", help="Reuse check results stored here for 24 hours")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("create-image-inventory", args.verbose)
    locations_dir = Path(args.locations_dir)
    if not locations_dir.is_dir():
        print(f"Locations directory not found: {locations_dir}", file=sys.stderr)
        sys.exit(1)

    images = collect_images(locations_dir)
    cache = ImageCache(Path(args.cache_dir)) if args.cache_dir else None
    stats = validate_images(images, cache=cache)
    inventory = write_inventory(Path(args.root), images)

    print(f"Images: {inventory['totalImages']}")
    print(f"  valid:       {stats['valid']}")
    print(f"  invalid:     {stats['invalid']}")
    print(f"  placeholder: {stats['placeholder']}")


if __name__ == "__main__":
    main()
