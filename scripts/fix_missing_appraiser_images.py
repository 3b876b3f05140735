#!/usr/bin/env python3
"""Swap broken appraiser images for working ones.

A broken image is first looked for under the conventional ImageKit names
for that appraiser; failing that a random image from the ImageKit inventory
is used.

Run list_imagekit_images first; this script exits with an error when
``imagekit-inventory.json`` is missing or holds no appraiser images.  Both
the location files and the standardized files are updated.

Usage:  python -m scripts.fix_missing_appraiser_images [--seed 42] [--dry-run]
"""

import argparse
import json
import logging
import random
import sys
from pathlib import Path

from scripts.utils.images import DEFAULT_PLACEHOLDER_URL, check_many, possible_image_urls
from scripts.utils.locations import (
    LOCATIONS_DIR,
    STANDARDIZED_DIR,
    appraisers_of,
    iter_location_files,
    load_json,
    load_location,
    save_location,
)
from scripts.utils.logs import setup_logging

INVENTORY_FILE = "imagekit-inventory.json"

log = logging.getLogger("fix-missing-appraiser-images")


def load_replacements(inventory_path: Path) -> list[str]:
    """Appraiser image URLs from the ImageKit inventory."""
    inventory = load_json(inventory_path)
    if not isinstance(inventory, dict):
        return []
    urls = []
    for image in inventory.get("images") or []:
        if not isinstance(image, dict):
            continue
        url = image.get("url") or image.get("imageUrl") or ""
        if "/appraiser-images/" in url and "appraiser_" in url:
            urls.append(url)
    return urls


def collect_appraisers(files: list[Path]) -> dict[str, dict]:
    """Map appraiser id -> record for every record with an image across *files*."""
    found = {}
    for path in files:
        try:
            data = load_location(path)
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Skipping %s: %s", path.name, e)
            continue
        for appraiser in appraisers_of(data):
            if not isinstance(appraiser, dict) or not appraiser.get("id"):
                continue
            if appraiser.get("imageUrl") or appraiser.get("image"):
                found[appraiser["id"]] = appraiser
    return found


def current_image(appraiser: dict) -> str:
    return appraiser.get("imageUrl") or appraiser.get("image")


def find_existing_images(broken: dict[str, dict], checker=None) -> dict[str, str]:
    """Recover images already uploaded under a conventional ImageKit name."""
    candidates = {
        aid: [u for u in possible_image_urls(record) if u != current_image(record)]
        for aid, record in broken.items()
    }
    urls = [u for options in candidates.values() for u in options]
    if not urls:
        return {}
    checks = check_many(urls, checker=checker)
    found = {}
    for aid, options in candidates.items():
        for url in options:
            if checks[url].valid:
                found[aid] = url
                break
    return found


def choose_replacements(broken_ids: list[str], pool: list[str], rng: random.Random) -> dict[str, str]:
    return {appraiser_id: rng.choice(pool) for appraiser_id in broken_ids}


def apply_replacements(path: Path, replacements: dict[str, str], dry_run: bool = False) -> int:
    try:
        data = load_location(path)
    except (json.JSONDecodeError, OSError) as e:
        log.warning("Skipping %s: %s", path.name, e)
        return 0

    changed = 0
    for appraiser in appraisers_of(data):
        if not isinstance(appraiser, dict):
            continue
        new_url = replacements.get(appraiser.get("id"))
        if not new_url or appraiser.get("imageUrl") == new_url:
            continue
        old_url = appraiser.get("imageUrl") or appraiser.get("image")
        if old_url and not appraiser.get("oldImageUrl"):
            appraiser["oldImageUrl"] = old_url
        appraiser["imageUrl"] = new_url
        if "image" in appraiser:
            appraiser["image"] = new_url
        changed += 1

    if changed and not dry_run:
        save_location(path, data)
    return changed


def run(locations_dir: Path, standardized_dir: Path, pool: list[str], rng: random.Random,
        dry_run: bool = False, checker=None) -> dict:
    files = iter_location_files(locations_dir)
    records = collect_appraisers(files)
    log.info("Collected %d appraiser image URLs", len(records))
    urls = {aid: current_image(record) for aid, record in records.items()}

    to_check = {aid: url for aid, url in urls.items() if url != DEFAULT_PLACEHOLDER_URL}
    checks = check_many(to_check.values(), checker=checker)
    broken = [aid for aid, url in to_check.items() if not checks[url].valid]
    for aid in broken:
        log.warning("Invalid image URL for %s: %s", aid, to_check[aid])

    recovered = find_existing_images({aid: records[aid] for aid in broken}, checker=checker)
    for aid, url in recovered.items():
        log.info("Found existing image for %s: %s", aid, url)
    replacements = choose_replacements([aid for aid in broken if aid not in recovered], pool, rng)
    replacements.update(recovered)
    updated_locations = sum(apply_replacements(p, replacements, dry_run) for p in files)
    updated_standardized = sum(
        apply_replacements(p, replacements, dry_run) for p in iter_location_files(standardized_dir)
    )
    return {
        "checked": len(to_check),
        "broken": len(broken),
        "recovered": len(recovered),
        "updatedLocations": updated_locations,
        "updatedStandardized": updated_standardized,
    }


def main(argv=None):
    parser = argparse.ArgumentParser(description="Replace broken appraiser images from the ImageKit inventory")
    parser.add_argument("--inventory", default=INVENTORY_FILE)
    parser.add_argument("--locations-dir", default=str(LOCATIONS_DIR))
    parser.add_argument("--standardized-dir", default=str(STANDARDIZED_DIR))
    parser.add_argument("--seed", type=int, help="Seed for choosing replacement images")
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("fix-missing-appraiser-images", args.verbose)
    inventory_path = Path(args.inventory)
    if not inventory_path.exists():
        print(f"ImageKit inventory not found at {inventory_path}; run list_imagekit_images first.", file=sys.stderr)
        sys.exit(1)
    pool = load_replacements(inventory_path)
    if not pool:
        print("No appraiser images in the ImageKit inventory.", file=sys.stderr)
        sys.exit(1)
    log.info("Found %d replacement images in inventory", len(pool))

    stats = run(Path(args.locations_dir), Path(args.standardized_dir), pool,
                random.Random(args.seed), dry_run=args.dry_run)
    print(f"Checked {stats['checked']} images, {stats['broken']} broken, {stats['recovered']} found under existing names")
    print(f"Updated {stats['updatedLocations']} location records, "
          f"{stats['updatedStandardized']} standardized records")


if __name__ == "__main__":
    main()
