#!/usr/bin/env python3
"""Ask the image-generation service for new appraiser headshots.

Every appraiser whose image is missing, a placeholder, or broken gets a
generated portrait.  The service uploads the result to ImageKit under the
filename we pick; the returned URL (or the ImageKit URL derived from that
filename) becomes the new ``imageUrl``.

Usage:  python -m scripts.request_image_generation [miami nashville ...] [--dry-run]
"""

import argparse
import json
import logging
import os
import random
import string
import sys
import time
from pathlib import Path

import requests

from scripts.utils.images import check_many, is_placeholder
from scripts.utils.locations import LOCATIONS_DIR, appraisers_of, iter_location_files, load_location, save_location
from scripts.utils.logs import setup_logging

IMAGE_GENERATION_API = os.environ.get(
    "IMAGE_GENERATION_API",
    "https://image-generation-service-856401495068.us-central1.run.app",
)
IMAGEKIT_FOLDER_URL = "https://ik.imagekit.io/appraisily/appraiser-images/"
REQUEST_TIMEOUT = 120
ATTEMPTS = 3
RETRY_DELAY = 2.0
PAUSE_BETWEEN_APPRAISERS = 1.0

log = logging.getLogger("request-image-generation")


def retry(func, attempts: int = ATTEMPTS, delay: float = RETRY_DELAY):
    last = None
    for i in range(attempts):
        try:
            return func()
        except (requests.RequestException, ValueError) as e:
            last = e
            log.warning("Attempt %d/%d failed: %s", i + 1, attempts, e)
            if i + 1 < attempts:
                time.sleep(delay)
    raise last


def image_filename(appraiser_id: str, now_ms: int | None = None, rng: random.Random | None = None) -> str:
    """``appraiser_<id>_<ms>_V<rand6>.jpg``"""
    rng = rng or random.Random()
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(rng.choice(string.ascii_lowercase + string.digits) for _ in range(6))
    return f"appraiser_{appraiser_id}_{now_ms}_V{suffix}.jpg"


def build_prompt(appraiser: dict) -> str:
    specialties = appraiser.get("specialties")
    if isinstance(specialties, list):
        specialties = ", ".join(str(s) for s in specialties if s)
    return (
        f"Professional headshot of an art appraiser named {appraiser.get('name', '')} "
        f"who specializes in {specialties or 'art appraisal'}. "
        f"Business professional attire, neutral background, high quality portrait."
    )


def request_image(appraiser: dict, location: str, filename: str, session=None) -> str:
    """POST one generation request and return the resulting image URL."""
    http = session or requests
    payload = {
        "prompt": build_prompt(appraiser),
        "filename": filename,
        "appraiser_id": appraiser.get("id"),
        "location": location,
    }

    def call():
        response = http.post(
            f"{IMAGE_GENERATION_API.rstrip('/')}/api/generate",
            json=payload,
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()

    data = retry(call)
    url = data.get("imageUrl") if isinstance(data, dict) else None
    return url or IMAGEKIT_FOLDER_URL + filename


def needs_image(appraiser: dict, checks: dict) -> bool:
    url = appraiser.get("imageUrl")
    if not url or is_placeholder(url):
        return True
    check = checks.get(url)
    return check is not None and not check.valid


def select_files(locations_dir: Path, slugs: list[str]) -> list[Path]:
    files = iter_location_files(locations_dir)
    if not slugs:
        return files
    wanted = set(slugs)
    missing = wanted - {f.stem for f in files}
    for slug in sorted(missing):
        log.warning("Location file for %s not found", slug)
    return [f for f in files if f.stem in wanted]


def process_location(path: Path, dry_run: bool = False, checker=None, session=None,
                     pause: float = PAUSE_BETWEEN_APPRAISERS) -> dict:
    stats = {"processed": 0, "generated": 0, "errors": 0}
    try:
        data = load_location(path)
    except (json.JSONDecodeError, OSError) as e:
        log.warning("Skipping %s: %s", path.name, e)
        return stats

    appraisers = [a for a in appraisers_of(data) if isinstance(a, dict) and a.get("id") and a.get("name")]
    urls = [a["imageUrl"] for a in appraisers if a.get("imageUrl") and not is_placeholder(a["imageUrl"])]
    checks = check_many(urls, checker=checker) if urls else {}
    targets = [a for a in appraisers if needs_image(a, checks)]
    log.info("%s: %d of %d appraisers need images", path.stem, len(targets), len(appraisers))

    changed = False
    for appraiser in targets:
        stats["processed"] += 1
        filename = image_filename(appraiser["id"])
        if dry_run:
            print(f"[{path.stem}] {appraiser['name']} -> {filename}")
            print(f"  {build_prompt(appraiser)}")
            continue

        try:
            new_url = request_image(appraiser, path.stem, filename, session=session)
        except (requests.RequestException, ValueError) as e:
            log.error("Error generating image for %s (%s): %s", appraiser["name"], appraiser["id"], e)
            stats["errors"] += 1
        else:
            old_url = appraiser.get("imageUrl")
            if old_url and not is_placeholder(old_url) and not appraiser.get("oldImageUrl"):
                appraiser["oldImageUrl"] = old_url
            appraiser["imageUrl"] = new_url
            changed = True
            stats["generated"] += 1
            log.info("Generated image for %s: %s", appraiser["name"], new_url)
        if pause:
            time.sleep(pause)

    if changed:
        save_location(path, data)
    return stats


def main(argv=None):
    parser = argparse.ArgumentParser(description="Request generated images for appraisers without one")
    parser.add_argument("locations", nargs="*", help="Location slugs to process (default: all)")
    parser.add_argument("--locations-dir", default=str(LOCATIONS_DIR))
    parser.add_argument("--dry-run", action="store_true", help="Print prompts without calling the service")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("request-image-generation", args.verbose)
    locations_dir = Path(args.locations_dir)
    if not locations_dir.is_dir():
        print(f"Locations directory not found: {locations_dir}", file=sys.stderr)
        sys.exit(1)

    totals = {"processed": 0, "generated": 0, "errors": 0}
    for path in select_files(locations_dir, args.locations):
        for key, value in process_location(path, dry_run=args.dry_run).items():
            totals[key] += value

    print(f"Appraisers processed: {totals['processed']}")
    print(f"Images generated: {totals['generated']}")
    print(f"Errors: {totals['errors']}")


if __name__ == "__main__":
    main()
