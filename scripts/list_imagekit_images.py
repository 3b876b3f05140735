#!/usr/bin/env python3
"""Fetch the appraiser image listing from ImageKit.

Writes ``imagekit-inventory.json``, which fix_missing_appraiser_images uses
as its pool of replacement images.  With ``--check URL`` it instead reports
whether a single image is reachable.

Requires IMAGEKIT_PRIVATE_KEY in the environment (not needed for --check).

Usage:  python -m scripts.list_imagekit_images [--output imagekit-inventory.json]
        python -m scripts.list_imagekit_images --check https://ik.imagekit.io/appraisily/...
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import requests

from scripts.utils.images import check_image_url
from scripts.utils.imagekit import FOLDER_PATH, inventory_entry, list_files, private_key_from_env
from scripts.utils.locations import write_report
from scripts.utils.logs import setup_logging

OUTPUT_PATH = "imagekit-inventory.json"

log = logging.getLogger("list-imagekit-images")


def build_inventory(files: list[dict], folder: str = FOLDER_PATH) -> dict:
    images = [inventory_entry(f) for f in files if isinstance(f, dict)]
    return {
        "count": len(images),
        "source": "ImageKit",
        "folder": folder,
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
        "images": images,
    }


def check_single(url: str) -> int:
    result = check_image_url(url)
    if result.valid:
        print(f"Image exists ({result.status}): {url}")
        return 0
    print(f"Image unavailable ({result.status}: {result.message}): {url}")
    return 1


def main(argv=None):
    parser = argparse.ArgumentParser(description="List appraiser images stored in ImageKit")
    parser.add_argument("--output", default=OUTPUT_PATH, help="Inventory path")
    parser.add_argument("--folder", default=FOLDER_PATH, help="ImageKit folder to list")
    parser.add_argument("--check", metavar="URL", help="Only check whether one image URL is reachable")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("list-imagekit-images", args.verbose)
    if args.check:
        sys.exit(check_single(args.check))

    private_key = private_key_from_env()
    if not private_key:
        print("IMAGEKIT_PRIVATE_KEY is not set", file=sys.stderr)
        sys.exit(1)

    log.info("Fetching images from ImageKit folder %s...", args.folder)
    try:
        files = list_files(private_key, folder=args.folder)
    except requests.RequestException as e:
        print(f"Error listing images from ImageKit: {e}", file=sys.stderr)
        sys.exit(1)

    inventory = build_inventory(files, args.folder)
    write_report(Path(args.output), inventory)
    print(f"Saved {inventory['count']} images to {args.output}")


if __name__ == "__main__":
    main()
