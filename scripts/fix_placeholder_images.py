#!/usr/bin/env python3
"""Replace broken and known-bad appraiser images with the default placeholder.

Every named appraiser whose ``imageUrl`` is missing, points at a known-bad
placeholder host, or fails a HEAD check gets ``DEFAULT_PLACEHOLDER_URL``.
The original URL is kept under ``oldImageUrl`` the first time it is replaced,
and records already on an assigned placeholder are left alone, so a second
run changes nothing.  With ``--by-specialty`` an appraiser whose specialties
match a themed stand-in (paintings, jewelry...) gets that image instead.

Usage:  python -m scripts.fix_placeholder_images [--dry-run] [--no-check] [--by-specialty] [--report fixes.json]
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from scripts.utils.images import (
    DEFAULT_PLACEHOLDER_URL,
    SPECIALTY_PLACEHOLDERS,
    ImageCheck,
    check_many,
    is_known_bad_placeholder,
    specialty_placeholder,
)
from scripts.utils.locations import (
    LOCATIONS_DIR,
    appraisers_of,
    iter_location_files,
    load_location,
    save_location,
    write_report,
)
from scripts.utils.logs import setup_logging

# Images this script assigns; never checked or replaced again
ASSIGNED_PLACEHOLDERS = frozenset({DEFAULT_PLACEHOLDER_URL, *SPECIALTY_PLACEHOLDERS.values()})

log = logging.getLogger("fix-placeholder-images")


def current_image(appraiser: dict) -> str | None:
    return appraiser.get("imageUrl") or appraiser.get("image")


def needs_check(appraiser: dict) -> bool:
    """True when the record's image can only be judged by a HEAD request."""
    if not appraiser.get("name"):
        return False
    url = current_image(appraiser)
    if appraiser.get("imageUrl") in ASSIGNED_PLACEHOLDERS:
        return False
    if not url or not url.startswith("http"):
        return False
    return not is_known_bad_placeholder(url)


def replacement_reason(appraiser: dict, checks: dict[str, ImageCheck] | None) -> str | None:
    """Why *appraiser*'s image must be replaced, or None to keep it."""
    if not appraiser.get("name"):
        return None
    if appraiser.get("imageUrl") in ASSIGNED_PLACEHOLDERS:
        return None

    url = current_image(appraiser)
    if not url or not url.startswith("http"):
        return "missing"
    if is_known_bad_placeholder(url):
        return "known-placeholder"
    if checks is None:
        return None

    check = checks.get(url)
    if check is not None and not check.valid:
        return check.status
    return None


def placeholder_for(appraiser: dict, by_specialty: bool = False) -> str:
    if by_specialty:
        return specialty_placeholder(appraiser.get("specialties")) or DEFAULT_PLACEHOLDER_URL
    return DEFAULT_PLACEHOLDER_URL


def apply_placeholder(appraiser: dict, url: str = DEFAULT_PLACEHOLDER_URL) -> None:
    original = current_image(appraiser)
    if original and not appraiser.get("oldImageUrl"):
        appraiser["oldImageUrl"] = original
    appraiser["imageUrl"] = url
    if "image" in appraiser:
        appraiser["image"] = url


def fix_location(data: dict, checks: dict[str, ImageCheck] | None, by_specialty: bool = False) -> list[dict]:
    """Fix the appraisers of one location in place; returns one entry per fix."""
    fixes = []
    for appraiser in appraisers_of(data):
        if not isinstance(appraiser, dict):
            continue
        reason = replacement_reason(appraiser, checks)
        if reason is None:
            continue
        fixes.append({
            "id": appraiser.get("id"),
            "name": appraiser.get("name"),
            "oldImageUrl": current_image(appraiser),
            "reason": reason,
        })
        apply_placeholder(appraiser, placeholder_for(appraiser, by_specialty))
    return fixes


def run(locations_dir: Path, check: bool = True, dry_run: bool = False, checker=None,
        by_specialty: bool = False) -> dict:
    files = iter_location_files(locations_dir)
    loaded: dict[Path, dict] = {}
    for path in files:
        try:
            loaded[path] = load_location(path)
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Skipping %s: %s", path.name, e)

    checks = None
    if check:
        urls = [
            current_image(a)
            for data in loaded.values()
            for a in appraisers_of(data)
            if isinstance(a, dict) and needs_check(a)
        ]
        log.info("Checking %d image URLs...", len(set(urls)))
        checks = check_many(urls, checker=checker)

    summary = {"locations": len(loaded), "appraisers": 0, "fixed": 0, "fixes": {}}
    for path, data in loaded.items():
        summary["appraisers"] += len(appraisers_of(data))
        fixes = fix_location(data, checks, by_specialty)
        if not fixes:
            continue
        for fix in fixes:
            log.info("Fixed image for %s (%s): %s", fix["name"], path.stem, fix["reason"])
        summary["fixed"] += len(fixes)
        summary["fixes"][path.stem] = fixes
        if not dry_run:
            save_location(path, data)
            log.debug("Saved %s", path)
    return summary


def main(argv=None):
    parser = argparse.ArgumentParser(description="Replace broken appraiser images with a placeholder")
    parser.add_argument("--locations-dir", default=str(LOCATIONS_DIR), help="Directory of location JSON files")
    parser.add_argument("--dry-run", action="store_true", help="Report fixes without writing files")
    parser.add_argument("--no-check", action="store_true", help="Only match known placeholder patterns")
    parser.add_argument("--report", help="Write a JSON report of the fixes to this path")
    parser.add_argument("--by-specialty", action="store_true",
                        help="Use a specialty-specific placeholder when one matches")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("fix-placeholder-images", args.verbose)
    locations_dir = Path(args.locations_dir)
    if not locations_dir.is_dir():
        print(f"Locations directory not found: {locations_dir}", file=sys.stderr)
        sys.exit(1)

    summary = run(locations_dir, check=not args.no_check, dry_run=args.dry_run, by_specialty=args.by_specialty)
    if args.report:
        write_report(Path(args.report), summary)

    print(f"Locations: {summary['locations']}")
    print(f"Appraisers: {summary['appraisers']}")
    print(f"Images fixed: {summary['fixed']}{' (dry run)' if args.dry_run else ''}")


if __name__ == "__main__":
    main()
