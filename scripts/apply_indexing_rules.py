#!/usr/bin/env python3
"""Set ``<meta name="robots">`` on generated location and appraiser pages.

Rules:
  location/<slug>/index.html   index only for the curated city list
  appraiser/<id>/index.html    noindex for legacy redirect stubs and for
                               profiles with neither contact details nor
                               reviews in their JSON-LD; index otherwise

Every page ends up with exactly ``index, follow`` or ``noindex, follow``.
Stats are printed as JSON.

Usage:  python -m scripts.apply_indexing_rules [--public-dir public_site] [--dry-run]
"""

import argparse
import json
import logging
import re
from pathlib import Path

from scripts.utils.html import has_meta_refresh, iter_html_files, iter_json_ld_items, schema_types, set_meta_robots
from scripts.utils.logs import setup_logging

INDEX = "index, follow"
NOINDEX = "noindex, follow"

BUSINESS_TYPES = {"ProfessionalService", "LocalBusiness"}

INDEXABLE_LOCATION_SLUGS = frozenset({
    "miami", "las-vegas", "palm-beach", "st-louis", "savannah", "salt-lake-city",
    "sacramento", "philadelphia", "new-orleans", "minneapolis", "kansas-city",
    "houston", "fort-worth", "dallas", "cleveland", "buffalo", "boston",
    "santa-fe", "san-jose", "san-diego", "richmond", "portland", "pittsburgh",
    "nashville", "los-angeles", "jacksonville", "indianapolis", "hartford",
    "denver", "columbus", "chicago", "des-moines", "tucson", "milwaukee",
    "baltimore", "louisville", "new-york", "atlanta", "san-francisco",
    "seattle", "washington-dc",
})

log = logging.getLogger("apply-indexing-rules")


def _leading_int(value) -> int | None:
    match = re.match(r"\s*(-?\d+)", str(value if value is not None else ""))
    return int(match.group(1)) if match else None


def appraiser_signals(html: str) -> dict | None:
    """Contact/review signals of the first business schema on the page."""
    for item in iter_json_ld_items(html):
        if not BUSINESS_TYPES.intersection(schema_types(item)):
            continue
        rating = item.get("aggregateRating") if isinstance(item.get("aggregateRating"), dict) else {}
        raw_count = rating.get("reviewCount")
        if raw_count is None:
            raw_count = rating.get("ratingCount")
        count = _leading_int(raw_count)
        has_contact = bool(str(item.get("telephone") or "").strip() or str(item.get("email") or "").strip())
        return {"hasReviews": count is not None and count > 0, "hasContact": has_contact}
    return None


def page_kind(rel: str) -> str | None:
    parts = rel.split("/")
    if len(parts) < 3 or parts[-1] != "index.html":
        return None
    if parts[0] in ("location", "appraiser"):
        return parts[0]
    return None


def robots_for(kind: str, rel: str, html: str) -> tuple[str, str]:
    """Return (robots value, stats key) for one page."""
    if kind == "location":
        slug = rel.split("/")[1]
        if slug in INDEXABLE_LOCATION_SLUGS:
            return INDEX, "indexableLocation"
        return NOINDEX, "noindexLocation"

    if has_meta_refresh(html):
        return NOINDEX, "noindexLegacyRedirect"
    signals = appraiser_signals(html)
    if signals and not signals["hasContact"] and not signals["hasReviews"]:
        return NOINDEX, "noindexAppraiserLowValue"
    return INDEX, "indexableAppraiser"


def apply_rules(public_dir: Path, dry_run: bool = False) -> dict:
    stats = {
        "publicDir": str(public_dir),
        "dryRun": dry_run,
        "scanned": 0,
        "changed": 0,
        "noindexLocation": 0,
        "indexableLocation": 0,
        "noindexAppraiserLowValue": 0,
        "noindexLegacyRedirect": 0,
        "indexableAppraiser": 0,
    }

    for path in iter_html_files(public_dir):
        rel = path.relative_to(public_dir).as_posix()
        kind = page_kind(rel)
        if kind is None:
            continue
        stats["scanned"] += 1

        try:
            original = path.read_text(encoding="utf-8")
        except OSError as e:
            log.warning("Could not read %s: %s", rel, e)
            continue

        robots, key = robots_for(kind, rel, original)
        stats[key] += 1
        updated = set_meta_robots(original, robots)
        if updated != original:
            stats["changed"] += 1
            log.debug("%s -> %s", rel, robots)
            if not dry_run:
                path.write_text(updated, encoding="utf-8")
    return stats


def main(argv=None):
    parser = argparse.ArgumentParser(description="Apply robots indexing rules to generated pages")
    parser.add_argument("--public-dir", default="public_site", help="Directory of generated HTML")
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("apply-indexing-rules", args.verbose)
    public_dir = Path(args.public_dir).resolve()
    stats = apply_rules(public_dir, dry_run=args.dry_run)
    print(json.dumps(stats, indent=2))


if __name__ == "__main__":
    main()
