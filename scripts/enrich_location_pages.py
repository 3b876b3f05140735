#!/usr/bin/env python3
"""Upsert schema.org JSON-LD into generated location pages.

For each city page the Service, BreadcrumbList and FAQPage payloads are
written into ``<script type="application/ld+json">`` tags keyed by a
``data-appraisily-schema`` attribute (``location``, ``breadcrumbs``,
``faq``), so re-running replaces rather than duplicates them.  Breadcrumb
and FAQ objects found in any other JSON-LD block are stripped first.

With ``--with-appraisers`` each appraiser's own page also gets a
ProfessionalService block keyed ``appraiser``.

Usage:  python -m scripts.enrich_location_pages [--public-dir public_site] [--slugs miami,boston] [--dry-run]
"""

import argparse
import json
import logging
from pathlib import Path

from bs4 import BeautifulSoup

from scripts.utils.html import schema_types
from scripts.utils.locations import CITIES_FILE, STANDARDIZED_DIR, appraisers_of, load_city_index, load_location, title_case_from_slug
from scripts.utils.logs import setup_logging
from scripts.utils.schema import build_appraiser_schema, build_location_schemas

SCHEMA_ATTR = "data-appraisily-schema"
MANAGED_KEYS = {"location", "breadcrumbs", "faq", "appraiser"}
STRIP_TYPES = {"BreadcrumbList", "FAQPage"}

log = logging.getLogger("enrich-location-pages")


def list_location_slugs(public_dir: Path) -> list[str]:
    location_dir = public_dir / "location"
    if not location_dir.is_dir():
        return []
    return sorted(p.name for p in location_dir.iterdir() if p.is_dir() and not p.name.startswith("."))


def _has_type(item, types: set[str]) -> bool:
    return bool(types.intersection(schema_types(item)))


def strip_types(payload, types: set[str]):
    """Drop top-level objects of *types*; None means the whole block goes."""
    if isinstance(payload, list):
        kept = [entry for entry in payload if not _has_type(entry, types)]
        return kept or None
    if isinstance(payload, dict):
        if _has_type(payload, types):
            return None
        graph = payload.get("@graph")
        if isinstance(graph, list):
            return {**payload, "@graph": [entry for entry in graph if not _has_type(entry, types)]}
    return payload


def json_ld_scripts(head):
    return head.find_all("script", attrs={"type": "application/ld+json"})


def strip_unkeyed_types(head, types: set[str] = STRIP_TYPES) -> None:
    for script in json_ld_scripts(head):
        if script.get(SCHEMA_ATTR) in MANAGED_KEYS:
            continue
        text = script.string
        if not text:
            continue
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            continue
        result = strip_types(parsed, types)
        if result is None:
            script.decompose()
        else:
            script.string = json.dumps(result, ensure_ascii=False)


def upsert_json_ld(soup: BeautifulSoup, head, key: str, payload: dict) -> None:
    script = head.find("script", attrs={"type": "application/ld+json", SCHEMA_ATTR: key})
    if script is None:
        script = soup.new_tag("script", attrs={"type": "application/ld+json", SCHEMA_ATTR: key})
        head.append(script)
    script.string = json.dumps(payload, ensure_ascii=False)


def enrich_html(html: str, payloads: dict[str, dict], strip: bool = True) -> str | None:
    """Return the patched page, or None when it has no <head>."""
    soup = BeautifulSoup(html, "html.parser")
    head = soup.find("head")
    if head is None:
        return None
    if strip:
        strip_unkeyed_types(head)
    for key, payload in payloads.items():
        upsert_json_ld(soup, head, key, payload)
    return str(soup)


def enrich_appraiser_pages(public_dir: Path, appraisers: list[dict], dry_run: bool, stats: dict) -> None:
    for appraiser in appraisers:
        if not isinstance(appraiser, dict) or not appraiser.get("id"):
            continue
        path = public_dir / "appraiser" / appraiser["id"] / "index.html"
        try:
            html = path.read_text(encoding="utf-8")
        except OSError:
            continue
        output = enrich_html(html, {"appraiser": build_appraiser_schema(appraiser)}, strip=False)
        if output is None:
            continue
        if not dry_run:
            path.write_text(output, encoding="utf-8")
        stats["updatedAppraisers"] += 1


def enrich(public_dir: Path, slugs: list[str], data_dir: Path = STANDARDIZED_DIR,
           cities_file: Path = CITIES_FILE, dry_run: bool = False, with_appraisers: bool = False) -> dict:
    cities = load_city_index(cities_file)
    stats = {
        "publicDir": str(public_dir),
        "dryRun": dry_run,
        "requested": len(slugs),
        "updated": 0,
        "missingHtml": 0,
        "missingData": 0,
        "missingHead": 0,
    }
    if with_appraisers:
        stats["updatedAppraisers"] = 0

    for slug in slugs:
        html_path = public_dir / "location" / slug / "index.html"
        try:
            html = html_path.read_text(encoding="utf-8")
        except OSError:
            stats["missingHtml"] += 1
            continue
        try:
            data = load_location(data_dir / f"{slug}.json")
        except (json.JSONDecodeError, OSError):
            stats["missingData"] += 1
            continue

        meta = cities.get(slug) or {}
        city = meta.get("name") or title_case_from_slug(slug)
        state = meta.get("state") or ""
        appraisers = appraisers_of(data)

        location, breadcrumbs, faq = build_location_schemas(slug, city, state, appraisers)
        output = enrich_html(html, {"location": location, "breadcrumbs": breadcrumbs, "faq": faq})
        if output is None:
            log.warning("No <head> in %s", html_path)
            stats["missingHead"] += 1
            continue
        if not dry_run:
            html_path.write_text(output, encoding="utf-8")
        stats["updated"] += 1

        if with_appraisers:
            enrich_appraiser_pages(public_dir, appraisers, dry_run, stats)
    return stats


def main(argv=None):
    parser = argparse.ArgumentParser(description="Upsert JSON-LD on generated location pages")
    parser.add_argument("--public-dir", default="public_site")
    parser.add_argument("--slugs", default="", help="Comma-separated location slugs (default: all)")
    parser.add_argument("--data-dir", default=str(STANDARDIZED_DIR))
    parser.add_argument("--cities", default=str(CITIES_FILE))
    parser.add_argument("--with-appraisers", action="store_true", help="Also patch appraiser pages")
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("enrich-location-pages", args.verbose)
    public_dir = Path(args.public_dir).resolve()
    slugs = [s.strip() for s in args.slugs.split(",") if s.strip()] or list_location_slugs(public_dir)

    stats = enrich(public_dir, slugs, Path(args.data_dir), Path(args.cities),
                   dry_run=args.dry_run, with_appraisers=args.with_appraisers)
    print(json.dumps(stats, indent=2))


if __name__ == "__main__":
    main()
