#!/usr/bin/env python3
"""Build sitemap.xml, robots.txt and routes.txt for the directory site.

Routes come from the fixed site pages, one page per location file, one per
appraiser id, and any other ``index.html`` found under the dist directory.
Each URL is listed once; the first route to claim it keeps its priority.

Usage:  python -m scripts.generate_sitemap [--dist-dir dist]
"""

import argparse
import json
import logging
import os
from datetime import date
from pathlib import Path
from xml.sax.saxutils import escape as xml_escape

from scripts.utils.html import iter_html_files
from scripts.utils.locations import LOCATIONS_DIR, appraisers_of, iter_location_files, load_location
from scripts.utils.logs import setup_logging

SITE_URL = os.environ.get("SITE_URL", "https://art-appraiser-directory.appraisily.com").rstrip("/")
DIST_DIR = Path("dist")

MAIN_ROUTES = [
    {"url": "/", "priority": "1.0", "changefreq": "daily"},
    {"url": "/start", "priority": "0.9", "changefreq": "weekly"},
    {"url": "/about", "priority": "0.8", "changefreq": "weekly"},
    {"url": "/services", "priority": "0.8", "changefreq": "weekly"},
    {"url": "/expertise", "priority": "0.8", "changefreq": "weekly"},
    {"url": "/team", "priority": "0.7", "changefreq": "monthly"},
]
LOCATION_PRIORITY = "0.7"
APPRAISER_PRIORITY = "0.6"
DEFAULT_PRIORITY = "0.5"

ROBOTS_TEMPLATE = """User-agent: *
Allow: /
Sitemap: {site_url}/sitemap.xml

# Block access to admin and system files
User-agent: *
Disallow: /admin/
Disallow: /*.json$
Disallow: /*.js$
Disallow: /*.css$
"""

log = logging.getLogger("generate-sitemap")


def normalize_route(url: str) -> str:
    url = "/" + url.strip("/")
    return url


def data_routes(locations_dir: Path) -> list[dict]:
    routes = []
    for path in iter_location_files(locations_dir):
        routes.append({"url": f"/location/{path.stem}", "priority": LOCATION_PRIORITY, "changefreq": "weekly"})
        try:
            data = load_location(path)
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Error processing location file %s: %s", path.name, e)
            continue
        for appraiser in appraisers_of(data):
            if isinstance(appraiser, dict) and appraiser.get("id"):
                routes.append({
                    "url": f"/appraiser/{appraiser['id']}",
                    "priority": APPRAISER_PRIORITY,
                    "changefreq": "weekly",
                })
    return routes


def dist_routes(dist_dir: Path) -> list[dict]:
    if not dist_dir.is_dir():
        return []
    routes = []
    for path in iter_html_files(dist_dir, names={"index.html"}):
        rel = path.parent.relative_to(dist_dir).as_posix()
        url = "/" if rel == "." else normalize_route(rel)
        routes.append({"url": url, "priority": DEFAULT_PRIORITY, "changefreq": "monthly"})
    return routes


def dedupe(routes: list[dict]) -> list[dict]:
    seen = set()
    unique = []
    for route in routes:
        url = normalize_route(route["url"])
        if url in seen:
            continue
        seen.add(url)
        unique.append({**route, "url": url})
    return unique


def build_sitemap(routes: list[dict], lastmod: str, site_url: str = SITE_URL) -> str:
    urls = []
    for route in routes:
        loc = site_url + route["url"]
        urls.append(
            f"""  <url>
    <loc>{xml_escape(loc)}</loc>
    <lastmod>{lastmod}</lastmod>
    <changefreq>{route.get('changefreq', 'monthly')}</changefreq>
    <priority>{route.get('priority', DEFAULT_PRIORITY)}</priority>
  </url>"""
        )

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
{chr(10).join(urls)}
</urlset>
"""


def collect_routes(locations_dir: Path, dist_dir: Path) -> list[dict]:
    return dedupe(MAIN_ROUTES + data_routes(locations_dir) + dist_routes(dist_dir))


def main(argv=None):
    parser = argparse.ArgumentParser(description="Build sitemap.xml, robots.txt and routes.txt")
    parser.add_argument("--dist-dir", default=str(DIST_DIR), help="Build output directory")
    parser.add_argument("--locations-dir", default=str(LOCATIONS_DIR))
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("generate-sitemap", args.verbose)
    dist_dir = Path(args.dist_dir)
    routes = collect_routes(Path(args.locations_dir), dist_dir)

    dist_dir.mkdir(parents=True, exist_ok=True)
    sitemap_xml = build_sitemap(routes, date.today().isoformat())
    (dist_dir / "sitemap.xml").write_text(sitemap_xml, encoding="utf-8")
    (dist_dir / "robots.txt").write_text(ROBOTS_TEMPLATE.format(site_url=SITE_URL), encoding="utf-8")
    (dist_dir / "routes.txt").write_text("\n".join(r["url"] for r in routes) + "\n", encoding="utf-8")

    print(f"Generated sitemap with {len(routes)} URLs → {dist_dir / 'sitemap.xml'}")
    print(f"robots.txt and routes.txt written to {dist_dir}")


if __name__ == "__main__":
    main()
