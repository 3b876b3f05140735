#!/usr/bin/env python3
"""Patch generated HTML so the React bundle can hydrate it cleanly.

Per file:
  - make sure a ``#root`` element exists at the top of ``<body>``
  - move the page content (``#location-content`` / ``#appraiser-content``,
    else every non-script top-level body element) inside it
  - drop scripts and stylesheets from blocked hosts, and elements injected by
    browser extensions
  - load the main ``index-*`` bundle with ``defer`` and only once

Usage:  python -m scripts.fix_react_hydration [path/to/file.html] [--dist-dir dist]
"""

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from bs4 import BeautifulSoup

from scripts.utils.html import iter_html_files
from scripts.utils.logs import setup_logging

DIST_DIR = Path("dist")
BATCH_SIZE = 10
BLOCKED_SOURCES = ("unpkg.com", "tangerine-churros-e587f4.netlify.app", "widget.js")
EXTENSION_SELECTOR = 'div[id^="veepn-"], div[id^="extension-"]'
CONTENT_IDS = ("location-content", "appraiser-content")

log = logging.getLogger("fix-react-hydration")


def is_blocked(url: str) -> bool:
    return any(source in url for source in BLOCKED_SOURCES)


def ensure_root(soup: BeautifulSoup, body) -> tuple[object, bool]:
    root = soup.find(id="root")
    if root is not None:
        return root, False
    root = soup.new_tag("div", id="root")
    body.insert(0, root)
    return root, True


def move_content_into_root(soup: BeautifulSoup, body, root) -> bool:
    content = None
    for content_id in CONTENT_IDS:
        content = soup.find(id=content_id)
        if content is not None:
            break

    if content is not None:
        if root in content.parents or content is root:
            return False
        for child in list(content.contents):
            root.append(child.extract())
        content.decompose()
        return True

    movable = [
        child for child in body.find_all(recursive=False)
        if child is not root and child.name not in ("script", "noscript")
    ]
    for child in movable:
        root.append(child.extract())
    return bool(movable)


def remove_blocked(soup: BeautifulSoup) -> int:
    removed = 0
    for script in soup.find_all("script", src=True):
        if is_blocked(script["src"]):
            log.debug("Removed blocked script: %s", script["src"])
            script.decompose()
            removed += 1
    for link in soup.find_all("link", href=True):
        if "stylesheet" in (link.get("rel") or []) and is_blocked(link["href"]):
            log.debug("Removed blocked stylesheet: %s", link["href"])
            link.decompose()
            removed += 1
    for element in soup.select(EXTENSION_SELECTOR):
        log.debug("Removed browser extension element: %s", element.get("id"))
        element.decompose()
        removed += 1
    return removed


def fix_main_script(soup: BeautifulSoup) -> bool:
    main_script = soup.select_one('script[src*="index-"]')
    if main_script is None:
        return False
    modified = not main_script.has_attr("defer")
    main_script["defer"] = ""
    for duplicate in soup.find_all("script", src=main_script["src"]):
        if duplicate is main_script:
            continue
        duplicate.decompose()
        modified = True
    return modified


def fix_html(html: str) -> str | None:
    """Return the patched page, or None when nothing needed fixing."""
    soup = BeautifulSoup(html, "html.parser")
    modified = False

    body = soup.find("body")
    if body is not None:
        root, created = ensure_root(soup, body)
        moved = move_content_into_root(soup, body, root)
        modified = created or moved

    if remove_blocked(soup):
        modified = True
    if fix_main_script(soup):
        modified = True
    return str(soup) if modified else None


def fix_file(path: Path) -> bool:
    try:
        html = path.read_text(encoding="utf-8")
    except OSError as e:
        log.error("Error reading %s: %s", path, e)
        return False
    output = fix_html(html)
    if output is None:
        return False
    path.write_text(output, encoding="utf-8")
    return True


def fix_all(files: list[Path], batch_size: int = BATCH_SIZE) -> int:
    fixed = 0
    for start in range(0, len(files), batch_size):
        batch = files[start:start + batch_size]
        with ThreadPoolExecutor(max_workers=len(batch)) as pool:
            batch_fixed = sum(pool.map(fix_file, batch))
        fixed += batch_fixed
        log.info("Processed %d/%d files (%d fixed in current batch)", start + len(batch), len(files), batch_fixed)
    return fixed


def main(argv=None):
    parser = argparse.ArgumentParser(description="Fix React hydration problems in generated HTML")
    parser.add_argument("file", nargs="?", help="Fix a single HTML file")
    parser.add_argument("--dist-dir", default=str(DIST_DIR))
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("fix-react-hydration", args.verbose)
    if args.file:
        path = Path(args.file)
        if not path.exists():
            print(f"File not found: {path}", file=sys.stderr)
            sys.exit(1)
        files = [path]
    else:
        dist_dir = Path(args.dist_dir)
        if not dist_dir.is_dir():
            print(f"Dist directory not found: {dist_dir}", file=sys.stderr)
            sys.exit(1)
        files = iter_html_files(dist_dir)

    log.info("Found %d HTML files to process", len(files))
    fixed = fix_all(files)
    print(f"Fixed {fixed} of {len(files)} HTML files")


if __name__ == "__main__":
    main()
