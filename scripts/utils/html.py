"""Helpers for patching generated HTML pages in place."""

import json
import os
import re
from pathlib import Path

ROBOTS_TAG_RE = re.compile(r"<meta\b[^>]*\bname=(['\"])robots\1[^>]*>", re.IGNORECASE)
ROBOTS_CONTENT_RE = re.compile(r"(?<![\w-])content=(['\"])(.*?)\1", re.IGNORECASE)
HEAD_CLOSE_RE = re.compile(r"</head>", re.IGNORECASE)
META_REFRESH_RE = re.compile(r"<meta\s+http-equiv=(['\"])refresh\1", re.IGNORECASE)
JSON_LD_RE = re.compile(
    r"<script[^>]*type=(['\"])application/ld\+json\1[^>]*>(.*?)</script>",
    re.IGNORECASE | re.DOTALL,
)


def iter_html_files(root: Path, names: set[str] | None = None) -> list[Path]:
    """Every ``.html`` file under *root*, skipping dot-directories.

    When *names* is given only files with one of those names are returned.
    """
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for fname in sorted(filenames):
            if not fname.endswith(".html"):
                continue
            if names is not None and fname not in names:
                continue
            found.append(Path(dirpath) / fname)
    return found


def set_meta_robots(html: str, content: str) -> str:
    """Point the page's robots meta tag at *content*, adding the tag if needed.

    Pages without a ``</head>`` are returned unchanged.
    """
    match = ROBOTS_TAG_RE.search(html)
    if match:
        tag = match.group(0)
        if ROBOTS_CONTENT_RE.search(tag):
            new_tag = ROBOTS_CONTENT_RE.sub(f'content="{content}"', tag, count=1)
        else:
            new_tag = re.sub(r"\s*/?>\s*$", lambda m: f' content="{content}"{m.group(0)}', tag, count=1)
        return html[:match.start()] + new_tag + html[match.end():]

    head_close = HEAD_CLOSE_RE.search(html)
    if not head_close:
        return html
    insert = f'  <meta name="robots" content="{content}" />\n'
    return html[:head_close.start()] + insert + html[head_close.start():]


def get_meta_robots(html: str) -> str | None:
    match = ROBOTS_TAG_RE.search(html)
    if not match:
        return None
    content = ROBOTS_CONTENT_RE.search(match.group(0))
    return content.group(2) if content else None


def has_meta_refresh(html: str) -> bool:
    return bool(META_REFRESH_RE.search(html))


def extract_json_ld(html: str) -> list[str]:
    """Raw text of every non-empty JSON-LD script block, in document order."""
    blocks = []
    for match in JSON_LD_RE.finditer(html):
        content = match.group(2).strip()
        if content:
            blocks.append(content)
    return blocks


def schema_types(item) -> list[str]:
    if not isinstance(item, dict):
        return []
    value = item.get("@type")
    if not value:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def iter_json_ld_items(html: str):
    """Yield every top-level schema object found in the page's JSON-LD.

    Blocks that fail to parse are skipped; arrays are flattened one level and
    ``@graph`` members are yielded alongside their container.
    """
    for block in extract_json_ld(html):
        try:
            parsed = json.loads(block)
        except json.JSONDecodeError:
            continue
        entries = parsed if isinstance(parsed, list) else [parsed]
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            yield entry
            graph = entry.get("@graph")
            if isinstance(graph, list):
                for member in graph:
                    if isinstance(member, dict):
                        yield member
