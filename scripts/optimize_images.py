#!/usr/bin/env python3
"""Optimize images on the built site.

Two passes over the dist directory:
  1. every ``<img>`` in the generated HTML gets lazy loading, async decoding,
     explicit dimensions and alt text; ImageKit images also get a srcset
  2. local raster images under ``dist/images`` are scaled down when oversized
     and recompressed when that makes them noticeably smaller

Usage:  python -m scripts.optimize_images [--dist-dir dist] [--skip-html] [--skip-files]
"""

import argparse
import io
import logging
import sys
from pathlib import Path

from bs4 import BeautifulSoup
from PIL import Image

from scripts.utils.html import iter_html_files
from scripts.utils.logs import setup_logging

DIST_DIR = Path("dist")
IMAGE_SUBDIR = "images"
MAX_WIDTH = 1600
MAX_HEIGHT = 1200
JPEG_QUALITY = 82
MIN_SAVING = 0.05

SAVE_OPTIONS = {
    ".jpg": ("JPEG", {"quality": JPEG_QUALITY, "optimize": True}),
    ".jpeg": ("JPEG", {"quality": JPEG_QUALITY, "optimize": True}),
    ".png": ("PNG", {"optimize": True}),
    ".webp": ("WEBP", {"quality": JPEG_QUALITY}),
}

DEFAULT_WIDTH = "800"
DEFAULT_HEIGHT = "600"
SRCSET_WIDTHS = (400, 800, 1200)
SIZES = "(max-width: 768px) 100vw, 800px"

log = logging.getLogger("optimize-images")


def alt_text_for(img) -> str:
    heading = img.find_previous(["h1", "h2", "h3"])
    if heading is not None:
        text = " ".join(heading.stripped_strings)
        if text:
            return text
    src = img.get("src", "")
    stem = Path(src.split("?")[0]).stem
    return stem.replace("-", " ").replace("_", " ").strip() or "Image"


def imagekit_srcset(src: str) -> str:
    base = src.split("?")[0]
    return ", ".join(f"{base}?tr=w-{w} {w}w" for w in SRCSET_WIDTHS)


def optimize_img_tag(img) -> bool:
    """Add missing performance and accessibility attributes; True if changed."""
    src = img.get("src") or ""
    if not src or src.lower().endswith(".svg") or img.has_attr("srcset"):
        return False

    before = dict(img.attrs)
    img.attrs.setdefault("loading", "lazy")
    img.attrs.setdefault("decoding", "async")
    if not img.get("width") and not img.get("height"):
        img["width"] = DEFAULT_WIDTH
        img["height"] = DEFAULT_HEIGHT
    if not img.get("alt"):
        img["alt"] = alt_text_for(img)
    if "ik.imagekit.io" in src:
        img["srcset"] = imagekit_srcset(src)
        img["sizes"] = SIZES
    return img.attrs != before


def optimize_html(html: str) -> str | None:
    soup = BeautifulSoup(html, "html.parser")
    changed = [optimize_img_tag(img) for img in soup.find_all("img")]
    return str(soup) if any(changed) else None


def optimize_html_files(dist_dir: Path) -> int:
    count = 0
    for path in iter_html_files(dist_dir):
        try:
            output = optimize_html(path.read_text(encoding="utf-8"))
        except OSError as e:
            log.warning("Could not read %s: %s", path, e)
            continue
        if output is not None:
            path.write_text(output, encoding="utf-8")
            count += 1
    return count


def encode_image(img: Image.Image, suffix: str) -> bytes:
    """Re-encode *img* with the web settings for its file type."""
    fmt, options = SAVE_OPTIONS[suffix]
    if fmt == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    buffer = io.BytesIO()
    img.save(buffer, format=fmt, **options)
    return buffer.getvalue()


def optimize_image(path: Path) -> bool:
    """Shrink one image in place; True only when the file was rewritten.

    Oversized images are always scaled down.  Images already within bounds
    are only re-encoded when that saves at least MIN_SAVING of the file, so
    running the pass again leaves its own output alone.
    """
    suffix = path.suffix.lower()
    if suffix not in SAVE_OPTIONS:
        return False
    try:
        with Image.open(path) as img:
            img.load()
            resized = img.width > MAX_WIDTH or img.height > MAX_HEIGHT
            if resized:
                img.thumbnail((MAX_WIDTH, MAX_HEIGHT), Image.LANCZOS)
            data = encode_image(img, suffix)
    except OSError as e:
        log.warning("Could not open %s: %s", path.name, e)
        return False

    original_size = path.stat().st_size
    if not resized and len(data) > original_size * (1 - MIN_SAVING):
        log.debug("%s: already optimal", path.name)
        return False

    path.write_bytes(data)
    log.info("%s: %sB → %sB%s", path.name, f"{original_size:,}", f"{len(data):,}", " (resized)" if resized else "")
    return True


def optimize_image_files(image_dir: Path) -> int:
    if not image_dir.is_dir():
        return 0
    images = sorted(f for f in image_dir.rglob("*") if f.is_file() and f.suffix.lower() in SAVE_OPTIONS)
    log.info("Optimizing %d image(s) in %s", len(images), image_dir)
    return sum(1 for f in images if optimize_image(f))


def main(argv=None):
    parser = argparse.ArgumentParser(description="Optimize images for the web")
    parser.add_argument("--dist-dir", default=str(DIST_DIR), help="Build output directory")
    parser.add_argument("--skip-html", action="store_true", help="Leave <img> markup alone")
    parser.add_argument("--skip-files", action="store_true", help="Leave image files alone")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging("optimize-images", args.verbose)
    dist_dir = Path(args.dist_dir)
    if not dist_dir.is_dir():
        print(f"Dist directory not found: {dist_dir}; run the build first.", file=sys.stderr)
        sys.exit(1)

    if not args.skip_html:
        pages = optimize_html_files(dist_dir)
        print(f"Updated image markup in {pages} HTML file(s)")
    if not args.skip_files:
        total = optimize_image_files(dist_dir / IMAGE_SUBDIR)
        print(f"Optimized {total} image(s) total.")


if __name__ == "__main__":
    main()
