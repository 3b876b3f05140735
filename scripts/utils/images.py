"""Placeholder detection and liveness checks for appraiser image URLs.

An image URL is *ok* when a HEAD request answers 2xx with an ``image/*``
content type, *placeholder* when it points at a known stand-in image, and
*broken* otherwise (bad status, wrong content type, timeout, malformed URL).
"""

import hashlib
import json
import logging
import os
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from pathlib import Path

import requests

IMAGEKIT_BASE_URL = "https://ik.imagekit.io/appraisily"
DEFAULT_PLACEHOLDER_URL = os.environ.get(
    "DEFAULT_PLACEHOLDER_URL",
    "https://placehold.co/300x300/e0e0e0/333333?text=Image+Unavailable",
)

# Stand-ins that are themselves broken and must always be replaced
KNOWN_BAD_PLACEHOLDERS = (
    "via.placeholder.com",
    "placeholder.com",
    "ik.imagekit.io/appraisily/placeholder-art-image.jpg",
)
PLACEHOLDER_PATTERNS = ("placeholder", "placehold.co", "default-image")

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    )
}
TIMEOUT = 8
BATCH_SIZE = 10
BATCH_DELAY = 0.5

CACHE_DIR = Path("dist/data/image-cache")
CACHE_EXPIRY_HOURS = 24

SPECIALTY_PLACEHOLDERS = {
    "painting": f"{IMAGEKIT_BASE_URL}/placeholders/painting-appraiser.jpg",
    "sculpture": f"{IMAGEKIT_BASE_URL}/placeholders/sculpture-appraiser.jpg",
    "antique": f"{IMAGEKIT_BASE_URL}/placeholders/antiques-appraiser.jpg",
    "modern": f"{IMAGEKIT_BASE_URL}/placeholders/modern-art-appraiser.jpg",
    "contemporary": f"{IMAGEKIT_BASE_URL}/placeholders/contemporary-art-appraiser.jpg",
    "oriental": f"{IMAGEKIT_BASE_URL}/placeholders/asian-art-appraiser.jpg",
    "asian": f"{IMAGEKIT_BASE_URL}/placeholders/asian-art-appraiser.jpg",
    "furniture": f"{IMAGEKIT_BASE_URL}/placeholders/furniture-appraiser.jpg",
    "jewelry": f"{IMAGEKIT_BASE_URL}/placeholders/jewelry-appraiser.jpg",
    "print": f"{IMAGEKIT_BASE_URL}/placeholders/prints-appraiser.jpg",
    "photograph": f"{IMAGEKIT_BASE_URL}/placeholders/photography-appraiser.jpg",
}

log = logging.getLogger("images")


@dataclass
class ImageCheck:
    valid: bool
    status: str
    message: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


def is_known_bad_placeholder(url: str | None) -> bool:
    return bool(url) and any(p in url for p in KNOWN_BAD_PLACEHOLDERS)


def is_placeholder(url: str | None) -> bool:
    if not url:
        return False
    lowered = url.lower()
    return any(p in lowered for p in PLACEHOLDER_PATTERNS)


def check_image_url(url: str | None, session=None, timeout: float = TIMEOUT) -> ImageCheck:
    """HEAD-check *url*; falls back to a streamed GET when HEAD is refused."""
    if not url or not url.startswith("http"):
        return ImageCheck(False, "invalid-url", "Invalid URL format")

    http = session or requests
    try:
        response = http.head(url, headers=HEADERS, timeout=timeout, allow_redirects=True)
        if response.status_code in (403, 405):
            with http.get(url, headers=HEADERS, timeout=timeout, stream=True) as fallback:
                response = fallback
        status_code = response.status_code
        content_type = response.headers.get("content-type", "")
    except requests.Timeout:
        return ImageCheck(False, "timeout", "Request timed out")
    except requests.RequestException as e:
        return ImageCheck(False, "error", str(e))

    if not 200 <= status_code < 300:
        return ImageCheck(False, str(status_code), f"HTTP Error {status_code}")
    if not content_type.startswith("image/"):
        return ImageCheck(False, f"not-image-{status_code}", f"Not an image: {content_type or 'unknown'}")
    return ImageCheck(True, str(status_code), "OK")


def inspect_image_url(url: str | None, session=None, timeout: float = TIMEOUT) -> ImageCheck:
    """Like check_image_url, but placeholders are reported without a request."""
    if url and url.startswith("http") and is_placeholder(url):
        return ImageCheck(False, "placeholder", "Placeholder image")
    return check_image_url(url, session=session, timeout=timeout)


def classify_image_url(url: str | None, check: ImageCheck | None) -> str:
    """Return ``ok``, ``placeholder`` or ``broken``."""
    if is_placeholder(url) or (check is not None and check.status == "placeholder"):
        return "placeholder"
    if check is not None and check.valid:
        return "ok"
    return "broken"


def check_many(urls, checker=None, batch_size: int = BATCH_SIZE, delay: float = BATCH_DELAY) -> dict[str, ImageCheck]:
    """Check each distinct URL, *batch_size* requests at a time.

    Batches run on a thread pool; the loop sleeps *delay* seconds between
    batches so a large inventory doesn't hammer a single image host.
    """
    checker = checker or check_image_url
    unique = list(dict.fromkeys(u for u in urls if u))
    results: dict[str, ImageCheck] = {}

    for start in range(0, len(unique), batch_size):
        batch = unique[start:start + batch_size]
        with ThreadPoolExecutor(max_workers=len(batch)) as pool:
            for url, result in zip(batch, pool.map(checker, batch)):
                results[url] = result

        done = start + len(batch)
        log.info("Checked %d/%d images...", done, len(unique))
        if done < len(unique) and delay:
            time.sleep(delay)

    return results


class ImageCache:
    """Check results cached in memory and as one JSON file per URL."""

    def __init__(self, cache_dir: Path = CACHE_DIR, expiry_hours: float = CACHE_EXPIRY_HOURS):
        self.cache_dir = Path(cache_dir)
        self.expiry_seconds = expiry_hours * 3600
        self._memory: dict[str, dict] = {}

    @staticmethod
    def key(url: str) -> str:
        return hashlib.md5(url.encode("utf-8")).hexdigest()

    def _path(self, url: str) -> Path:
        return self.cache_dir / f"{self.key(url)}.json"

    def _fresh(self, entry: dict | None) -> bool:
        if not entry or "timestamp" not in entry:
            return False
        return (time.time() - entry["timestamp"]) < self.expiry_seconds

    @staticmethod
    def _as_check(entry: dict) -> ImageCheck:
        return ImageCheck(entry["isValid"], entry.get("status", "cached"), entry.get("message", ""))

    def get(self, url: str) -> ImageCheck | None:
        entry = self._memory.get(url)
        if self._fresh(entry):
            return self._as_check(entry)

        path = self._path(url)
        if path.exists():
            try:
                entry = json.loads(path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as e:
                log.warning("Error reading cache for %s: %s", url, e)
                return None
            if self._fresh(entry):
                self._memory[url] = entry
                return self._as_check(entry)
        return None

    def put(self, url: str, check: ImageCheck) -> None:
        entry = {
            "url": url,
            "isValid": check.valid,
            "status": check.status,
            "message": check.message,
            "timestamp": time.time(),
        }
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._path(url).write_text(json.dumps(entry), encoding="utf-8")
        self._memory[url] = entry

    def clear(self) -> None:
        self._memory.clear()
        if self.cache_dir.is_dir():
            for f in self.cache_dir.glob("*.json"):
                f.unlink()


def cached_checker(cache: ImageCache, checker=None):
    """Wrap *checker* so results are read from and written to *cache*."""
    checker = checker or check_image_url

    def check(url: str) -> ImageCheck:
        hit = cache.get(url)
        if hit is not None:
            return hit
        result = checker(url)
        cache.put(url, result)
        return result

    return check


def _slug(text: str) -> str:
    return re.sub(r"\s+", "-", re.sub(r"[^\w\s-]", "", text.lower()))


def possible_image_urls(appraiser: dict) -> list[str]:
    """Candidate image URLs for an appraiser, most likely first."""
    if not appraiser or not appraiser.get("name"):
        return []

    urls = []
    if appraiser.get("imageUrl"):
        urls.append(appraiser["imageUrl"])
    if appraiser.get("image"):
        urls.append(appraiser["image"])

    slug = appraiser.get("slug") or _slug(appraiser["name"])
    urls.append(f"{IMAGEKIT_BASE_URL}/appraiser-images/appraiser_{slug}.jpg")
    urls.append(f"{IMAGEKIT_BASE_URL}/appraiser-images/{slug}.jpg")

    if appraiser.get("businessName"):
        business = _slug(appraiser["businessName"])
        urls.append(f"{IMAGEKIT_BASE_URL}/appraiser-images/appraiser_{business}.jpg")
        urls.append(f"{IMAGEKIT_BASE_URL}/appraiser-images/{business}.jpg")

    if appraiser.get("city"):
        urls.append(f"{IMAGEKIT_BASE_URL}/appraiser-images/appraiser_{slug}_{_slug(appraiser['city'])}.jpg")

    return list(dict.fromkeys(urls))


def specialty_placeholder(specialties) -> str | None:
    if not isinstance(specialties, list):
        return None
    for specialty in specialties:
        lowered = str(specialty).lower()
        for keyword, url in SPECIALTY_PLACEHOLDERS.items():
            if keyword in lowered:
                return url
    return None
