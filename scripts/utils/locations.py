"""Read and write the per-city location JSON files.

A location file holds ``{city, state, appraisers: [...], seo}`` for one city
slug.  Files whose names mark them as backups (``nashville copy.json``,
``*-lifecycle.json``...) are ignored everywhere.
"""

import json
import re
import unicodedata
from pathlib import Path

LOCATIONS_DIR = Path("src/data/locations")
STANDARDIZED_DIR = Path("src/data/standardized")
CITIES_FILE = Path("src/data/cities.json")

SKIP_NAME_PARTS = ("copy", "lifecycle", "cors", "hugo")


def iter_location_files(directory: Path) -> list[Path]:
    """Return the location JSON files in *directory*, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    files = []
    for f in sorted(directory.iterdir()):
        if f.suffix != ".json" or not f.is_file():
            continue
        if any(part in f.name for part in SKIP_NAME_PARTS):
            continue
        files.append(f)
    return files


def load_location(path: Path) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def save_location(path: Path, data: dict) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def load_json(path: Path) -> dict | list | None:
    """Load a JSON file, returning None when it is missing or unreadable."""
    path = Path(path)
    if path.exists():
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            pass
    return None


def write_report(path: Path, data) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def appraisers_of(data) -> list[dict]:
    if not isinstance(data, dict):
        return []
    appraisers = data.get("appraisers")
    if not isinstance(appraisers, list):
        return []
    return appraisers


def title_case_from_slug(slug: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in slug.split("-") if part)


def slugify(text: str) -> str:
    text = unicodedata.normalize("NFKD", text or "")
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    return re.sub(r"[^a-z0-9]+", "-", text).strip("-")


def load_city_index(path: Path = CITIES_FILE) -> dict[str, dict]:
    """Map city slug -> ``{slug, name, state}`` from cities.json."""
    data = load_json(path)
    cities = data.get("cities") if isinstance(data, dict) else None
    if not isinstance(cities, list):
        return {}
    return {c["slug"]: c for c in cities if isinstance(c, dict) and c.get("slug")}
