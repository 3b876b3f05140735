import json
import sys
from pathlib import Path

import pytest
import requests

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


class FakeResponse:
    def __init__(self, status_code=200, content_type="image/jpeg", payload=None):
        self.status_code = status_code
        self.headers = {"content-type": content_type} if content_type else {}
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture(autouse=True)
def block_network(monkeypatch):
    def blocked(*args, **kwargs):
        raise RuntimeError("Network access blocked in tests")

    for name in ("head", "get", "post"):
        monkeypatch.setattr(requests, name, blocked)


@pytest.fixture
def fake_response():
    return FakeResponse


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def read_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def locations_dir(tmp_path):
    """A small location tree with one good, one broken and one placeholder image."""
    directory = tmp_path / "locations"
    write_json(directory / "miami.json", {
        "city": "Miami",
        "state": "FL",
        "appraisers": [
            {
                "id": "miami-good-gallery",
                "name": "Good Gallery",
                "imageUrl": "https://ik.imagekit.io/appraisily/appraiser-images/good.jpg",
                "rating": 4.7,
                "phone": "305-555-0100",
            },
            {
                "id": "miami-broken-appraisals",
                "name": "Broken Appraisals",
                "imageUrl": "https://ik.imagekit.io/appraisily/appraiser-images/missing.jpg",
            },
        ],
    })
    write_json(directory / "boston.json", {
        "city": "Boston",
        "state": "MA",
        "appraisers": [
            {
                "id": "boston-old-school",
                "name": "Old School Art",
                "imageUrl": "https://via.placeholder.com/150",
                "image": "https://via.placeholder.com/150",
            },
        ],
    })
    # backups are ignored everywhere
    write_json(directory / "miami copy.json", {"appraisers": [{"id": "x", "name": "Copy"}]})
    return directory


@pytest.fixture
def image_checker():
    """Stand-in for check_image_url: URLs containing 'missing' are 404s."""
    from scripts.utils.images import ImageCheck

    calls = []

    def checker(url):
        calls.append(url)
        if "missing" in url:
            return ImageCheck(False, "404", "HTTP Error 404")
        return ImageCheck(True, "200", "OK")

    checker.calls = calls
    return checker
