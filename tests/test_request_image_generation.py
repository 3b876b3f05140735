import random
import re

import pytest
import requests

from conftest import read_json, write_json

from scripts import fix_placeholder_images
from scripts import request_image_generation as rig
from scripts.utils.images import DEFAULT_PLACEHOLDER_URL


class RecordingSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(rig.time, "sleep", lambda seconds: None)


def test_filename_format():
    name = rig.image_filename("miami-good", now_ms=1700000000000, rng=random.Random(1))
    assert re.fullmatch(r"appraiser_miami-good_1700000000000_V[a-z0-9]{6}\.jpg", name)


def test_prompt_mentions_specialties():
    prompt = rig.build_prompt({"name": "Jane", "specialties": ["Prints", "Maps"]})
    assert prompt.startswith("Professional headshot of an art appraiser named Jane who specializes in Prints, Maps.")
    assert "art appraisal" in rig.build_prompt({"name": "Jane"})


def test_request_retries_then_uses_returned_url(fake_response):
    session = RecordingSession([
        requests.ConnectionError("reset"),
        fake_response(200, "application/json", payload={"imageUrl": "https://cdn.example/new.jpg"}),
    ])
    url = rig.request_image({"id": "a1", "name": "A"}, "miami", "appraiser_a1.jpg", session=session)

    assert url == "https://cdn.example/new.jpg"
    assert len(session.calls) == 2
    endpoint, payload = session.calls[0]
    assert endpoint.endswith("/api/generate")
    assert payload["filename"] == "appraiser_a1.jpg"
    assert payload["appraiser_id"] == "a1"
    assert payload["location"] == "miami"


def test_request_falls_back_to_imagekit_url(fake_response):
    session = RecordingSession([fake_response(200, "application/json", payload={"success": True})])
    url = rig.request_image({"id": "a1", "name": "A"}, "miami", "appraiser_a1.jpg", session=session)
    assert url == "https://ik.imagekit.io/appraisily/appraiser-images/appraiser_a1.jpg"


def test_request_gives_up_after_three_attempts():
    session = RecordingSession([requests.ConnectionError("down")] * 3)
    with pytest.raises(requests.ConnectionError):
        rig.request_image({"id": "a1", "name": "A"}, "miami", "f.jpg", session=session)
    assert len(session.calls) == 3


def test_process_location_updates_only_images_that_need_it(tmp_path, image_checker, fake_response):
    path = write_json(tmp_path / "miami.json", {"appraisers": [
        {"id": "ok", "name": "Fine", "imageUrl": "https://example.com/fine.jpg"},
        {"id": "broken", "name": "Broken", "imageUrl": "https://example.com/missing.jpg"},
        {"id": "none", "name": "Empty"},
    ]})
    session = RecordingSession([
        fake_response(200, "application/json", payload={"imageUrl": "https://cdn.example/b.jpg"}),
        fake_response(200, "application/json", payload={"imageUrl": "https://cdn.example/n.jpg"}),
    ])

    stats = rig.process_location(path, checker=image_checker, session=session, pause=0)

    assert stats == {"processed": 2, "generated": 2, "errors": 0}
    fine, broken, empty = read_json(path)["appraisers"]
    assert fine["imageUrl"] == "https://example.com/fine.jpg"
    assert broken["imageUrl"] == "https://cdn.example/b.jpg"
    assert broken["oldImageUrl"] == "https://example.com/missing.jpg"
    assert empty["imageUrl"] == "https://cdn.example/n.jpg"
    assert "oldImageUrl" not in empty


def test_dry_run_makes_no_requests(tmp_path, image_checker, capsys):
    path = write_json(tmp_path / "miami.json", {"appraisers": [{"id": "none", "name": "Empty"}]})
    before = path.read_text()

    stats = rig.process_location(path, dry_run=True, checker=image_checker, session=RecordingSession([]))

    assert stats["processed"] == 1
    assert path.read_text() == before
    assert "Professional headshot" in capsys.readouterr().out


def test_generated_image_keeps_original_url_from_placeholder_pass(tmp_path, image_checker, fake_response):
    path = write_json(tmp_path / "tampa.json", {"appraisers": [
        {"id": "tampa-gallery", "name": "Gallery", "imageUrl": "https://example.com/missing-real.jpg"},
    ]})
    fix_placeholder_images.run(tmp_path, checker=image_checker)
    assert read_json(path)["appraisers"][0]["imageUrl"] == DEFAULT_PLACEHOLDER_URL

    session = RecordingSession([
        fake_response(200, "application/json", payload={"imageUrl": "https://cdn.example/tampa.jpg"}),
    ])
    stats = rig.process_location(path, checker=image_checker, session=session, pause=0)

    assert stats["generated"] == 1
    (appraiser,) = read_json(path)["appraisers"]
    assert appraiser["imageUrl"] == "https://cdn.example/tampa.jpg"
    assert appraiser["oldImageUrl"] == "https://example.com/missing-real.jpg"
