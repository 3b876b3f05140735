import pytest

from conftest import read_json, write_json

from scripts import check_all_images, check_for_placeholders, create_image_inventory, fix_missing_images
from scripts.utils.images import ImageCache, ImageCheck


def test_check_all_images_classifies(locations_dir, image_checker):
    entries = check_all_images.collect_images(locations_dir)
    report = check_all_images.build_report(entries, checker=image_checker)

    assert report["total"] == 3
    assert (report["ok"], report["broken"], report["placeholder"]) == (1, 1, 1)
    assert report["broken_images"][0]["name"] == "Broken Appraisals"
    assert report["broken_images"][0]["status"] == "404"
    assert "https://via.placeholder.com/150" not in image_checker.calls


def test_check_for_placeholders_counts(tmp_path):
    write_json(tmp_path / "a.json", {"appraisers": [
        {"name": "x", "imageUrl": "https://placehold.co/1"},
        {"name": "y"},
        {"name": "z", "imageUrl": "https://example.com/z.jpg"},
        {"name": "w", "imageUrl": "https://example.com/w.jpg"},
    ]})
    write_json(tmp_path / "b.json", {"appraisers": [
        {"name": "q", "imageUrl": "https://example.com/default-image.png"},
    ]})
    write_json(tmp_path / "c.json", {"appraisers": [
        {"name": "r", "imageUrl": "https://example.com/r.jpg"},
    ]})

    total, with_placeholder, rows = check_for_placeholders.count_placeholders(tmp_path)

    assert total == 6
    assert with_placeholder == 3
    assert [r["location"] for r in rows] == ["a", "b"]
    assert rows[0] == {"location": "a", "count": 2, "total": 4, "percentage": 50}
    assert rows[1]["percentage"] == 100


def test_inventory_rechecks_old_image(tmp_path):
    locations = tmp_path / "locations"
    write_json(locations / "dallas.json", {"appraisers": [
        {"id": "d1", "name": "One", "imageUrl": "https://example.com/ok.jpg"},
        {"id": "d2", "name": "Two", "imageUrl": "https://example.com/gone.jpg",
         "oldImageUrl": "https://example.com/older.jpg"},
        {"id": "d3", "name": "Three", "imageUrl": "https://placehold.co/300"},
        {"name": "No Id", "imageUrl": "https://example.com/noid.jpg"},
    ]})

    def checker(url):
        if "placehold" in url:
            return ImageCheck(False, "placeholder", "Placeholder image")
        if "gone" in url:
            return ImageCheck(False, "404", "HTTP Error 404")
        return ImageCheck(True, "200", "OK")

    images = create_image_inventory.collect_images(locations)
    stats = create_image_inventory.validate_images(images, checker=checker)
    inventory = create_image_inventory.write_inventory(tmp_path, images)

    assert stats == {"valid": 1, "invalid": 1, "placeholder": 1}
    assert inventory["totalImages"] == 3
    assert images["d2"]["oldImageValid"] is True
    assert images["d3"]["isPlaceholder"] is True
    assert "oldImageValid" not in images["d1"]
    assert [e["id"] for e in read_json(tmp_path / "valid-images.json")] == ["d1"]
    assert {e["id"] for e in read_json(tmp_path / "invalid-images.json")} == {"d2", "d3"}


def test_inventory_checks_reuse_cache_across_runs(tmp_path):
    locations = tmp_path / "locations"
    write_json(locations / "reno.json", {"appraisers": [
        {"id": "r1", "name": "One", "imageUrl": "https://example.com/r1.jpg"},
        {"id": "r2", "name": "Two", "imageUrl": "https://example.com/r2.jpg"},
    ]})
    calls = []

    def checker(url):
        calls.append(url)
        return ImageCheck(True, "200", "OK")

    for _ in range(2):
        images = create_image_inventory.collect_images(locations)
        stats = create_image_inventory.validate_images(images, checker=checker, cache=ImageCache(tmp_path / "cache"))
        assert stats == {"valid": 2, "invalid": 0, "placeholder": 0}

    assert sorted(calls) == ["https://example.com/r1.jpg", "https://example.com/r2.jpg"]


def test_fix_missing_images_assigns_ids_and_urls(tmp_path):
    path = write_json(tmp_path / "new-york.json", {"appraisers": [
        {"name": "Art & Antiques, Inc."},
        {"id": "ny-legacy", "name": "Legacy", "image": "https://example.com/legacy.jpg"},
        {"id": "ny-done", "name": "Done", "imageUrl": "https://example.com/done.jpg"},
    ]})

    seen, added = fix_missing_images.fix_file(path)

    first, legacy, done = read_json(path)["appraisers"]
    assert (seen, added) == (3, 1)
    assert first["id"] == "new-york-art-antiques-inc"
    assert first["imageUrl"] == (
        "https://ik.imagekit.io/appraisily/appraiser-images/"
        "appraiser_new_york_art_antiques_inc_placeholder.jpg"
    )
    assert legacy["imageUrl"] == "https://example.com/legacy.jpg"
    assert "image" not in legacy
    assert done == {"id": "ny-done", "name": "Done", "imageUrl": "https://example.com/done.jpg"}


def test_fix_missing_images_cli_requires_directory(tmp_path):
    with pytest.raises(SystemExit) as exc:
        fix_missing_images.main(["--locations-dir", str(tmp_path / "nope")])
    assert exc.value.code == 1
