import random
import re
from datetime import date

import pytest

from conftest import read_json, write_json

from scripts import complete_missing_data, count_appraisers, fix_missing_address_fields
from scripts import standardize_appraiser_data as standardize


def test_complete_fields_fills_every_gap():
    appraiser = {"name": "Bare Bones"}
    fields = complete_missing_data.complete_fields(appraiser, random.Random(1))

    assert fields == complete_missing_data.FIELDS
    assert 4.2 <= appraiser["rating"] <= 4.8
    assert appraiser["phone"] == "Contact via website"
    assert appraiser["specialties"] == ["Fine Art", "Antiques", "Collectibles"]
    assert appraiser["pricing"] == "Contact for pricing information"


def test_zero_rating_and_present_fields_are_kept():
    appraiser = {"name": "Zero", "rating": 0, "phone": "555-0100", "specialties": []}
    fields = complete_missing_data.complete_fields(appraiser, random.Random(1))

    assert appraiser["rating"] == 0
    assert "rating" not in fields
    assert appraiser["phone"] == "555-0100"
    assert "specialties" in fields


def test_defaults_are_not_shared_between_records():
    first, second = {"name": "A"}, {"name": "B"}
    rng = random.Random(1)
    complete_missing_data.complete_fields(first, rng)
    complete_missing_data.complete_fields(second, rng)
    first["specialties"].append("Maps")
    assert "Maps" not in second["specialties"]


def test_rating_rewards_complete_records():
    full = {"phone": "x", "website": "x", "specialties": ["x"], "services_offered": ["x"], "certifications": ["x"]}
    bare = complete_missing_data.generate_rating({}, random.Random(5))
    rich = complete_missing_data.generate_rating(full, random.Random(5))
    assert rich == pytest.approx(bare + 0.3, abs=0.11)
    assert round(rich, 1) == rich


def test_completion_run_reports_and_is_seeded(tmp_path):
    def make_tree(root):
        write_json(root / "austin.json", {"appraisers": [
            {"name": "Empty"},
            {"name": "Full", "rating": 4.1, **complete_missing_data.DEFAULT_VALUES},
        ]})
        write_json(root / "tulsa.json", {"appraisers": [
            {"name": "Done", "rating": 3.9, **complete_missing_data.DEFAULT_VALUES},
        ]})
        return root

    first = make_tree(tmp_path / "one")
    second = make_tree(tmp_path / "two")
    results = complete_missing_data.run(first, random.Random(9))
    complete_missing_data.run(second, random.Random(9))

    assert results["updatedLocations"] == ["austin"]
    assert results["totalUpdatedAppraisers"] == 1
    assert all(count == 1 for count in results["updatedFields"].values())
    assert (first / "austin.json").read_text() == (second / "austin.json").read_text()


def test_completion_main_writes_report(tmp_path, capsys):
    locations = tmp_path / "locations"
    write_json(locations / "austin.json", {"appraisers": [{"name": "Empty"}]})
    report = tmp_path / "report.json"

    complete_missing_data.main(["--locations-dir", str(locations), "--report", str(report), "--seed", "3"])

    assert read_json(report)["totalUpdatedAppraisers"] == 1
    assert "Total Updated Appraisers: 1" in capsys.readouterr().out


def test_missing_addresses_filled(tmp_path):
    data = {"appraisers": [
        {"name": "With City", "city": "Salt Lake City", "state": "UT"},
        {"name": "Bare"},
        {"name": "Has One", "address": "1 Main St"},
        {"address": ""},
    ]}
    count = fix_missing_address_fields.fix_addresses(data, "salt-lake-city")

    with_city, bare, has_one, unnamed = data["appraisers"]
    assert count == 2
    assert with_city["address"] == "Salt Lake City, UT"
    assert bare["address"] == "Salt Lake City, Unknown"
    assert has_one["address"] == "1 Main St"
    assert unnamed["address"] == ""


@pytest.mark.parametrize("raw, expected", [
    ("fl", "FL"),
    ("Portland, OR 97201", "OR"),
    ("Florida", "NY"),
    ("", "NY"),
])
def test_state_code(raw, expected):
    assert standardize.state_code(raw) == expected


def test_transform_appraiser_shape():
    record = standardize.transform_appraiser({
        "name": "Miami Art Co.",
        "address": "Miami, FL",
        "rating": 4.5,
        "website": "https://miamiart.com/about",
        "specialties": ["Modern Art"],
    }, random.Random(1), today=date(2024, 6, 1))

    assert record["slug"] == "miami-art-co"
    assert record["address"]["city"] == "Miami"
    assert record["address"]["state"] == "FL"
    assert re.fullmatch(r"32\d{3}", record["address"]["zip"])
    assert record["address"]["formatted"].endswith(f"Miami, FL {record['address']['zip']}")
    assert re.fullmatch(r"\d{3}-\d{3}-\d{4}", record["contact"]["phone"])
    assert record["contact"]["email"] == "info@miamiart.com"
    assert record["business"]["rating"] == 4.5
    assert record["expertise"]["specialties"] == ["Modern Art"]
    assert record["expertise"]["certifications"] == ["Professional Appraiser"]
    assert record["imageUrl"] == standardize.DEFAULT_IMAGE_URL
    assert record["metadata"] == {"lastUpdated": "2024-06-01", "inService": True}
    assert "modern art" in record["content"]["about"].lower()


def test_missing_id_is_derived_from_location_and_name():
    source = {"name": "Boise Fine Art & Frame"}
    first = standardize.transform_appraiser(dict(source), random.Random(1), location="boise")
    second = standardize.transform_appraiser(dict(source), random.Random(99), location="boise")

    assert first["id"] == second["id"] == "boise-boise-fine-art-frame"
    assert standardize.transform_appraiser({"name": "Kept", "id": "x-1"}, random.Random(1), location="boise")["id"] == "x-1"


def test_reviews_are_recent_first_and_capped():
    reviews = standardize.generate_reviews("Jane", 4.6, random.Random(4), today=date(2024, 6, 1))

    assert 1 <= len(reviews) <= 3
    dates = [r["date"] for r in reviews]
    assert dates == sorted(dates, reverse=True)
    for review in reviews:
        assert "2023-06-03" <= review["date"] <= "2024-06-01"
        assert 1 <= review["rating"] <= 5
        assert review["rating"] * 2 == int(review["rating"] * 2)


def test_standardize_file_writes_output(tmp_path):
    source = write_json(tmp_path / "locations" / "boise.json", {"appraisers": [
        {"name": "Boise Fine Art", "id": "boise-fine-art", "phone": "208-555-0100"},
        {"phone": "nameless"},
    ]})
    out = tmp_path / "standardized"

    assert standardize.standardize_file(source, out, random.Random(2)) == 1

    (record,) = read_json(out / "boise.json")["appraisers"]
    assert record["id"] == "boise-fine-art"
    assert record["contact"]["phone"] == "208-555-0100"


def test_standardize_file_ids_are_stable_across_runs(tmp_path):
    source = write_json(tmp_path / "locations" / "boise.json", {"appraisers": [{"name": "Snake River Art"}]})

    standardize.standardize_file(source, tmp_path / "a", random.Random(1))
    standardize.standardize_file(source, tmp_path / "b", random.Random(2))

    ids = [read_json(tmp_path / run / "boise.json")["appraisers"][0]["id"] for run in ("a", "b")]
    assert ids == ["boise-snake-river-art", "boise-snake-river-art"]


def test_count_appraisers(tmp_path):
    write_json(tmp_path / "big.json", {"appraisers": [{"name": str(i)} for i in range(8)]})
    write_json(tmp_path / "small.json", {"appraisers": [{"name": "a"}, {"name": "b"}]})
    write_json(tmp_path / "empty.json", {"city": "Nowhere"})

    counts = count_appraisers.count_by_location(tmp_path)
    summary = count_appraisers.summarise(counts)

    assert [c["location"] for c in counts] == ["big", "small", "empty"]
    assert summary["total"] == 10
    assert summary["files"] == 3
    assert [c["location"] for c in summary["few"]] == ["small", "empty"]
    assert summary["average"] == pytest.approx(10 / 3)


def test_count_requires_directory(tmp_path):
    with pytest.raises(SystemExit) as exc:
        count_appraisers.main(["--standardized-dir", str(tmp_path / "missing")])
    assert exc.value.code == 1
