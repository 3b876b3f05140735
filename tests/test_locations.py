import logging

from conftest import write_json

from scripts.utils import locations
from scripts.utils.logs import ColoredFormatter, setup_logging


def test_backup_files_are_not_locations(tmp_path):
    for name in ("miami.json", "miami copy.json", "miami-lifecycle.json", "cors.json", "hugo-data.json", "b.json"):
        write_json(tmp_path / name, {})
    (tmp_path / "notes.txt").write_text("x")

    assert [p.name for p in locations.iter_location_files(tmp_path)] == ["b.json", "miami.json"]
    assert locations.iter_location_files(tmp_path / "missing") == []


def test_save_location_format(tmp_path):
    path = tmp_path / "nested" / "austin.json"
    locations.save_location(path, {"city": "Austin", "appraisers": []})
    assert path.read_text() == '{\n  "city": "Austin",\n  "appraisers": []\n}\n'


def test_appraisers_of_tolerates_bad_shapes():
    assert locations.appraisers_of({"appraisers": [{"name": "a"}]}) == [{"name": "a"}]
    assert locations.appraisers_of({"appraisers": "nope"}) == []
    assert locations.appraisers_of([]) == []


def test_load_json_missing_or_broken(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{")
    assert locations.load_json(broken) is None
    assert locations.load_json(tmp_path / "nope.json") is None


def test_slug_helpers():
    assert locations.title_case_from_slug("salt-lake-city") == "Salt Lake City"
    assert locations.slugify("Café Art & Co.") == "cafe-art-co"


def test_city_index(tmp_path):
    path = write_json(tmp_path / "cities.json", {"cities": [
        {"slug": "miami", "name": "Miami", "state": "Florida"},
        {"name": "No slug"},
    ]})
    assert list(locations.load_city_index(path)) == ["miami"]
    assert locations.load_city_index(tmp_path / "missing.json") == {}


def test_colored_formatter_leaves_record_untouched():
    record = logging.makeLogRecord({"levelname": "WARNING", "levelno": logging.WARNING, "msg": "careful"})
    output = ColoredFormatter("%(levelname)s: %(message)s").format(record)
    assert output == "\033[33mWARNING\033[0m: careful"
    assert record.levelname == "WARNING"


def test_setup_logging_replaces_handlers():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("one")
        log = setup_logging("two", verbose=True)
        assert log.name == "two"
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
