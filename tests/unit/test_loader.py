from pathlib import Path

import pytest

from school_distances.common.errors import ConfigError, StageError
from school_distances.common.fs import read_yaml
from school_distances.pipeline.loader import load_school_records

FIXTURE = Path("tests/fixtures/schools.csv")


def _columns() -> dict:
    return read_yaml(Path("config/pipeline.yml"))["dataset"]["columns"]


def test_load_school_records_reads_all_rows():
    records = load_school_records(FIXTURE, _columns())

    assert len(records) == 15
    ousedale = next(r for r in records if r.urn == "110001")
    assert ousedale.name == "Ousedale School"
    assert ousedale.phase == "Secondary"
    assert ousedale.authority == "Milton Keynes"
    assert ousedale.locality is None
    assert ousedale.postcode == "MK16 0BJ"
    assert ousedale.location_key == "mk160bj"
    assert ousedale.easting == 487200.0


def test_load_school_records_normalises_messy_postcodes_and_blanks():
    records = {r.urn: r for r in load_school_records(FIXTURE, _columns())}

    assert records["110007"].postcode == "MK3 6EW"
    assert records["110007"].location_key == "mk36ew"
    assert records["110008"].postcode is None
    assert records["110008"].location_key is None


def test_load_school_records_derives_wgs84_coordinates():
    records = {r.urn: r for r in load_school_records(FIXTURE, _columns())}

    lat, lon = records["110003"].lat, records["110003"].lon
    assert 51.9 < lat < 52.1
    assert -0.9 < lon < -0.7


def test_load_school_records_missing_column_raises(tmp_path: Path):
    path = tmp_path / "schools.csv"
    path.write_text("URN,EstablishmentName\n1,Somewhere\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_school_records(path, _columns())


def test_load_school_records_missing_file_raises(tmp_path: Path):
    with pytest.raises(StageError):
        load_school_records(tmp_path / "absent.csv", _columns())
