import csv
from pathlib import Path

from school_distances.common.models import DistanceResult, PairStatus, SchoolRecord
from school_distances.pipeline.report import (
    REPORT_HEADERS,
    build_distance_report,
    kilometres_to_miles,
    metres_to_kilometres,
    summarise_report,
    write_report_csv,
)


def _school(urn: str, name: str, key: str, lat=None, lon=None) -> SchoolRecord:
    return SchoolRecord(
        urn=urn,
        name=name,
        phase="Secondary",
        authority=None,
        street=None,
        locality=None,
        town=None,
        postcode=key.upper(),
        location_key=key,
        easting=None,
        northing=None,
        lat=lat,
        lon=lon,
    )


def _ok(origin: str, destination: str, metres: int) -> DistanceResult:
    return DistanceResult(origin, destination, PairStatus.SUCCESS, metres, metres // 15, "OK")


SCHOOLS = [
    _school("1", "Ousedale School", "mk160bj", 52.08, -0.73),
    _school("2", "Denbigh School", "mk56ex", 52.03, -0.79),
    _school("3", "Bedford Academy", "mk429tr", 52.12, -0.46),
    _school("4", "Biddenham International School", "mk404az", 52.14, -0.51),
]


def test_unit_conversion_constants():
    assert metres_to_kilometres(1000) == 1.0
    assert kilometres_to_miles(metres_to_kilometres(1000)) == 0.6
    assert metres_to_kilometres(None) is None
    assert kilometres_to_miles(None) is None


def test_two_by_two_report_is_ranked_descending():
    results = [
        _ok("mk160bj", "mk429tr", 1000),
        _ok("mk160bj", "mk404az", 2000),
        _ok("mk56ex", "mk429tr", 3000),
        _ok("mk56ex", "mk404az", 4000),
    ]

    rows = build_distance_report(results, SCHOOLS)

    assert len(rows) == 4
    assert [row.distance_metres for row in rows] == [4000, 3000, 2000, 1000]
    assert rows[0].kilometres == 4.0
    assert rows[0].miles == 2.5
    assert rows[0].origin_name == "Denbigh School"
    assert rows[0].destination_name == "Biddenham International School"
    assert rows[-1].kilometres == 1.0
    assert rows[-1].miles == 0.6
    assert rows[0].straight_line_km is not None


def test_unmatched_keys_keep_rows_with_null_names():
    rows = build_distance_report([_ok("zz11zz", "mk429tr", 1500)], SCHOOLS)

    assert len(rows) == 1
    assert rows[0].origin_name is None
    assert rows[0].destination_name == "Bedford Academy"
    assert rows[0].kilometres == 1.5
    assert rows[0].straight_line_km is None


def test_failed_pairs_stay_visible_after_numeric_rows():
    results = [
        DistanceResult("mk160bj", "mk429tr", PairStatus.NOT_FOUND, provider_status="NOT_FOUND"),
        _ok("mk56ex", "mk429tr", 900),
        DistanceResult("mk56ex", "mk404az", PairStatus.FAILED, provider_status="ZERO_RESULTS"),
    ]

    rows = build_distance_report(results, SCHOOLS)

    assert [row.status for row in rows] == [PairStatus.SUCCESS, PairStatus.NOT_FOUND, PairStatus.FAILED]
    assert rows[1].kilometres is None and rows[1].miles is None and rows[1].minutes is None
    assert rows[1].origin_name == "Ousedale School"

    summary = summarise_report(rows)
    assert summary["pairs"] == 3
    assert summary["status_counts"] == {"success": 1, "not_found": 1, "failed": 1}
    assert summary["max_kilometres"] == 0.9


def test_schools_sharing_a_postcode_yield_one_row():
    schools = SCHOOLS + [_school("5", "Ousedale Sixth Form", "mk160bj")]
    rows = build_distance_report([_ok("mk160bj", "mk429tr", 1000)], schools)

    assert len(rows) == 1
    assert rows[0].origin_name == "Ousedale School; Ousedale Sixth Form"


def test_write_report_csv_leads_with_names_and_blanks_nulls(tmp_path: Path):
    rows = build_distance_report(
        [_ok("mk56ex", "mk429tr", 3000), DistanceResult("zz11zz", "mk429tr", PairStatus.NOT_FOUND)],
        SCHOOLS,
    )
    path = write_report_csv(tmp_path / "out" / "report.csv", rows)

    with path.open(encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        written = list(reader)

    assert reader.fieldnames == REPORT_HEADERS
    assert REPORT_HEADERS[:4] == ["origin_name", "destination_name", "kilometres", "miles"]
    assert written[0]["kilometres"] == "3.0"
    assert written[0]["miles"] == "1.9"
    assert written[1]["origin_name"] == ""
    assert written[1]["kilometres"] == ""
    assert written[1]["status"] == "not_found"
