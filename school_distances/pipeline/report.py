"""Join distance results onto school names and rank them."""

from __future__ import annotations

from collections import Counter, defaultdict
from pathlib import Path
from typing import Iterable

from school_distances.common.constants import METRES_PER_KILOMETRE, MILES_PER_KILOMETRE, SECONDS_PER_MINUTE
from school_distances.common.fs import write_csv
from school_distances.common.models import DistanceReportRow, DistanceResult, PairStatus, SchoolRecord
from school_distances.pipeline.coordinates import haversine_km

REPORT_HEADERS = [
    "origin_name",
    "destination_name",
    "kilometres",
    "miles",
    "minutes",
    "straight_line_km",
    "origin",
    "destination",
    "status",
    "distance_metres",
    "duration_seconds",
]


def metres_to_kilometres(metres: int | float | None) -> float | None:
    if metres is None:
        return None
    return round(metres / METRES_PER_KILOMETRE, 1)


def kilometres_to_miles(kilometres: float | None) -> float | None:
    if kilometres is None:
        return None
    return round(kilometres * MILES_PER_KILOMETRE, 1)


def seconds_to_minutes(seconds: int | float | None) -> float | None:
    if seconds is None:
        return None
    return round(seconds / SECONDS_PER_MINUTE, 1)


def index_by_location_key(records: Iterable[SchoolRecord]) -> dict[str, list[SchoolRecord]]:
    index: dict[str, list[SchoolRecord]] = defaultdict(list)
    for record in records:
        if record.location_key:
            index[record.location_key].append(record)
    return index


def _joined_name(matches: list[SchoolRecord]) -> str | None:
    if not matches:
        return None
    # Schools sharing a postcode collapse into one name so each pair stays one row.
    names = sorted({record.name for record in matches if record.name})
    return "; ".join(names) or None


def _first_point(matches: list[SchoolRecord]) -> tuple[float | None, float | None]:
    for record in sorted(matches, key=lambda r: r.urn):
        if record.lat is not None and record.lon is not None:
            return record.lat, record.lon
    return None, None


def _straight_line(origin_matches: list[SchoolRecord], destination_matches: list[SchoolRecord]) -> float | None:
    lat1, lon1 = _first_point(origin_matches)
    lat2, lon2 = _first_point(destination_matches)
    distance = haversine_km(lat1, lon1, lat2, lon2)
    return None if distance is None else round(distance, 1)


def _sort_key(row: DistanceReportRow):
    has_distance = row.distance_metres is not None
    return (not has_distance, -(row.distance_metres or 0), row.origin, row.destination)


def build_distance_report(
    results: Iterable[DistanceResult],
    records: Iterable[SchoolRecord],
) -> list[DistanceReportRow]:
    index = index_by_location_key(records)
    rows: list[DistanceReportRow] = []
    for result in results:
        origin_matches = index.get(result.origin, [])
        destination_matches = index.get(result.destination, [])
        ok = result.status is PairStatus.SUCCESS
        metres = result.distance_metres if ok else None
        seconds = result.duration_seconds if ok else None
        kilometres = metres_to_kilometres(metres)
        rows.append(
            DistanceReportRow(
                origin=result.origin,
                destination=result.destination,
                origin_name=_joined_name(origin_matches),
                destination_name=_joined_name(destination_matches),
                status=result.status,
                distance_metres=metres,
                duration_seconds=seconds,
                kilometres=kilometres,
                miles=kilometres_to_miles(kilometres),
                minutes=seconds_to_minutes(seconds),
                straight_line_km=_straight_line(origin_matches, destination_matches),
            )
        )
    return sorted(rows, key=_sort_key)


def summarise_report(rows: list[DistanceReportRow]) -> dict:
    status_counts = Counter(row.status.value for row in rows)
    distances = [row.kilometres for row in rows if row.kilometres is not None]
    return {
        "pairs": len(rows),
        "status_counts": {status.value: status_counts.get(status.value, 0) for status in PairStatus},
        "unmatched_names": sum(1 for row in rows if row.origin_name is None or row.destination_name is None),
        "max_kilometres": max(distances) if distances else None,
        "min_kilometres": min(distances) if distances else None,
    }


def _serialize_row(row: DistanceReportRow) -> dict:
    out = {}
    payload = row.to_dict()
    for key in REPORT_HEADERS:
        value = payload.get(key)
        out[key] = "" if value is None else value
    return out


def write_report_csv(path: Path, rows: list[DistanceReportRow]) -> Path:
    write_csv(path, REPORT_HEADERS, [_serialize_row(row) for row in rows])
    return path
