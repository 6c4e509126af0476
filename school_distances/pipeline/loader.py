"""School directory dataset loading."""

from __future__ import annotations

from pathlib import Path

from school_distances.common.errors import ConfigError
from school_distances.common.fs import read_csv_rows
from school_distances.common.models import SchoolRecord
from school_distances.common.postcode import lookup_key, normalise_postcode
from school_distances.pipeline.coordinates import bng_to_wgs84


def _safe_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _check_columns(header: list[str], columns: dict[str, str], path: Path) -> None:
    missing = sorted({source for source in columns.values() if source not in header})
    if missing:
        raise ConfigError(f"Dataset {path} is missing columns: {', '.join(missing)}")


def record_from_row(row: dict, columns: dict[str, str]) -> SchoolRecord:
    raw_postcode = _clean(row.get(columns["postcode"]))
    postcode = normalise_postcode(raw_postcode) or raw_postcode
    easting = _safe_float(_clean(row.get(columns["easting"])))
    northing = _safe_float(_clean(row.get(columns["northing"])))
    lat, lon = bng_to_wgs84(easting, northing)
    return SchoolRecord(
        urn=_clean(row.get(columns["urn"])) or "",
        name=_clean(row.get(columns["name"])) or "",
        phase=_clean(row.get(columns["phase"])),
        authority=_clean(row.get(columns["authority"])),
        street=_clean(row.get(columns["street"])),
        locality=_clean(row.get(columns["locality"])),
        town=_clean(row.get(columns["town"])),
        postcode=postcode,
        location_key=lookup_key(postcode),
        easting=easting,
        northing=northing,
        lat=lat,
        lon=lon,
    )


def load_school_records(path: Path, columns: dict[str, str], *, encoding: str = "utf-8") -> list[SchoolRecord]:
    header, rows = read_csv_rows(path, encoding=encoding)
    _check_columns(header, columns, path)
    return [record_from_row(row, columns) for row in rows]
