"""Coordinate transformation and straight-line distance."""

from __future__ import annotations

import math
from typing import Any

from pyproj import CRS, Transformer

BRITISH_NATIONAL_GRID_EPSG = 27700
WGS84_EPSG = 4326
EARTH_RADIUS_KM = 6371.0088

_TRANSFORMERS: dict[int, Transformer] = {}


def _safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _valid_lat_lon(lat: float | None, lon: float | None) -> bool:
    if lat is None or lon is None:
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def _transformer_for(source_epsg: int) -> Transformer:
    transformer = _TRANSFORMERS.get(source_epsg)
    if transformer is None:
        transformer = Transformer.from_crs(CRS.from_epsg(source_epsg), CRS.from_epsg(WGS84_EPSG), always_xy=True)
        _TRANSFORMERS[source_epsg] = transformer
    return transformer


def to_wgs84(x: Any, y: Any, source_epsg: int) -> tuple[float | None, float | None]:
    """Return (lat, lon) for a planar (x, y) pair, or (None, None)."""
    px = _safe_float(x)
    py = _safe_float(y)
    if px is None or py is None:
        return None, None
    if source_epsg == WGS84_EPSG:
        lat, lon = py, px
    else:
        try:
            lon, lat = _transformer_for(source_epsg).transform(px, py)
        except Exception:
            return None, None
    if not _valid_lat_lon(lat, lon):
        return None, None
    return lat, lon


def bng_to_wgs84(easting: Any, northing: Any) -> tuple[float | None, float | None]:
    return to_wgs84(easting, northing, BRITISH_NATIONAL_GRID_EPSG)


def haversine_km(
    lat1: float | None,
    lon1: float | None,
    lat2: float | None,
    lon2: float | None,
) -> float | None:
    if not (_valid_lat_lon(lat1, lon1) and _valid_lat_lon(lat2, lon2)):
        return None
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))
