"""Distance-matrix client for all-pairs origin/destination lookups.

Talks to a Google Distance Matrix compatible JSON endpoint. The provider
returns one row per origin and one element per destination; this module
flattens that grid into one `DistanceResult` per (origin, destination) pair
so callers never correlate parallel containers by position.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

import requests

from school_distances.common.config_loader import timeout_config
from school_distances.common.errors import RemoteLookupError
from school_distances.common.http import HttpClient, HttpRequestError, TimeoutConfig
from school_distances.common.models import DistanceResult, PairStatus, TravelMode

logger = logging.getLogger(__name__)

MAX_KEYS_PER_SIDE = 25
DEFAULT_MAX_ELEMENTS = 100

ELEMENT_STATUS_MAP = {
    "OK": PairStatus.SUCCESS,
    "NOT_FOUND": PairStatus.NOT_FOUND,
}


def _chunks(items: Sequence[Any], size: int) -> Iterable[tuple[int, Sequence[Any]]]:
    for start in range(0, len(items), size):
        yield start, items[start : start + size]


def _value(element: dict, field: str) -> int | None:
    part = element.get(field)
    if not isinstance(part, dict) or part.get("value") is None:
        return None
    try:
        return int(part["value"])
    except (TypeError, ValueError):
        return None


def parse_element(origin: str, destination: str, element: dict) -> DistanceResult:
    provider_status = str(element.get("status") or "UNKNOWN")
    status = ELEMENT_STATUS_MAP.get(provider_status, PairStatus.FAILED)
    if status is not PairStatus.SUCCESS:
        return DistanceResult(origin=origin, destination=destination, status=status, provider_status=provider_status)

    distance = _value(element, "distance")
    duration = _value(element, "duration")
    if distance is None:
        # An OK element without a distance is unusable for ranking.
        return DistanceResult(
            origin=origin,
            destination=destination,
            status=PairStatus.FAILED,
            provider_status=provider_status,
        )
    return DistanceResult(
        origin=origin,
        destination=destination,
        status=status,
        distance_metres=distance,
        duration_seconds=duration,
        provider_status=provider_status,
    )


def parse_matrix_payload(payload: dict, origins: Sequence[str], destinations: Sequence[str]) -> list[DistanceResult]:
    top_status = payload.get("status")
    if top_status != "OK":
        detail = payload.get("error_message") or "no error message"
        raise RemoteLookupError(f"Distance service returned status {top_status}: {detail}")

    rows = payload.get("rows")
    if not isinstance(rows, list) or len(rows) != len(origins):
        got = len(rows) if isinstance(rows, list) else "no"
        raise RemoteLookupError(f"Distance service returned {got} rows for {len(origins)} origins")

    results: list[DistanceResult] = []
    for origin, row in zip(origins, rows):
        elements = row.get("elements") if isinstance(row, dict) else None
        if not isinstance(elements, list) or len(elements) != len(destinations):
            got = len(elements) if isinstance(elements, list) else "no"
            raise RemoteLookupError(
                f"Distance service returned {got} elements for origin {origin} and {len(destinations)} destinations"
            )
        for destination, element in zip(destinations, elements):
            results.append(parse_element(origin, destination, element if isinstance(element, dict) else {}))
    return results


def build_distance_lookup(results: Iterable[DistanceResult]) -> dict[tuple[str, str], DistanceResult]:
    return {result.pair: result for result in results}


class DistanceMatrixClient:
    def __init__(
        self,
        http_client: HttpClient,
        *,
        endpoint: str,
        api_key: str,
        max_elements_per_request: int = DEFAULT_MAX_ELEMENTS,
        timeout: TimeoutConfig | None = None,
        region: str | None = "gb",
    ) -> None:
        self.http_client = http_client
        self.endpoint = endpoint
        self.api_key = api_key
        self.max_elements_per_request = max_elements_per_request
        self.timeout = timeout
        self.region = region
        self.request_count = 0

    def _params(self, origins: Sequence[str], destinations: Sequence[str], mode: TravelMode) -> dict[str, Any]:
        params: dict[str, Any] = {
            "origins": "|".join(origins),
            "destinations": "|".join(destinations),
            "mode": mode.value,
            "units": "metric",
            "key": self.api_key,
        }
        if self.region:
            params["region"] = self.region
        return params

    def _chunk_sizes(self, n_destinations: int) -> tuple[int, int]:
        per_side = min(MAX_KEYS_PER_SIDE, self.max_elements_per_request)
        destination_chunk = max(1, min(n_destinations, per_side))
        origin_chunk = max(1, min(MAX_KEYS_PER_SIDE, self.max_elements_per_request // destination_chunk))
        return origin_chunk, destination_chunk

    def _fetch(self, origins: Sequence[str], destinations: Sequence[str], mode: TravelMode) -> list[DistanceResult]:
        self.request_count += 1
        try:
            payload = self.http_client.get_json(
                self.endpoint,
                params=self._params(origins, destinations, mode),
                timeout=self.timeout,
            )
        except (HttpRequestError, requests.RequestException) as exc:
            raise RemoteLookupError(f"Distance service request failed: {exc}") from exc
        if not isinstance(payload, dict):
            raise RemoteLookupError("Distance service returned a non-object payload")
        return parse_matrix_payload(payload, origins, destinations)

    def lookup_distances(
        self,
        origins: Sequence[str],
        destinations: Sequence[str],
        mode: TravelMode | str = TravelMode.DRIVING,
    ) -> list[DistanceResult]:
        """Return one result per (origin, destination) pair, origin-major."""
        mode = TravelMode.parse(mode)
        if mode is TravelMode.BICYCLING:
            logger.warning("bicycling directions have limited regional support; expect NOT_FOUND/ZERO_RESULTS pairs")
        if not origins or not destinations:
            return []

        origin_chunk, destination_chunk = self._chunk_sizes(len(destinations))
        grid: dict[tuple[int, int], DistanceResult] = {}
        for o_start, o_keys in _chunks(list(origins), origin_chunk):
            for d_start, d_keys in _chunks(list(destinations), destination_chunk):
                logger.debug("distance lookup %dx%d at (%d, %d)", len(o_keys), len(d_keys), o_start, d_start)
                chunk_results = self._fetch(o_keys, d_keys, mode)
                for offset, result in enumerate(chunk_results):
                    o_idx = o_start + offset // len(d_keys)
                    d_idx = d_start + offset % len(d_keys)
                    grid[(o_idx, d_idx)] = result

        return [grid[(o_idx, d_idx)] for o_idx in range(len(origins)) for d_idx in range(len(destinations))]


def build_distance_client(service_config: dict, http_client: HttpClient, api_key: str) -> DistanceMatrixClient:
    return DistanceMatrixClient(
        http_client,
        endpoint=service_config["endpoint"],
        api_key=api_key,
        max_elements_per_request=int(service_config.get("max_elements_per_request", DEFAULT_MAX_ELEMENTS)),
        timeout=timeout_config(service_config),
    )
