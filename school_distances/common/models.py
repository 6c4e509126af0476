"""Data models used across the pipeline."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any


class TravelMode(enum.Enum):
    """Travel modes accepted by the distance service."""

    DRIVING = "driving"
    WALKING = "walking"
    TRANSIT = "transit"
    BICYCLING = "bicycling"

    @classmethod
    def parse(cls, value: "str | TravelMode") -> "TravelMode":
        if isinstance(value, TravelMode):
            return value
        return cls(str(value).strip().lower())


class PairStatus(enum.Enum):
    """Per-pair outcome of a distance lookup."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class SchoolRecord:
    urn: str
    name: str
    phase: str | None
    authority: str | None
    street: str | None
    locality: str | None
    town: str | None
    postcode: str | None
    location_key: str | None
    easting: float | None
    northing: float | None
    lat: float | None = None
    lon: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SampleGroup:
    name: str
    seed: int
    records: tuple[SchoolRecord, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def urns(self) -> list[str]:
        return [record.urn for record in self.records]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "seed": self.seed,
            "size": len(self.records),
            "urns": self.urns,
            "postcodes": [record.postcode for record in self.records],
        }


@dataclass(frozen=True)
class DistanceResult:
    origin: str
    destination: str
    status: PairStatus
    distance_metres: int | None = None
    duration_seconds: int | None = None
    provider_status: str | None = None

    @property
    def pair(self) -> tuple[str, str]:
        return self.origin, self.destination

    @property
    def ok(self) -> bool:
        return self.status is PairStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["status"] = self.status.value
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "DistanceResult":
        return cls(
            origin=payload["origin"],
            destination=payload["destination"],
            status=PairStatus(payload["status"]),
            distance_metres=payload.get("distance_metres"),
            duration_seconds=payload.get("duration_seconds"),
            provider_status=payload.get("provider_status"),
        )


@dataclass(frozen=True)
class DistanceReportRow:
    origin: str
    destination: str
    origin_name: str | None
    destination_name: str | None
    status: PairStatus
    distance_metres: int | None
    duration_seconds: int | None
    kilometres: float | None
    miles: float | None
    minutes: float | None
    straight_line_km: float | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["status"] = self.status.value
        return payload
