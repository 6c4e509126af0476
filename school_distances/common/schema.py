"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from school_distances.common.errors import ConfigError
from school_distances.common.models import TravelMode

REQUIRED_DATASET_COLUMNS = {
    "urn",
    "name",
    "phase",
    "authority",
    "street",
    "locality",
    "town",
    "postcode",
    "easting",
    "northing",
}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_int(value: object, ctx: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"{ctx} must be a positive integer, got {value!r}")
    return value


def validate_pipeline_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"dataset", "sampling", "lookup", "distance_service", "output"}
    _assert_required_keys(cfg, top_required, "pipeline config")
    _assert_no_unknown_keys(cfg, top_required, "pipeline config", allow_unknown)

    dataset = cfg["dataset"]
    _assert_required_keys(dataset, {"path", "columns"}, "dataset")
    _assert_no_unknown_keys(dataset, {"path", "encoding", "columns"}, "dataset", allow_unknown)
    _assert_required_keys(dataset["columns"], REQUIRED_DATASET_COLUMNS, "dataset.columns")

    sampling = cfg["sampling"]
    _assert_required_keys(sampling, {"groups", "size", "seed"}, "sampling")
    _assert_no_unknown_keys(
        sampling,
        {"group_by", "groups", "predicates", "size", "seed"},
        "sampling",
        allow_unknown,
    )
    if not isinstance(sampling["groups"], list) or not sampling["groups"]:
        raise ConfigError("sampling.groups must be a non-empty list")
    _assert_positive_int(sampling["size"], "sampling.size")
    if isinstance(sampling["seed"], bool) or not isinstance(sampling["seed"], int):
        raise ConfigError("sampling.seed must be an integer")
    if not isinstance(sampling.get("predicates") or {}, dict):
        raise ConfigError("sampling.predicates must be a mapping")

    lookup = cfg["lookup"]
    _assert_required_keys(lookup, {"origin_group", "destination_group", "mode"}, "lookup")
    _assert_no_unknown_keys(lookup, {"origin_group", "destination_group", "mode"}, "lookup", allow_unknown)
    for key in ("origin_group", "destination_group"):
        if lookup[key] not in sampling["groups"]:
            raise ConfigError(f"lookup.{key}={lookup[key]!r} is not one of sampling.groups")
    try:
        TravelMode.parse(lookup["mode"])
    except ValueError as exc:
        raise ConfigError(f"Unsupported travel mode: {lookup['mode']!r}") from exc

    service = cfg["distance_service"]
    _assert_required_keys(service, {"endpoint"}, "distance_service")
    _assert_no_unknown_keys(
        service,
        {
            "endpoint",
            "api_key",
            "api_key_env",
            "max_elements_per_request",
            "rate_per_sec",
            "timeout",
            "retry",
        },
        "distance_service",
        allow_unknown,
    )
    if "max_elements_per_request" in service:
        _assert_positive_int(service["max_elements_per_request"], "distance_service.max_elements_per_request")

    _assert_required_keys(cfg["output"], {"report_filename"}, "output")

    return cfg
