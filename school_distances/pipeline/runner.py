"""Stage implementations: sample, lookup, report."""

from __future__ import annotations

from pathlib import Path

from school_distances.common.config_loader import ConfigBundle, resolve_api_key, retry_config, timeout_config
from school_distances.common.errors import StageError
from school_distances.common.fs import read_json, write_json
from school_distances.common.http import HttpClient
from school_distances.common.models import DistanceResult, PairStatus, SampleGroup, SchoolRecord, TravelMode
from school_distances.common.time_utils import utc_today_iso
from school_distances.lookup.distance_matrix import DistanceMatrixClient, build_distance_client
from school_distances.pipeline.keys import extract_lookup_keys
from school_distances.pipeline.loader import load_school_records
from school_distances.pipeline.report import build_distance_report, summarise_report, write_report_csv
from school_distances.pipeline.sampling import filter_records, sample_groups

SAMPLES_PATH = "intermediate/samples.json"
RAW_MATRIX_PATH = "raw/distance_matrix.json"


def _load_dataset(bundle: ConfigBundle) -> list[SchoolRecord]:
    return load_school_records(
        Path(bundle.dataset["path"]),
        bundle.dataset["columns"],
        encoding=bundle.dataset.get("encoding", "utf-8"),
    )


def _group_from_payload(payload: dict) -> SampleGroup:
    records = tuple(SchoolRecord(**record) for record in payload["records"])
    return SampleGroup(name=payload["name"], seed=int(payload["seed"]), records=records)


def _find_group(groups: list[SampleGroup], name: str) -> SampleGroup:
    for group in groups:
        if group.name == name:
            return group
    raise StageError(f"Sample group {name!r} missing from {SAMPLES_PATH}; rerun the sample stage")


def run_sample(bundle: ConfigBundle, data_dir: Path, run_id: str) -> dict:
    sampling = bundle.sampling
    records = _load_dataset(bundle)
    filtered = filter_records(records, sampling.get("predicates"))
    groups = sample_groups(
        filtered,
        groups=list(sampling["groups"]),
        size=int(sampling["size"]),
        seed=int(sampling["seed"]),
        group_by=sampling.get("group_by", "authority"),
    )

    payload = {
        "run_id": run_id,
        "group_by": sampling.get("group_by", "authority"),
        "predicates": sampling.get("predicates") or {},
        "seed": int(sampling["seed"]),
        "size": int(sampling["size"]),
        "rows_in": len(records),
        "rows_filtered": len(filtered),
        "groups": [
            {
                **group.to_dict(),
                "records": [record.to_dict() for record in group.records],
            }
            for group in groups
        ],
    }
    write_json(data_dir / SAMPLES_PATH, payload)
    return payload


def run_lookup(
    bundle: ConfigBundle,
    data_dir: Path,
    run_id: str,
    client: DistanceMatrixClient | None = None,
) -> dict:
    samples = read_json(data_dir / SAMPLES_PATH)
    groups = [_group_from_payload(group) for group in samples.get("groups", [])]
    origin_group = _find_group(groups, bundle.lookup["origin_group"])
    destination_group = _find_group(groups, bundle.lookup["destination_group"])
    origins = extract_lookup_keys(origin_group)
    destinations = extract_lookup_keys(destination_group)
    mode = TravelMode.parse(bundle.lookup["mode"])

    if client is None:
        service = bundle.distance_service
        api_key = resolve_api_key(service)
        with HttpClient(
            timeout=timeout_config(service),
            retry=retry_config(service),
            rate_per_sec=float(service.get("rate_per_sec", 5.0)),
        ) as http_client:
            client = build_distance_client(service, http_client, api_key)
            results = client.lookup_distances(origins, destinations, mode)
    else:
        results = client.lookup_distances(origins, destinations, mode)

    payload = {
        "run_id": run_id,
        "mode": mode.value,
        "origin_group": origin_group.name,
        "destination_group": destination_group.name,
        "origins": origins,
        "destinations": destinations,
        "request_count": getattr(client, "request_count", None),
        "non_success_pairs": sum(1 for result in results if not result.ok),
        "results": [result.to_dict() for result in results],
    }
    write_json(data_dir / RAW_MATRIX_PATH, payload)
    return payload


def run_report(bundle: ConfigBundle, data_dir: Path, run_id: str) -> dict:
    raw = read_json(data_dir / RAW_MATRIX_PATH)
    results = [DistanceResult.from_dict(item) for item in raw.get("results", [])]
    samples = read_json(data_dir / SAMPLES_PATH)
    # Names come from sampled schools only, not every row sharing a postcode.
    records = [record for group in samples.get("groups", []) for record in _group_from_payload(group).records]
    rows = build_distance_report(results, records)

    report_path = write_report_csv(data_dir / "out" / bundle.output["report_filename"], rows)
    summary = summarise_report(rows)
    status = "success"
    if summary["status_counts"][PairStatus.SUCCESS.value] != summary["pairs"]:
        status = "partial"

    summary_payload = {
        "report_date": utc_today_iso(),
        "run_id": run_id,
        "lookup_run_id": raw.get("run_id"),
        "mode": raw.get("mode"),
        "origin_group": raw.get("origin_group"),
        "destination_group": raw.get("destination_group"),
        "status": status,
        "report_path": str(report_path),
        "summary": summary,
        "rows": [row.to_dict() for row in rows],
    }
    write_json(data_dir / "out" / "reports" / "run_summary.json", summary_payload)
    return summary_payload
