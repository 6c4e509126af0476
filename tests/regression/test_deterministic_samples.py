from pathlib import Path

import pytest

from school_distances.cli import parse_args, run_command
from school_distances.common.fs import read_json
from school_distances.pipeline import runner


class EchoDistanceClient:
    request_count = 0

    def lookup_distances(self, origins, destinations, mode):
        from school_distances.common.models import DistanceResult, PairStatus

        return [
            DistanceResult(o, d, PairStatus.SUCCESS, 1000 * (i + 1) + j, 60 * (i + 1), "OK")
            for i, o in enumerate(origins)
            for j, d in enumerate(destinations)
        ]


def _run_once(data_dir: Path, run_id: str, seed: str = "42") -> None:
    args = parse_args(
        [
            "all",
            "--config-dir",
            "config",
            "--data-dir",
            str(data_dir),
            "--dataset",
            "tests/fixtures/schools.csv",
            "--seed",
            seed,
            "--run-id",
            run_id,
        ]
    )
    assert run_command(args) == 0


@pytest.mark.regression
def test_same_seed_gives_byte_stable_report(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("DISTANCE_MATRIX_API_KEY", "test-key")
    monkeypatch.setattr(runner, "build_distance_client", lambda *_args, **_kwargs: EchoDistanceClient())
    first = tmp_path / "first"
    second = tmp_path / "second"

    _run_once(first, "run-a")
    _run_once(second, "run-b")

    first_groups = read_json(first / "intermediate" / "samples.json")["groups"]
    second_groups = read_json(second / "intermediate" / "samples.json")["groups"]
    assert first_groups == second_groups
    assert (first / "out" / "distance_report.csv").read_bytes() == (second / "out" / "distance_report.csv").read_bytes()
