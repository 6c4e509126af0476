"""CLI entrypoint for the school distance sampling pipeline."""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from school_distances.common.config_loader import ConfigBundle, apply_overrides, load_config
from school_distances.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS, STAGES
from school_distances.common.errors import PipelineError
from school_distances.common.ids import generate_run_id
from school_distances.common.logging import build_logger, close_logger, log_event
from school_distances.common.models import TravelMode
from school_distances.common.time_utils import elapsed_ms
from school_distances.pipeline import runner


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=[*STAGES, "all"])
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--dataset", default=None, help="override dataset.path from config")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--sample-size", type=int, default=None)
    parser.add_argument("--mode", default=None, choices=[mode.value for mode in TravelMode])
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser.parse_args(argv)


def execute_stage(stage: str, bundle: ConfigBundle, data_dir: Path, run_id: str) -> dict:
    if stage == "sample":
        return runner.run_sample(bundle, data_dir, run_id)
    if stage == "lookup":
        return runner.run_lookup(bundle, data_dir, run_id)
    if stage == "report":
        return runner.run_report(bundle, data_dir, run_id)
    raise ValueError(f"Unknown stage: {stage}")


def _stage_counts(stage: str, result: dict) -> dict:
    if stage == "sample":
        return {
            "rows_in": result.get("rows_in"),
            "rows_out": sum(g["size"] for g in result.get("groups", [])),
        }
    if stage == "lookup":
        return {
            "rows_in": len(result.get("origins", [])) * len(result.get("destinations", [])),
            "rows_out": len(result.get("results", [])),
        }
    return {
        "rows_in": result.get("summary", {}).get("pairs"),
        "rows_out": len(result.get("rows", [])),
    }


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    data_dir = Path(args.data_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    try:
        try:
            bundle = load_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)
        except PipelineError as exc:
            log_event(logger, str(exc), run_id=run_id, event="CONFIG_FAIL", status="error", error_code=exc.error_code)
            return EXIT_HARD_FAIL
        bundle = apply_overrides(
            bundle,
            dataset=args.dataset,
            seed=args.seed,
            sample_size=args.sample_size,
            mode=args.mode,
        )

        stages = STAGES if args.command == "all" else (args.command,)
        had_partial_failure = False

        for stage in stages:
            log_event(logger, "stage start", run_id=run_id, stage=stage, event="STAGE_START", status="ok")
            started = time.monotonic()
            try:
                result = execute_stage(stage, bundle, data_dir, run_id)
            except PipelineError as exc:
                log_event(
                    logger,
                    f"stage {stage} failed: {exc}",
                    run_id=run_id,
                    stage=stage,
                    event="STAGE_FAIL",
                    status="error",
                    error_code=exc.error_code,
                    duration_ms=elapsed_ms(started, time.monotonic()),
                )
                return EXIT_HARD_FAIL

            status = "ok"
            if stage == "lookup" and result.get("non_success_pairs"):
                had_partial_failure = True
                status = "partial"
            if stage == "report" and result.get("status") == "partial":
                had_partial_failure = True
                status = "partial"
            log_event(
                logger,
                "stage end",
                run_id=run_id,
                stage=stage,
                event="STAGE_END",
                status=status,
                duration_ms=elapsed_ms(started, time.monotonic()),
                **_stage_counts(stage, result),
            )

        if had_partial_failure:
            return EXIT_PARTIAL
        return EXIT_SUCCESS
    finally:
        close_logger(logger)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        return run_command(args)
    except Exception as exc:
        print(f"school-distances: unexpected failure: {exc!r}", file=sys.stderr)
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
