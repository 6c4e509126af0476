from school_distances.cli import parse_args


def test_parse_args_defaults():
    args = parse_args(["sample"])
    assert args.command == "sample"
    assert args.overlay_config_dir is None
    assert args.seed is None
    assert args.mode is None


def test_parse_args_accepts_overrides():
    args = parse_args(
        ["all", "--seed", "7", "--sample-size", "3", "--mode", "walking", "--overlay-config-dir", "config/local"]
    )
    assert args.seed == 7
    assert args.sample_size == 3
    assert args.mode == "walking"
    assert args.overlay_config_dir == "config/local"


def test_stage_counts_per_stage():
    from school_distances.cli import _stage_counts

    sample = {"rows_in": 15, "groups": [{"size": 5}, {"size": 5}]}
    lookup = {"origins": ["a", "b"], "destinations": ["c"], "results": [1, 2]}
    report = {"summary": {"pairs": 4}, "rows": [1, 2, 3, 4]}
    assert _stage_counts("sample", sample) == {"rows_in": 15, "rows_out": 10}
    assert _stage_counts("lookup", lookup) == {"rows_in": 2, "rows_out": 2}
    assert _stage_counts("report", report) == {"rows_in": 4, "rows_out": 4}
