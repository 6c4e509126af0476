from pathlib import Path

import pytest

from school_distances.common.errors import ConfigError, InsufficientDataError
from school_distances.common.fs import read_yaml
from school_distances.pipeline.loader import load_school_records
from school_distances.pipeline.sampling import filter_records, sample_groups

FIXTURE = Path("tests/fixtures/schools.csv")
GROUPS = ["Milton Keynes", "Bedford"]


def _records():
    columns = read_yaml(Path("config/pipeline.yml"))["dataset"]["columns"]
    return load_school_records(FIXTURE, columns)


def _secondary():
    return filter_records(_records(), {"phase": "Secondary"})


def test_filter_records_applies_predicates_and_drops_missing_keys():
    selected = filter_records(_records(), {"phase": "Secondary"})

    urns = {r.urn for r in selected}
    assert "110101" not in urns
    assert "109101" not in urns
    assert "110008" not in urns
    assert len(selected) == 12


def test_filter_records_accepts_value_lists():
    selected = filter_records(_records(), {"phase": ["Primary", "All-through"]})
    assert {r.urn for r in selected} == {"110101", "109101"}


def test_filter_records_rejects_unknown_field():
    with pytest.raises(ConfigError):
        filter_records(_records(), {"ofsted_rating": "Good"})


def test_filter_records_rejects_numeric_fields_and_null_values():
    with pytest.raises(ConfigError):
        filter_records(_records(), {"easting": 487200})
    with pytest.raises(ConfigError):
        filter_records(_records(), {"phase": None})
    with pytest.raises(ConfigError):
        filter_records(_records(), {"phase": ["Secondary", None]})


def test_sample_groups_is_reproducible_for_same_seed():
    first = sample_groups(_secondary(), groups=GROUPS, size=5, seed=42)
    second = sample_groups(_secondary(), groups=GROUPS, size=5, seed=42)

    assert [g.urns for g in first] == [g.urns for g in second]
    assert [g.name for g in first] == GROUPS
    assert all(len(g) == 5 for g in first)


def test_sample_groups_ignores_input_row_order():
    forward = sample_groups(_secondary(), groups=GROUPS, size=3, seed=9)
    backward = sample_groups(list(reversed(_secondary())), groups=GROUPS, size=3, seed=9)

    assert [g.urns for g in forward] == [g.urns for g in backward]


def test_sample_groups_draws_only_from_each_group():
    groups = sample_groups(_secondary(), groups=GROUPS, size=5, seed=1)

    assert {r.authority for r in groups[0].records} == {"Milton Keynes"}
    assert {r.authority for r in groups[1].records} == {"Bedford"}
    assert len(set(groups[0].urns)) == 5


def test_sample_groups_raises_when_group_too_small():
    with pytest.raises(InsufficientDataError) as excinfo:
        sample_groups(_secondary(), groups=GROUPS, size=6, seed=42)
    assert "Bedford=5" in str(excinfo.value)


def test_sample_groups_raises_for_absent_group():
    with pytest.raises(InsufficientDataError):
        sample_groups(_secondary(), groups=["Luton"], size=1, seed=42)


def test_sample_groups_does_not_touch_global_random_state():
    import random

    random.seed(1234)
    expected = random.random()
    random.seed(1234)
    sample_groups(_secondary(), groups=GROUPS, size=5, seed=42)
    assert random.random() == expected
