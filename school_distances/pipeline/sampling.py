"""Category filtering and seeded per-group sampling."""

from __future__ import annotations

import random
from collections import defaultdict
from dataclasses import fields
from typing import Iterable, Mapping

from school_distances.common.errors import ConfigError, InsufficientDataError
from school_distances.common.models import SampleGroup, SchoolRecord

RECORD_FIELDS = frozenset(f.name for f in fields(SchoolRecord))
TEXT_FIELDS = frozenset(f.name for f in fields(SchoolRecord) if f.type in ("str", "str | None"))


def _allowed_values(name: str, value: object) -> set[str]:
    values = list(value) if isinstance(value, (list, tuple, set, frozenset)) else [value]
    if not values or any(v is None for v in values):
        raise ConfigError(f"Predicate {name!r} needs at least one non-null value")
    return {str(v).strip() for v in values}


def _check_field(name: str, ctx: str) -> None:
    if name not in RECORD_FIELDS:
        known = ", ".join(sorted(RECORD_FIELDS))
        raise ConfigError(f"Unknown {ctx} field {name!r}; expected one of: {known}")


def filter_records(records: Iterable[SchoolRecord], predicates: Mapping[str, object] | None) -> list[SchoolRecord]:
    """Keep records matching every predicate and carrying a location key."""
    compiled: list[tuple[str, set[str]]] = []
    for name, value in (predicates or {}).items():
        _check_field(name, "predicate")
        if name not in TEXT_FIELDS:
            raise ConfigError(f"Predicate field {name!r} is numeric; predicates match text fields only")
        compiled.append((name, _allowed_values(name, value)))

    selected: list[SchoolRecord] = []
    for record in records:
        if not record.location_key:
            continue
        if all((getattr(record, name) or "") in allowed for name, allowed in compiled):
            selected.append(record)
    return selected


def partition_records(records: Iterable[SchoolRecord], group_by: str) -> dict[str, list[SchoolRecord]]:
    _check_field(group_by, "group_by")
    grouped: dict[str, list[SchoolRecord]] = defaultdict(list)
    for record in records:
        key = getattr(record, group_by)
        if key is None:
            continue
        grouped[str(key)].append(record)
    return grouped


def sample_groups(
    records: Iterable[SchoolRecord],
    *,
    groups: list[str],
    size: int,
    seed: int,
    group_by: str = "authority",
) -> list[SampleGroup]:
    """Draw `size` records from each named group.

    The draw uses a dedicated `random.Random(seed)` so results depend only on
    the input rows and the seed. Populations are ordered by URN before
    sampling, making the draw independent of file row order. Every group is
    checked before anything is drawn.
    """
    if size < 1:
        raise ConfigError(f"Sample size must be positive, got {size}")

    grouped = partition_records(records, group_by)
    shortfalls = {name: len(grouped.get(name, [])) for name in groups if len(grouped.get(name, [])) < size}
    if shortfalls:
        detail = ", ".join(f"{name}={count}" for name, count in sorted(shortfalls.items()))
        raise InsufficientDataError(f"Sample size {size} exceeds available rows per group: {detail}")

    rng = random.Random(seed)
    out: list[SampleGroup] = []
    for name in groups:
        population = sorted(grouped[name], key=lambda record: (record.urn, record.name))
        chosen = rng.sample(population, size)
        out.append(SampleGroup(name=name, seed=seed, records=tuple(chosen)))
    return out
