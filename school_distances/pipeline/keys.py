"""Lookup key extraction for sampled groups."""

from __future__ import annotations

from school_distances.common.errors import MissingKeyError
from school_distances.common.models import SampleGroup
from school_distances.common.postcode import lookup_key


def extract_lookup_keys(group: SampleGroup) -> list[str]:
    keys: list[str] = []
    for record in group.records:
        key = lookup_key(record.location_key or record.postcode)
        if key is None:
            raise MissingKeyError(f"School {record.urn} ({record.name}) in group {group.name!r} has no location code")
        keys.append(key)
    return keys
