import pytest

from school_distances.common.errors import MissingKeyError
from school_distances.common.models import SampleGroup, SchoolRecord
from school_distances.pipeline.keys import extract_lookup_keys


def _record(urn: str, postcode: str | None, location_key: str | None = None) -> SchoolRecord:
    return SchoolRecord(
        urn=urn,
        name=f"School {urn}",
        phase="Secondary",
        authority="Milton Keynes",
        street=None,
        locality=None,
        town=None,
        postcode=postcode,
        location_key=location_key,
        easting=None,
        northing=None,
    )


def test_extract_lookup_keys_preserves_order_and_normalises():
    group = SampleGroup(
        name="Milton Keynes",
        seed=1,
        records=(
            _record("3", "MK5 6EX", "mk56ex"),
            _record("1", " mk3 6ew ", None),
            _record("2", "MK16\t0BJ", "MK16 0BJ"),
        ),
    )

    keys = extract_lookup_keys(group)

    assert keys == ["mk56ex", "mk36ew", "mk160bj"]
    assert len(keys) == len(group)
    assert all(key == key.lower() and not any(ch.isspace() for ch in key) for key in keys)


def test_extract_lookup_keys_raises_on_missing_code():
    group = SampleGroup(name="Bedford", seed=1, records=(_record("1", "MK42 9TR", "mk429tr"), _record("2", "  ")))

    with pytest.raises(MissingKeyError):
        extract_lookup_keys(group)
