from __future__ import annotations

import uuid
from datetime import UTC, datetime

import pytest

from trailkeep import BadgeType, to_canonical_json
from trailkeep.canonical import encode_collection, normalize_for_json
from trailkeep.mapping import StoreRecord


class _TrailRecord(StoreRecord):
    trail_name: str
    distance_km: float


def test_canonical_json_is_order_independent() -> None:
    left = {"b": 2, "a": 1, "nested": {"z": 9, "y": [3, 2, 1]}}
    right = {"nested": {"y": [3, 2, 1], "z": 9}, "a": 1, "b": 2}
    assert to_canonical_json(left) == to_canonical_json(right)


def test_normalize_for_json_reduces_domain_types() -> None:
    ident = uuid.UUID("3f2504e0-4f89-11d3-9a0c-0305e82c3301")
    value = {
        "badge": BadgeType.PEAK,
        "id": ident,
        "at": datetime(2024, 3, 1, 6, 0, tzinfo=UTC),
        "pair": (1, 2.5),
    }
    assert normalize_for_json(value) == {
        "badge": "Peaks",
        "id": "3f2504e0-4f89-11d3-9a0c-0305e82c3301",
        "at": "2024-03-01T06:00:00+00:00",
        "pair": [1, 2.5],
    }


def test_normalize_for_json_rejects_bytes() -> None:
    with pytest.raises(TypeError):
        normalize_for_json({"blob": b"\x00\x01"})


def test_encode_empty_collection_is_an_empty_array() -> None:
    assert encode_collection([]) == b"[]"
    assert encode_collection([], compact=True) == b"[]"


def test_encode_collection_rejects_non_finite_floats() -> None:
    with pytest.raises(ValueError):
        encode_collection([{"distance": float("nan")}])


def test_compact_encoding_is_the_canonical_json_of_the_records() -> None:
    records = [_TrailRecord(trail_name="Lion Rock", distance_km=5.5)]
    encoded = encode_collection(records, compact=True)
    assert encoded == to_canonical_json(records).encode("utf-8")
    assert encoded == b'[{"distanceKm":5.5,"trailName":"Lion Rock"}]'
