from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import rfc8785
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# JSON-primitive types that rfc8785 can serialize directly.
_PASSTHROUGH_TYPES = (bool, int, float, str, type(None))


def normalize_for_json(value: Any) -> bool | int | float | str | None | list[Any] | dict[str, Any]:
    """Recursively convert Python/Pydantic types into JSON-primitive types.

    Pydantic records are dumped by alias so on-disk field names follow the
    record's alias generator. datetime, date and time become ISO-8601 strings;
    UUID, Decimal and Enum values are reduced to their JSON-compatible forms.

    Args:
        value: Any Python value to normalize.

    Returns:
        A JSON-primitive structure suitable for ``json.dumps`` or ``rfc8785.dumps``.

    Raises:
        TypeError: If value contains a type that cannot be converted to JSON.
    """
    if isinstance(value, _PASSTHROUGH_TYPES):
        return value

    if isinstance(value, BaseModel):
        return normalize_for_json(value.model_dump(mode="json", by_alias=True))

    if isinstance(value, dict):
        return {str(k): normalize_for_json(v) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        return [normalize_for_json(item) for item in value]

    if isinstance(value, Enum):
        return normalize_for_json(value.value)

    if isinstance(value, (datetime, date, time)):
        return value.isoformat()

    if isinstance(value, UUID):
        return str(value)

    if isinstance(value, Decimal):
        if not value.is_finite():
            raise TypeError(f"Cannot serialize non-finite Decimal to JSON: {value!r}")
        return float(value)

    if isinstance(value, bytes):
        raise TypeError(
            f"Cannot serialize bytes to JSON. "
            f"Encode to base64 or hex string first: {value!r:.64}"
        )

    raise TypeError(
        f"Cannot serialize type {type(value).__name__} to JSON. "
        f"Convert to a JSON-compatible type first."
    )


def to_canonical_json(value: Any) -> str:
    """Serialize a value to deterministic, byte-for-byte reproducible JSON per RFC 8785.

    Raises:
        TypeError: If value contains an unsupported type.
        rfc8785.CanonicalizationError: If rfc8785 rejects the normalized value.
    """
    normalized = normalize_for_json(value)
    return rfc8785.dumps(normalized).decode("utf-8")


def encode_collection(records: Sequence[Any], *, compact: bool = False, indent: int = 2) -> bytes:
    """Encode a collection of records as one JSON array.

    Keys are always written in sorted order. ``compact`` selects the RFC 8785
    canonical form; otherwise the array is pretty-printed with ``indent``.
    An empty collection encodes as ``[]`` in both forms.

    Raises:
        TypeError: If a record contains an unsupported type.
        ValueError: If a record contains a non-finite float (``rfc8785``
            raises a ``ValueError`` subclass for the same condition).
    """
    if compact:
        return to_canonical_json(list(records)).encode("utf-8")
    normalized = normalize_for_json(list(records))
    text = json.dumps(
        normalized,
        indent=indent or None,
        sort_keys=True,
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")
