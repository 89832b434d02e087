"""Deterministic UUID derivation for records keyed by arbitrary strings.

The storage engine matches records by ``uuid.UUID``. Entity types whose
natural key is a free-form string (achievement ids such as
``"distance_10km"``, gear item ids, checklist item ids) are mapped onto a
UUID by :func:`derive_uuid`. The mapping is part of the on-disk contract:
it must give the same answer in every process and every release, so it
never touches ``hash()``.

Derivation, for a string that is not already a canonical UUID literal:

1. ``acc = 0``; for every UTF-8 byte ``b``: ``acc = (acc * 31 + b) mod 2**64``.
2. ``h = format(acc, "016x")``.
3. ``s = h[0:12] + "4" + h[13:16] + "8" + h[1:16]`` (32 hex digits).
4. The UUID is ``s`` split 8-4-4-4-12.

Position 12 carries the version nibble and position 16 the variant nibble;
every bit of ``h`` still appears somewhere in ``s``.
"""

from __future__ import annotations

import re
import uuid

DERIVATION_VERSION = 1

_MASK_64 = (1 << 64) - 1
_UUID_LITERAL_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def parse_uuid_literal(value: str) -> uuid.UUID | None:
    """Return ``value`` as a UUID if it is in canonical 8-4-4-4-12 form, else ``None``.

    ``uuid.UUID`` also accepts braces, URNs and undashed hex; those are
    treated as ordinary strings here so they go through the hash.
    """
    if _UUID_LITERAL_RE.match(value) is None:
        return None
    return uuid.UUID(value)


def string_accumulator(value: str) -> int:
    """Fold the UTF-8 bytes of ``value`` into an unsigned 64-bit accumulator."""
    acc = 0
    for byte in value.encode("utf-8"):
        acc = (acc * 31 + byte) & _MASK_64
    return acc


def format_accumulator(acc: int) -> uuid.UUID:
    """Lay a 64-bit accumulator out as a version-4, variant-8 UUID."""
    if not 0 <= acc <= _MASK_64:
        raise ValueError(f"accumulator must fit in 64 bits, got: {acc}")
    h = format(acc, "016x")
    s = h[0:12] + "4" + h[13:16] + "8" + h[1:16]
    return uuid.UUID(f"{s[0:8]}-{s[8:12]}-{s[12:16]}-{s[16:20]}-{s[20:32]}")


def derive_uuid(natural_key: str) -> uuid.UUID:
    """Resolve a string natural key to the engine's UUID key."""
    literal = parse_uuid_literal(natural_key)
    if literal is not None:
        return literal
    return format_accumulator(string_accumulator(natural_key))
