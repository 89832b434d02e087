from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class StoreSettings:
    """Storage settings loaded from environment with fail-fast validation."""

    data_dir: str = "~/.trailkeep"
    compact_json: bool = False
    recover_corrupt: bool = True
    json_indent: int = 2

    @classmethod
    def from_env(cls) -> "StoreSettings":
        return cls(
            data_dir=os.getenv("TRAILKEEP_DATA_DIR", "~/.trailkeep"),
            compact_json=_get_env_bool("TRAILKEEP_COMPACT_JSON", default=False),
            recover_corrupt=_get_env_bool("TRAILKEEP_RECOVER_CORRUPT", default=True),
            json_indent=_get_env_int("TRAILKEEP_JSON_INDENT", default=2, minimum=0, maximum=8),
        ).normalized()

    @property
    def data_path(self) -> Path:
        """Return the data directory as an absolute Path with ``~`` expanded."""
        return Path(self.data_dir).expanduser().resolve()

    def engine_options(self) -> dict[str, bool | int]:
        """Keyword arguments shared by every ``FileStore`` built from these settings."""
        return {
            "compact_json": self.compact_json,
            "json_indent": self.json_indent,
            "recover_corrupt": self.recover_corrupt,
        }

    def normalized(self) -> "StoreSettings":
        """Validate and normalize all fields. Raises ValueError on invalid configuration."""
        data_dir = self.data_dir.strip()
        if not data_dir:
            raise ValueError("TRAILKEEP_DATA_DIR must be non-empty")
        if not 0 <= self.json_indent <= 8:
            raise ValueError(f"TRAILKEEP_JSON_INDENT must be within 0..8, got: {self.json_indent}")
        return StoreSettings(
            data_dir=data_dir,
            compact_json=self.compact_json,
            recover_corrupt=self.recover_corrupt,
            json_indent=self.json_indent,
        )


def _get_env_int(name: str, default: int, minimum: int, maximum: int = 10_000_000) -> int:
    """Parse an integer from an environment variable with bounds checking.

    Args:
        name: Environment variable name.
        default: Value to return if the variable is unset.
        minimum: Inclusive lower bound.
        maximum: Inclusive upper bound.

    Returns:
        The parsed integer, guaranteed to be within [minimum, maximum].

    Raises:
        ValueError: If the value is not an integer or is outside bounds.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        parsed = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got: {raw!r}") from exc
    if parsed < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got: {parsed}")
    if parsed > maximum:
        raise ValueError(f"{name} must be <= {maximum}, got: {parsed}")
    return parsed


def _get_env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag (1/0, true/false), got: {raw!r}")
