from __future__ import annotations
from dataclasses import dataclass, field
import re
from typing import Any, Dict, Optional, Tuple

from taglogger.core.exceptions import ConfigurationError


###############################################################################
# 1. TAG ----------------------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class TagConfig:
    """One logged tag of a device."""
    tag: str
    floatres: Optional[str] = None     # numeric format profile id
    interval: Optional[str] = None     # poll interval expression, e.g. "5s"
    interval_ms: int = 0               # 0 => subscription mode

    @property
    def polled(self) -> bool:
        return self.interval_ms > 0

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TagConfig":
        if not isinstance(row, dict):
            raise ConfigurationError(f"tag entry must be an object, got {type(row).__name__}")
        tag = _require_str(row, "tag")
        floatres = _optional_str(row, "floatres")
        interval = row.get("interval")
        if interval is not None and not isinstance(interval, (str, int)):
            raise ConfigurationError(f"tag '{tag}': interval must be a string")
        interval = None if interval is None else str(interval)
        return cls(
            tag         = tag,
            floatres    = floatres,
            interval    = interval,
            interval_ms = parse_interval(interval) if interval is not None else 0,
        )


###############################################################################
# 2. DEVICE -------------------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class DeviceConfig:
    """Immutable projection of one ``devices[]`` entry of the config file."""
    url: str
    user: str
    password: str
    filename: str
    append: bool = False
    tags: Tuple[TagConfig, ...] = field(default_factory=tuple)

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DeviceConfig":
        if not isinstance(row, dict):
            raise ConfigurationError(f"device entry must be an object, got {type(row).__name__}")
        tags = row.get("tags", [])
        if not isinstance(tags, list):
            raise ConfigurationError("tags must be a list")
        append = row.get("append", False)
        if not isinstance(append, bool):
            raise ConfigurationError("append must be true or false")
        return cls(
            url      = _require_str(row, "url"),
            user     = _optional_str(row, "user") or "",
            password = _optional_str(row, "password") or "",
            filename = _require_str(row, "filename"),
            append   = append,
            tags     = tuple(TagConfig.from_row(t) for t in tags),
        )


###############################################################################
# 3. HELPER PARSERS -----------------------------------------------------------
###############################################################################

_INTERVAL_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$", re.IGNORECASE)
_UNIT_MS = {"ms": 1, "s": 1000, "m": 60_000, "h": 3_600_000}


def parse_interval(expr: str) -> int:
    """Convert ``"500ms"``, ``"5s"``, ``"1m"``, ``"2h"`` or ``"250"`` to milliseconds."""
    match = _INTERVAL_RE.match(expr)
    if not match:
        raise ConfigurationError(f"invalid interval expression: {expr!r}")
    number, unit = match.groups()
    return int(round(float(number) * _UNIT_MS[(unit or "ms").lower()]))


def _require_str(row: Dict[str, Any], key: str) -> str:
    if key not in row:
        raise ConfigurationError(f"missing required key: {key}")
    if not isinstance(row[key], str) or not row[key]:
        raise ConfigurationError(f"{key} must be a non-empty string")
    return row[key]


def _optional_str(row: Dict[str, Any], key: str) -> Optional[str]:
    value = row.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigurationError(f"{key} must be a string, got {type(value).__name__}")
    return value or None
