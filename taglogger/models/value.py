from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

# Type tags treated as floating point when a format profile is configured.
# OPC UA variant names plus the upper-case aliases some engines report.
NUMERIC_TYPES = frozenset({"Float", "Double", "SINGLE", "DOUBLE"})


@dataclass(frozen=True, slots=True)
class Value:
    """One reading of a tag as delivered by a session engine."""
    typ: str                           # engine type tag, e.g. "Double"
    text: str                          # raw textual representation
    null: bool = False
    error: bool = False
    error_text: str = ""
    number: Optional[float] = None

    @property
    def is_value(self) -> bool:
        return not self.null and not self.error

    @property
    def is_numeric(self) -> bool:
        return self.typ in NUMERIC_TYPES and self.number is not None

    # ---------- factories ------------------------------------------------- #
    @classmethod
    def of(cls, typ: str, raw) -> "Value":
        if raw is None:
            return cls.null_value(typ)
        number = None
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            number = float(raw)
        return cls(typ=typ, text=str(raw), number=number)

    @classmethod
    def null_value(cls, typ: str = "Null") -> "Value":
        return cls(typ=typ, text="", null=True)

    @classmethod
    def error_value(cls, error_text: str, typ: str = "Null") -> "Value":
        return cls(typ=typ, text="", error=True, error_text=error_text)
