"""Numeric format profiles and log-line rendering."""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation
import re
from typing import Optional

from taglogger.core.exceptions import ConfigurationError
from taglogger.models.value import Value


class FloatFormat:
    """Renders floats according to one profile string.

    ``"0.01"`` rounds to a step of 0.01 and prints two decimals, ``"3"``
    prints three decimals, ``"4g"`` prints four significant digits.
    """

    _SIG_RE = re.compile(r"^(\d+)g$")

    def __init__(self, profile: str):
        self.profile = profile
        self._step: Optional[Decimal] = None
        self._decimals = 0
        self._significant: Optional[int] = None

        sig = self._SIG_RE.match(profile)
        if sig:
            self._significant = max(1, int(sig.group(1)))
        elif profile.isdigit():
            self._decimals = int(profile)
        else:
            try:
                step = Decimal(profile)
            except InvalidOperation:
                raise ConfigurationError(f"invalid float format profile: {profile!r}") from None
            if not step.is_finite() or step <= 0:
                raise ConfigurationError(f"invalid float format profile: {profile!r}")
            self._step = step
            self._decimals = max(0, -step.normalize().as_tuple().exponent)

    def convert(self, number: float) -> str:
        if self._significant is not None:
            return f"{number:.{self._significant}g}"
        if self._step is not None:
            stepped = (Decimal(repr(number)) / self._step).to_integral_value() * self._step
            return f"{stepped:.{self._decimals}f}"
        return f"{number:.{self._decimals}f}"


def float_format(profile: Optional[str]) -> Optional[FloatFormat]:
    return FloatFormat(profile) if profile else None


def value_to_string(value: Value, fmt: Optional[FloatFormat] = None) -> str:
    if value.is_value and fmt and value.is_numeric:
        return fmt.convert(value.number)
    return value.text


def timestamp(now: Optional[datetime] = None) -> str:
    """Local timestamp with millisecond precision, e.g. ``2024-05-01 12:00:00.250``."""
    now = now or datetime.now()
    return now.strftime("%Y-%m-%d %H:%M:%S.") + f"{now.microsecond // 1000:03d}"


def format_line(tag: str, value: Value, fmt: Optional[FloatFormat] = None,
                now: Optional[datetime] = None) -> str:
    """Tab-separated ``timestamp, tag, type, value`` without terminator."""
    return f"{timestamp(now)}\t{tag}\t{value.typ}\t{value_to_string(value, fmt)}"
