"""Converters and validators: text in, typed value out, ValidationError otherwise."""

from __future__ import annotations

import math
import re
from typing import Any, Callable, List, Optional, TypeVar

from .errors import ValidationError

T = TypeVar("T")
Converter = Callable[[str], Any]

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def compose(*converters: Converter) -> Converter:
    """Chain converters right to left: ``compose(f, g)(s) == f(g(s))``."""
    if not converters:
        raise ValueError("compose() needs at least one converter")

    def _composed(value: Any) -> Any:
        for conv in reversed(converters):
            value = conv(value)
        return value

    return _composed


def to_int(s: str) -> int:
    s = s.strip()
    if not _INT_RE.match(s):
        raise ValidationError(f"{s} is not an integer")
    return int(s)


def _to_float_single(s: str) -> float:
    s = s.strip()
    if not s:
        raise ValidationError("empty string is not a number")
    if not _FLOAT_RE.match(s):
        raise ValidationError(f"{s} is not a number")
    value = float(s)
    if not math.isfinite(value):
        raise ValidationError(f"{s} is out of range")
    return value


def to_float(s: str) -> float:
    """Parse a decimal float or a single ``numerator/denominator`` rational."""
    parts = s.split("/")
    if len(parts) >= 3:
        raise ValidationError(f"{s} has too many separators")
    if len(parts) == 2:
        numerator = to_int(parts[0])
        denominator = to_int(parts[1])
        if denominator == 0:
            raise ValidationError(f"{s} divides by zero")
        return numerator / denominator
    return _to_float_single(s)


def at_least(threshold: Any) -> Callable[[T], T]:
    def _guard(x: T) -> T:
        if x < threshold:
            raise ValidationError(f"{x} should be ≥ {threshold}")
        return x

    return _guard


def at_most(threshold: Any) -> Callable[[T], T]:
    def _guard(x: T) -> T:
        if x > threshold:
            raise ValidationError(f"{x} should be ≤ {threshold}")
        return x

    return _guard


def in_range(lo: Any, hi: Any) -> Callable[[T], T]:
    if lo > hi:
        raise ValueError(f"empty range [{lo}, {hi}]")

    def _guard(x: T) -> T:
        if x < lo or x > hi:
            raise ValidationError(f"{x} should be in range [{lo}, {hi}]")
        return x

    return _guard


def list_of(sep: str, converter: Optional[Converter] = None) -> Callable[[str], List[Any]]:
    def _convert(s: str) -> List[Any]:
        parts = s.split(sep)
        if converter is None:
            return parts
        return [converter(part) for part in parts]

    return _convert


def matrix_of(
    row_sep: str, col_sep: str, converter: Optional[Converter] = None
) -> Callable[[str], List[List[Any]]]:
    """Split into rows, then columns; every row must be as long as the first."""
    row_conv = list_of(col_sep, converter)

    def _convert(s: str) -> List[List[Any]]:
        rows = [row_conv(row) for row in s.split(row_sep)]
        if len(rows) > 1:
            width = len(rows[0])
            for i, row in enumerate(rows[1:], start=1):
                if len(row) != width:
                    raise ValidationError(
                        f"row {i} has length {len(row)} but row 0 has length {width}"
                    )
        return rows

    return _convert
