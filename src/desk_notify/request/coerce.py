from __future__ import annotations

import re
from typing import Any

from desk_notify.errors import ParseError
from desk_notify.utils.text import sanitize_text

from .models import INT64_MAX, INT64_MIN, UINT64_MAX, HintValue

_INT_RE = re.compile(r"[+-]?[0-9]+")


def _as_int(raw: str) -> int | None:
    if not _INT_RE.fullmatch(raw):
        return None
    n = int(raw, 10)
    if n < INT64_MIN or n > INT64_MAX:
        # Too wide for an int64 hint; falls through to the float step.
        return None
    return n


def _as_float(raw: str) -> float | None:
    if "_" in raw or raw != raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def coerce(raw: str) -> bool | int | float | str:
    """
    Turn a free-form --hint value into a typed scalar.

    The checks run in a fixed order and the first match wins:
      1. "true" / "false" (any case) -> bool
      2. base-10 integer              -> int
      3. floating point number        -> float  ("1e3" lands here)
      4. anything else                -> NUL-stripped string

    There is no quoting syntax, so "42" can never be sent as a string from the CLI.
    """
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    n = _as_int(raw)
    if n is not None:
        return n
    f = _as_float(raw)
    if f is not None:
        return f
    return sanitize_text(raw)


def hint_from_scalar(value: Any) -> HintValue:
    """
    Map an already-typed scalar (a coerced CLI token or a YAML value) to a hint.
    """
    if value is None:
        return HintValue.string("")
    # bool first: it is an int subclass
    if isinstance(value, bool):
        return HintValue.boolean(value)
    if isinstance(value, int):
        if INT64_MIN <= value <= INT64_MAX:
            return HintValue("x", value)
        if 0 <= value <= UINT64_MAX:
            return HintValue("t", value)
        raise ParseError(f"hint value {value} does not fit in 64 bits")
    if isinstance(value, float):
        return HintValue("d", value)
    if isinstance(value, str):
        return HintValue.string(sanitize_text(value))
    raise ParseError("unsupported YAML hint type; only scalar values are allowed")
