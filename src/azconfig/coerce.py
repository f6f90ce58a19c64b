"""Typed coercion of raw environment strings.

Each parser turns one raw string into a typed value or raises
``MalformedValue`` naming the key the string came from. Parsers never
default: deciding what an absent value means is the caller's job, and
``env_value`` is the single place that maps unset and empty strings to None.
"""

import re
from typing import Mapping, Optional

from azconfig.errors import MalformedValue

__all__ = [
    'env_value',
    'parse_bool',
    'parse_int',
    'parse_float',
]

_TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


def env_value(environ: Mapping[str, str], key: str) -> Optional[str]:
    """Return ``environ[key]``, or None when it is unset or empty."""
    value = environ.get(key)
    if value is None or value == "":
        return None
    return value


def parse_bool(key: str, raw: str) -> bool:
    """Parse a boolean literal (1/t/true/TRUE/True and 0/f/false/FALSE/False)."""
    if raw in _TRUE_LITERALS:
        return True
    if raw in _FALSE_LITERALS:
        return False
    raise MalformedValue(key, raw, "bool")


def parse_int(key: str, raw: str) -> int:
    """Parse a signed base-10 integer that fits in 64 bits."""
    if not _INT_PATTERN.fullmatch(raw):
        raise MalformedValue(key, raw, "int")
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise MalformedValue(key, raw, "int")
    return value


def parse_float(key: str, raw: str) -> float:
    """Parse a floating point literal.

    Surrounding whitespace and digit-group underscores are rejected even
    though ``float()`` would accept them.
    """
    if raw != raw.strip() or "_" in raw:
        raise MalformedValue(key, raw, "float")
    try:
        return float(raw)
    except ValueError as err:
        raise MalformedValue(key, raw, "float") from err
