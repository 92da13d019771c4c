"""
JavaScript-style value coercion for form values.

Form values arrive as whatever the rendering layer produced: numeric fields
often hold strings, empty fields hold ``""``, checkbox groups hold lists.
Expressions authored against the browser engine expect its coercion rules
(``"2" * 3 == 6``, ``"a" + 1 == "a1"``, ``[] + "" == ""``), so the
interpreter and the allow-listed functions share these helpers.

``None`` plays the role of both ``null`` and ``undefined``.
"""

from __future__ import annotations

import math
import re
from datetime import date
from typing import Any

# Largest integer a JS number represents exactly
MAX_SAFE_INTEGER = 2**53 - 1

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_HEX_RE = re.compile(r"0[xX][0-9a-fA-F]+")


def js_number(value: int | float) -> int | float:
    """Normalize an arithmetic result: integral floats become ints, huge ints become floats."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        if abs(value) > MAX_SAFE_INTEGER:
            try:
                return float(value)
            except OverflowError:
                return math.inf if value > 0 else -math.inf
        return value
    if math.isfinite(value) and value.is_integer() and abs(value) <= MAX_SAFE_INTEGER:
        return int(value)
    return value


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Any) -> int | float:
    """Convert a value to a number the way ``Number(value)`` does."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        return js_number(value)
    if isinstance(value, str):
        return _string_to_number(value)
    if isinstance(value, (list, tuple)):
        if not value:
            return 0
        if len(value) == 1:
            return to_number(to_js_string(value[0]))
        return math.nan
    return math.nan


def _string_to_number(text: str) -> int | float:
    s = text.strip()
    if not s:
        return 0
    if _DECIMAL_RE.fullmatch(s):
        if any(ch in s for ch in ".eE"):
            return js_number(float(s))
        return js_number(int(s))
    if _HEX_RE.fullmatch(s):
        return js_number(int(s, 16))
    if s in ("Infinity", "+Infinity"):
        return math.inf
    if s == "-Infinity":
        return -math.inf
    return math.nan


def to_js_string(value: Any) -> str:
    """Convert a value to text the way ``String(value)`` does."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _float_to_string(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else to_js_string(item) for item in value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def _float_to_string(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def is_truthy(value: Any) -> bool:
    """JS truthiness: empty lists and dicts are truthy, NaN is falsy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def to_primitive(value: Any) -> Any:
    """Collapse lists and dates to strings; leave primitives alone."""
    if isinstance(value, (list, tuple, dict, date)):
        return to_js_string(value)
    return value


def strict_equals(left: Any, right: Any) -> bool:
    """``===``: same kind and same value; containers compare by identity."""
    if left is None or right is None:
        return left is None and right is None
    if is_number(left) and is_number(right):
        return left == right
    if isinstance(left, bool) and isinstance(right, bool):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return left is right


def loose_equals(left: Any, right: Any) -> bool:
    """``==`` with the abstract equality coercions that matter for form values."""
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, bool):
        return loose_equals(to_number(left), right)
    if isinstance(right, bool):
        return loose_equals(left, to_number(right))
    if is_number(left) and is_number(right):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if is_number(left) and isinstance(right, str):
        return left == to_number(right)
    if isinstance(left, str) and is_number(right):
        return to_number(left) == right
    left_is_container = isinstance(left, (list, tuple, dict))
    right_is_container = isinstance(right, (list, tuple, dict))
    if left_is_container and right_is_container:
        return left is right
    if left_is_container or right_is_container:
        return loose_equals(to_primitive(left), to_primitive(right))
    return left is right


def compare(left: Any, right: Any) -> int | None:
    """
    Relational comparison.

    Returns -1, 0 or 1, or None when the operands are unordered (NaN),
    in which case every relational operator yields false.
    """
    left = to_primitive(left)
    right = to_primitive(right)
    if isinstance(left, str) and isinstance(right, str):
        return (left > right) - (left < right)
    a = to_number(left)
    b = to_number(right)
    if math.isnan(a) or math.isnan(b):
        return None
    return (a > b) - (a < b)
